"""Single-file component splitting.

One ``.vue`` file is served as three kinds of module:

* ``/App.vue`` - the compiled script, with synthetic imports of the other
  views and a default export of the component object.
* ``/App.vue?type=template`` - the compiled render function.
* ``/App.vue?type=style&index=N`` - the N-th style block as a CSS injector.

The browser's module graph stitches the views back together.
"""

from __future__ import annotations

import json
from typing import Iterable, List

from .address import (
    DEFAULT_ASSET_SUFFIXES,
    MainView,
    ModuleAddress,
    StyleView,
    TemplateView,
)
from .compilers import Toolchain
from .css import css_to_module
from .descriptor import ComponentDescriptor
from .errors import AddressError
from .rewriter import rewrite_default, rewrite_imports

COMPONENT_BINDING = "__sfc__"
RENDER_BINDING = "__render"


def compose_main(
    address: ModuleAddress,
    descriptor: ComponentDescriptor,
    toolchain: Toolchain,
    *,
    asset_suffixes: Iterable[str] = DEFAULT_ASSET_SUFFIXES,
) -> str:
    lines: List[str] = []
    if descriptor.script is not None:
        compiled = toolchain.script_compiler.compile_script(
            descriptor.script, address.filename, address.path
        )
        rewritten = rewrite_imports(compiled, asset_suffixes=asset_suffixes)
        lines.append(rewrite_default(rewritten, COMPONENT_BINDING))
    else:
        lines.append(f"const {COMPONENT_BINDING} = {{}}")

    if descriptor.template is not None:
        template_url = address.view_url(TemplateView())
        lines.append(f"import {{ render as {RENDER_BINDING} }} from {json.dumps(template_url)}")
        lines.append(f"{COMPONENT_BINDING}.render = {RENDER_BINDING}")

    for index in range(len(descriptor.styles)):
        style_url = address.view_url(StyleView(index))
        lines.append(f"import {json.dumps(style_url)}")

    lines.append(f"export default {COMPONENT_BINDING}")
    return "\n".join(lines) + "\n"


def compose_template(
    address: ModuleAddress,
    descriptor: ComponentDescriptor,
    toolchain: Toolchain,
    *,
    asset_suffixes: Iterable[str] = DEFAULT_ASSET_SUFFIXES,
) -> str:
    if descriptor.template is None:
        raise AddressError(f"{address.path} has no <template> block", path=address.path)
    code = toolchain.template_compiler.compile_template(
        descriptor.template.content, address.filename, address.path
    )
    return rewrite_imports(code, asset_suffixes=asset_suffixes)


def compose_style(address: ModuleAddress, descriptor: ComponentDescriptor, index: int) -> str:
    return css_to_module(descriptor.style(index).content)


def compose_component(
    address: ModuleAddress,
    descriptor: ComponentDescriptor,
    toolchain: Toolchain,
    *,
    asset_suffixes: Iterable[str] = DEFAULT_ASSET_SUFFIXES,
) -> str:
    """Produce the JavaScript for the view selected by ``address``."""
    view = address.view
    if isinstance(view, TemplateView):
        return compose_template(address, descriptor, toolchain, asset_suffixes=asset_suffixes)
    if isinstance(view, StyleView):
        return compose_style(address, descriptor, view.index)
    if isinstance(view, MainView):
        return compose_main(address, descriptor, toolchain, asset_suffixes=asset_suffixes)
    raise AddressError(f"Unsupported component view {view!r}", path=address.path)


__all__ = [
    "COMPONENT_BINDING",
    "compose_component",
    "compose_main",
    "compose_template",
    "compose_style",
]
