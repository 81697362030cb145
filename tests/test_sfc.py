"""Tests for single-file component splitting."""

import json
import re

import pytest

from esmdev.address import ModuleAddress
from esmdev.descriptor import parse_component
from esmdev.errors import AddressError
from esmdev.sfc import compose_component

from conftest import APP_COMPONENT


def _compose(toolchain, source, query=""):
    address = ModuleAddress.parse("/src/App.vue", query)
    descriptor = parse_component(source, address.filename)
    return compose_component(address, descriptor, toolchain)


def test_main_view_wires_template_and_styles(toolchain):
    code = _compose(toolchain, APP_COMPONENT)

    assert "import { ref } from '/@module/vue'" in code
    assert "import Child from './Child.vue'" in code
    assert "const __sfc__ = {" in code
    assert "export default {" not in code

    template_imports = re.findall(r'^import .* from "(/src/App\.vue\?type=template)"$', code, re.M)
    style_imports = re.findall(r'^import "(/src/App\.vue\?type=style&index=\d+)"$', code, re.M)
    assert template_imports == ["/src/App.vue?type=template"]
    assert style_imports == [
        "/src/App.vue?type=style&index=0",
        "/src/App.vue?type=style&index=1",
    ]
    assert "__sfc__.render = __render" in code
    assert code.rstrip().endswith("export default __sfc__")


def test_main_view_orders_template_before_styles(toolchain):
    code = _compose(toolchain, APP_COMPONENT)
    assert (
        code.index("const __sfc__")
        < code.index("type=template")
        < code.index("type=style&index=0")
        < code.index("type=style&index=1")
        < code.index("export default __sfc__")
    )


def test_script_compiler_receives_component_id(toolchain):
    _compose(toolchain, APP_COMPONENT)
    [(content, component_id, filename)] = toolchain.script_compiler.calls
    assert "export default" in content
    assert component_id == "App.vue"
    assert filename == "/src/App.vue"


def test_component_without_template_has_no_render_binding(toolchain):
    code = _compose(toolchain, "<script>export default { name: 'x' }</script>")
    assert "type=template" not in code
    assert ".render" not in code
    assert "type=style" not in code
    assert code == "const __sfc__ = { name: 'x' }\nexport default __sfc__\n"


def test_component_without_script_still_exports_an_object(toolchain):
    code = _compose(toolchain, "<template><p/></template><style>p{}</style>")
    assert code.startswith("const __sfc__ = {}\n")
    assert 'import "/src/App.vue?type=style&index=0"' in code
    assert code.rstrip().endswith("export default __sfc__")
    assert toolchain.script_compiler.calls == []


def test_template_view_is_compiled_and_rewritten(toolchain):
    code = _compose(toolchain, APP_COMPONENT, "type=template")
    assert code.startswith('import { h } from "/@module/vue"')
    assert "export function render()" in code
    [(source, component_id, _)] = toolchain.template_compiler.calls
    assert '<div class="app">{{ message }}</div>' in source
    assert component_id == "App.vue"


def test_template_view_without_template_is_an_address_error(toolchain):
    with pytest.raises(AddressError):
        _compose(toolchain, "<script>export default {}</script>", "type=template")


def test_style_view_injects_selected_block(toolchain):
    code = _compose(toolchain, APP_COMPONENT, "type=style&index=1")
    literal = re.search(r"^insertStyle\((.*)\)$", code, re.M).group(1)
    assert json.loads(literal) == "\n.app { margin: 0; }\n"


def test_style_view_out_of_range(toolchain):
    with pytest.raises(AddressError):
        _compose(toolchain, APP_COMPONENT, "type=style&index=5")
