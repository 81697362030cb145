"""Stylesheets as JavaScript modules."""

from __future__ import annotations

import json

CSS_CONTENT_TYPE = "text/css"

_INJECTOR_TEMPLATE = """const insertStyle = (css) => {{
  const el = document.createElement('style')
  el.setAttribute('type', 'text/css')
  el.textContent = css
  document.head.appendChild(el)
}}
insertStyle({css})
export default insertStyle
"""


def css_literal(css: str) -> str:
    # JSON strings are valid JavaScript string literals.
    return json.dumps(css, ensure_ascii=False)


def css_to_module(css: str) -> str:
    """Wrap ``css`` in a module that appends it to ``document.head`` when evaluated."""
    return _INJECTOR_TEMPLATE.format(css=css_literal(css))


__all__ = ["CSS_CONTENT_TYPE", "css_literal", "css_to_module"]
