"""Tests for the CSS-as-module adapter."""

import json
import re

from esmdev.css import css_literal, css_to_module


def _injected_css(module_source: str) -> str:
    match = re.search(r"^insertStyle\((.*)\)$", module_source, re.MULTILINE)
    assert match, module_source
    return json.loads(match.group(1))


def test_module_injects_exact_css():
    css = ".app { color: red; }\n"
    module = css_to_module(css)
    assert "document.createElement('style')" in module
    assert "document.head.appendChild(el)" in module
    assert "export default insertStyle" in module
    assert _injected_css(module) == css


def test_css_with_backticks_and_template_markers_survives():
    css = 'a::after { content: "`${x}`"; }\n/* \\ */'
    assert _injected_css(css_to_module(css)) == css


def test_css_literal_is_a_double_quoted_string():
    assert css_literal("p{}") == '"p{}"'
    assert css_literal("line\nbreak") == '"line\\nbreak"'
