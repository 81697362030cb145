"""Tests for virtual module addresses."""

from pathlib import Path

import pytest

from esmdev.address import (
    MainView,
    ModuleAddress,
    ModuleKind,
    StyleView,
    TemplateView,
    classify,
    parse_query,
)
from esmdev.errors import AddressError, NotFoundError


@pytest.mark.parametrize(
    "path, kind",
    [
        ("/", ModuleKind.INDEX),
        ("/src/main.js", ModuleKind.SCRIPT),
        ("/src/worker.mjs", ModuleKind.SCRIPT),
        ("/src/app.jsx", ModuleKind.JSX),
        ("/@module/vue", ModuleKind.PACKAGE),
        ("/@module/chart.js", ModuleKind.PACKAGE),
        ("/src/style.css", ModuleKind.STYLESHEET),
        ("/src/App.vue", ModuleKind.COMPONENT),
        ("/img/logo.PNG", ModuleKind.ASSET),
        ("/src/main.js.map", ModuleKind.OTHER),
        ("/favicon.txt", ModuleKind.OTHER),
    ],
)
def test_classify(path, kind):
    assert classify(path) is kind


def test_parse_query_keeps_presence_flags_and_last_value_wins():
    assert parse_query("import&v=1&v=2") == {"import": "", "v": "2"}
    assert parse_query("") == {}


def test_from_url_strips_query_and_decodes_path():
    address = ModuleAddress.from_url("/src/my%20style.css?import")
    assert address.path == "/src/my style.css"
    assert address.kind is ModuleKind.STYLESHEET
    assert address.is_import
    assert address.filename == "my style.css"


def test_path_always_starts_with_slash():
    assert ModuleAddress.parse("src/main.js").path == "/src/main.js"
    assert ModuleAddress.parse("").path == "/"


def test_component_views():
    assert ModuleAddress.parse("/App.vue").view == MainView()
    assert ModuleAddress.parse("/App.vue", "type=template").view == TemplateView()
    assert ModuleAddress.parse("/App.vue", "type=style&index=1").view == StyleView(1)


@pytest.mark.parametrize(
    "query",
    [
        "type=style",
        "type=style&index=",
        "type=style&index=-1",
        "type=style&index=one",
        "type=script",
        "index=0",
        "type=template&index=0",
    ],
)
def test_invalid_component_queries_raise_address_error(query):
    with pytest.raises(AddressError):
        ModuleAddress.parse("/App.vue", query)


def test_view_queries_are_ignored_for_non_components():
    address = ModuleAddress.parse("/main.js", "type=bogus&index=x")
    assert address.view == MainView()


def test_identity_triple_ignores_unrelated_query_keys():
    first = ModuleAddress.parse("/App.vue", "type=style&index=0&t=1")
    second = ModuleAddress.parse("/App.vue", "index=0&type=style&t=2")
    assert first.identity == second.identity
    assert first == second


def test_view_url_builds_sibling_addresses():
    address = ModuleAddress.parse("/src/App.vue")
    assert address.view_url(TemplateView()) == "/src/App.vue?type=template"
    assert address.view_url(StyleView(0)) == "/src/App.vue?type=style&index=0"
    assert address.view_url(MainView()) == "/src/App.vue"


def test_package_name():
    assert ModuleAddress.parse("/@module/@vue/shared").package_name == "@vue/shared"
    with pytest.raises(AddressError):
        ModuleAddress.parse("/src/main.js").package_name


def test_locate_stays_inside_root(tmp_path: Path):
    (tmp_path / "src").mkdir()
    address = ModuleAddress.parse("/src/main.js")
    assert address.locate(tmp_path) == (tmp_path / "src" / "main.js").resolve()
    with pytest.raises(NotFoundError):
        ModuleAddress.parse("/../secret.js").locate(tmp_path)
    with pytest.raises(NotFoundError):
        ModuleAddress.parse("/src/../../secret.js").locate(tmp_path)
