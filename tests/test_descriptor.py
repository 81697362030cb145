"""Tests for single-file component parsing."""

from textwrap import dedent

import pytest

from esmdev.descriptor import parse_attrs, parse_component
from esmdev.errors import AddressError, CompileError


def test_blocks_are_split_in_source_order():
    source = dedent(
        """\
        <!-- <script>not this one</script> -->
        <template><p>{{ a }}</p></template>
        <script setup lang="ts">
        const a = '</template>'
        </script>
        <style>.one {}</style>
        <i18n>{"en": {}}</i18n>
        <style scoped lang='scss'>.two {}</style>
        """
    )
    descriptor = parse_component(source, "Demo.vue")
    assert descriptor.template.content == "<p>{{ a }}</p>"
    assert descriptor.script.attrs["setup"] is True
    assert descriptor.script.lang == "ts"
    assert "const a = '</template>'" in descriptor.script.content
    assert [style.content for style in descriptor.styles] == [".one {}", ".two {}"]
    assert descriptor.styles[1].scoped
    assert descriptor.styles[1].lang == "scss"
    assert [block.type for block in descriptor.custom_blocks] == ["i18n"]


def test_nested_templates_are_kept_whole():
    source = dedent(
        """\
        <template>
          <ul>
            <template v-for="item in items"><li>{{ item }}</li></template>
            <template v-if="empty" />
          </ul>
        </template>
        """
    )
    descriptor = parse_component(source)
    assert descriptor.template.content.strip().startswith("<ul>")
    assert descriptor.template.content.strip().endswith("</ul>")
    assert '<template v-for="item in items">' in descriptor.template.content


def test_component_without_script_or_template():
    descriptor = parse_component("<style>p {}</style>")
    assert descriptor.script is None
    assert descriptor.template is None
    assert len(descriptor.styles) == 1


def test_second_script_block_is_rejected():
    source = "<script>export default {}</script>\n<script setup>const a = 1</script>"
    with pytest.raises(CompileError) as exc_info:
        parse_component(source, "Two.vue")
    assert exc_info.value.path == "Two.vue"


def test_unterminated_block_is_rejected():
    with pytest.raises(CompileError) as exc_info:
        parse_component("<template><div></div>", "Broken.vue")
    assert "missing end tag" in str(exc_info.value)


def test_style_index_is_bounds_checked():
    descriptor = parse_component("<style>a{}</style><style>b{}</style>", "Two.vue")
    assert descriptor.style(1).content == "b{}"
    with pytest.raises(AddressError) as exc_info:
        descriptor.style(5)
    assert "out of range" in str(exc_info.value)


def test_parse_attrs():
    assert parse_attrs(' setup lang="ts" src=\'./x.js\' id=main') == {
        "setup": True,
        "lang": "ts",
        "src": "./x.js",
        "id": "main",
    }


def test_block_to_source_round_trips_attributes():
    descriptor = parse_component('<script setup lang="ts">let a = 1</script>')
    assert descriptor.script.to_source() == '<script setup lang="ts">let a = 1</script>'
