"""Single-file component descriptors.

A ``.vue`` file is split into its top-level ``<template>``, ``<script>`` and
``<style>`` blocks.  Only the block boundaries are parsed here; the block
contents are handed to the external compilers untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from .errors import AddressError, CompileError

AttrValue = Union[str, bool]

_TAG_OPEN_RE = re.compile(
    r"<([A-Za-z][\w-]*)"
    r"((?:\s+[^\s=>/]+(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s>\"']+))?)*)"
    r"\s*(/?)>"
)
_ATTR_RE = re.compile(r"([^\s=>/]+)(?:\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\s>\"']+)))?")
_TEMPLATE_TAG_RE = re.compile(r"<template\b[^>]*?(/?)>|</template\s*>", re.IGNORECASE)


def parse_attrs(text: str) -> Dict[str, AttrValue]:
    attrs: Dict[str, AttrValue] = {}
    for match in _ATTR_RE.finditer(text or ""):
        name = match.group(1)
        values = [value for value in match.group(2, 3, 4) if value is not None]
        attrs[name] = values[0] if values else True
    return attrs


@dataclass(frozen=True)
class SFCBlock:
    type: str
    content: str
    attrs: Dict[str, AttrValue] = field(default_factory=dict, hash=False)
    start: int = 0
    end: int = 0

    @property
    def lang(self) -> Optional[str]:
        value = self.attrs.get("lang")
        return value if isinstance(value, str) else None

    @property
    def scoped(self) -> bool:
        return bool(self.attrs.get("scoped"))

    def to_source(self) -> str:
        """Re-serialize the block as it would appear in a component file."""
        parts = [self.type]
        for name, value in self.attrs.items():
            if value is True:
                parts.append(name)
            elif value is not False:
                parts.append(f'{name}="{value}"')
        return f"<{' '.join(parts)}>{self.content}</{self.type}>"


@dataclass
class ComponentDescriptor:
    filename: str
    source: str
    script: Optional[SFCBlock] = None
    template: Optional[SFCBlock] = None
    styles: List[SFCBlock] = field(default_factory=list)
    custom_blocks: List[SFCBlock] = field(default_factory=list)

    def style(self, index: int) -> SFCBlock:
        if index < 0 or index >= len(self.styles):
            raise AddressError(
                f"Style index {index} is out of range: {self.filename} has "
                f"{len(self.styles)} style block(s)",
                path=self.filename,
            )
        return self.styles[index]


def _find_template_close(source: str, content_start: int) -> Optional[Tuple[int, int]]:
    depth = 1
    for match in _TEMPLATE_TAG_RE.finditer(source, content_start):
        if match.group(0).startswith("</"):
            depth -= 1
            if depth == 0:
                return match.start(), match.end()
        elif match.group(1) != "/":
            depth += 1
    return None


def _find_close(source: str, tag: str, content_start: int) -> Optional[Tuple[int, int]]:
    if tag == "template":
        return _find_template_close(source, content_start)
    match = re.compile(rf"</{re.escape(tag)}\s*>", re.IGNORECASE).search(source, content_start)
    if match is None:
        return None
    return match.start(), match.end()


def parse_component(source: str, filename: str = "anonymous.vue") -> ComponentDescriptor:
    """Split a component into its top-level blocks."""
    descriptor = ComponentDescriptor(filename=filename, source=source)
    pos = 0
    while True:
        lt = source.find("<", pos)
        if lt == -1:
            break
        if source.startswith("<!--", lt):
            close = source.find("-->", lt + 4)
            if close == -1:
                raise CompileError("Unterminated comment", path=filename)
            pos = close + 3
            continue
        match = _TAG_OPEN_RE.match(source, lt)
        if match is None:
            pos = lt + 1
            continue
        tag = match.group(1).lower()
        attrs = parse_attrs(match.group(2))
        if match.group(3) == "/":
            block = SFCBlock(type=tag, content="", attrs=attrs, start=match.end(), end=match.end())
            pos = match.end()
        else:
            found = _find_close(source, tag, match.end())
            if found is None:
                raise CompileError(f"Element <{tag}> is missing end tag", path=filename)
            content_end, close_end = found
            block = SFCBlock(
                type=tag,
                content=source[match.end():content_end],
                attrs=attrs,
                start=match.end(),
                end=content_end,
            )
            pos = close_end
        _attach(descriptor, block)
    return descriptor


def _attach(descriptor: ComponentDescriptor, block: SFCBlock) -> None:
    if block.type == "template":
        if descriptor.template is not None:
            raise CompileError(
                "A component may contain only one <template> block",
                path=descriptor.filename,
            )
        descriptor.template = block
    elif block.type == "script":
        if descriptor.script is not None:
            raise CompileError(
                "A component may contain only one <script> block",
                path=descriptor.filename,
                hint="Merge the <script> and <script setup> blocks",
            )
        descriptor.script = block
    elif block.type == "style":
        descriptor.styles.append(block)
    else:
        descriptor.custom_blocks.append(block)


__all__ = ["SFCBlock", "ComponentDescriptor", "parse_attrs", "parse_component"]
