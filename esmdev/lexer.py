"""Superficial ES module lexer.

The lexer does not build a syntax tree.  It walks the source once, skipping
string literals, template literals, comments and regular expressions, and
records the exact character spans of module specifiers (static imports,
``export ... from`` re-exports and ``import("literal")`` calls) together
with the ``export default`` keyword pair and local ``export { ... }``
clauses.  That is all the rewrite passes need, and it keeps working on
syntax the lexer does not understand elsewhere in the file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

_IDENT_RE = re.compile(r"(?:[^\W\d]|\$)[\w$]*")
_NUMBER_RE = re.compile(r"\d[\w.]*|\.\d\w*")

_QUOTES = "'\""
_VALUE = "<value>"

# Keywords after which a '/' starts a regular expression, not a division.
_KEYWORDS = frozenset(
    {
        "return",
        "typeof",
        "instanceof",
        "in",
        "of",
        "new",
        "delete",
        "void",
        "throw",
        "case",
        "do",
        "else",
        "yield",
        "await",
        "default",
        "extends",
    }
)


@dataclass(frozen=True)
class ImportSpecifier:
    """A module specifier literal; ``[start, end)`` excludes the quotes."""

    name: str
    start: int
    end: int
    dynamic: bool = False


@dataclass(frozen=True)
class ExportBinding:
    local: str
    exported: str


@dataclass(frozen=True)
class ExportClause:
    """An ``export { ... }`` statement, optionally re-exporting ``source``."""

    start: int
    end: int
    bindings: Tuple[ExportBinding, ...]
    source: Optional[ImportSpecifier] = None

    def exports_default(self) -> bool:
        return any(binding.exported == "default" for binding in self.bindings)


@dataclass
class ModuleLexResult:
    imports: List[ImportSpecifier] = field(default_factory=list)
    exports: List[ExportClause] = field(default_factory=list)
    default_export: Optional[Tuple[int, int]] = None


def _binding_from(names: List[str]) -> Optional[ExportBinding]:
    if not names:
        return None
    if len(names) >= 3 and names[1] == "as":
        return ExportBinding(local=names[0], exported=names[2])
    return ExportBinding(local=names[0], exported=names[0])


class _ModuleLexer:
    def __init__(self, source: str) -> None:
        self.source = source
        self.length = len(source)
        self.pos = 0
        self.last: Optional[str] = None
        self.brace_depth = 0
        self.template_stack: List[int] = []
        self.result = ModuleLexResult()

    def run(self) -> ModuleLexResult:
        src = self.source
        while True:
            self._skip_trivia()
            if self.pos >= self.length:
                break
            ch = src[self.pos]
            if ch in _QUOTES:
                self._read_string()
                self.last = _VALUE
            elif ch == "`":
                self.pos += 1
                self._read_template()
            elif ch == "{":
                self.brace_depth += 1
                self.pos += 1
                self.last = "{"
            elif ch == "}":
                self.pos += 1
                if self.brace_depth > 0:
                    self.brace_depth -= 1
                if self.template_stack and self.template_stack[-1] == self.brace_depth:
                    self.template_stack.pop()
                    self._read_template()
                else:
                    self.last = "}"
            elif ch == "/":
                if self._regex_allowed():
                    self._read_regex()
                    self.last = _VALUE
                else:
                    self.pos += 1
                    self.last = "/"
            else:
                match = _IDENT_RE.match(src, self.pos)
                if match:
                    start = self.pos
                    word = match.group(0)
                    self.pos = match.end()
                    if self.last == ".":
                        self.last = _VALUE
                    elif word == "import":
                        self._import()
                    elif word == "export":
                        self._export(start)
                    else:
                        self.last = word if word in _KEYWORDS else _VALUE
                    continue
                match = _NUMBER_RE.match(src, self.pos)
                if match:
                    self.pos = match.end()
                    self.last = _VALUE
                    continue
                self.pos += 1
                self.last = ch
        return self.result

    # -- token readers -------------------------------------------------

    def _skip_trivia(self) -> None:
        src = self.source
        while self.pos < self.length:
            ch = src[self.pos]
            if ch.isspace():
                self.pos += 1
            elif src.startswith("//", self.pos) or (self.pos == 0 and src.startswith("#!")):
                newline = src.find("\n", self.pos)
                self.pos = self.length if newline == -1 else newline + 1
            elif src.startswith("/*", self.pos):
                close = src.find("*/", self.pos + 2)
                self.pos = self.length if close == -1 else close + 2
            else:
                break

    def _read_string(self) -> Tuple[int, int]:
        src = self.source
        quote = src[self.pos]
        start = self.pos + 1
        index = start
        while index < self.length:
            ch = src[index]
            if ch == "\\":
                index += 2
                continue
            if ch == quote or ch == "\n":
                break
            index += 1
        end = min(index, self.length)
        if end < self.length and src[end] == quote:
            self.pos = end + 1
        else:
            self.pos = end
        return start, end

    def _read_template(self) -> None:
        src = self.source
        while self.pos < self.length:
            ch = src[self.pos]
            if ch == "\\":
                self.pos += 2
            elif ch == "`":
                self.pos += 1
                self.last = _VALUE
                return
            elif ch == "$" and src.startswith("${", self.pos):
                self.pos += 2
                self.template_stack.append(self.brace_depth)
                self.brace_depth += 1
                self.last = "${"
                return
            else:
                self.pos += 1
        self.pos = min(self.pos, self.length)
        self.last = _VALUE

    def _read_regex(self) -> None:
        src = self.source
        index = self.pos + 1
        in_class = False
        while index < self.length:
            ch = src[index]
            if ch == "\\":
                index += 2
                continue
            if ch == "\n":
                break
            if in_class:
                if ch == "]":
                    in_class = False
            elif ch == "[":
                in_class = True
            elif ch == "/":
                index += 1
                break
            index += 1
        while index < self.length and (src[index].isalnum() or src[index] in "_$"):
            index += 1
        self.pos = min(index, self.length)

    def _regex_allowed(self) -> bool:
        if self.last is None:
            return True
        if self.last == _VALUE or self.last in (")", "]"):
            return False
        return True

    def _peek_word(self) -> Optional[str]:
        match = _IDENT_RE.match(self.source, self.pos)
        return match.group(0) if match else None

    def _read_word(self) -> Optional[str]:
        match = _IDENT_RE.match(self.source, self.pos)
        if not match:
            return None
        self.pos = match.end()
        return match.group(0)

    def _at_quote(self) -> bool:
        return self.pos < self.length and self.source[self.pos] in _QUOTES

    def _add_import(self, start: int, end: int, *, dynamic: bool = False) -> ImportSpecifier:
        specifier = ImportSpecifier(
            name=self.source[start:end],
            start=start,
            end=end,
            dynamic=dynamic,
        )
        self.result.imports.append(specifier)
        return specifier

    # -- statements ----------------------------------------------------

    def _import(self) -> None:
        src = self.source
        self._skip_trivia()
        if self.pos >= self.length:
            self.last = _VALUE
            return
        ch = src[self.pos]
        if ch == "(":
            self.pos += 1
            self._skip_trivia()
            if self._at_quote():
                start, end = self._read_string()
                after = self.pos
                self._skip_trivia()
                if self.pos < self.length and src[self.pos] in "),":
                    self._add_import(start, end, dynamic=True)
                self.pos = after
                self.last = _VALUE
            else:
                self.last = "("
            return
        if ch == ".":
            # import.meta
            self.last = _VALUE
            return
        if ch in _QUOTES:
            start, end = self._read_string()
            self._add_import(start, end)
            self.last = _VALUE
            return
        self._import_clause()

    def _import_clause(self) -> None:
        src = self.source
        depth = 0
        while True:
            self._skip_trivia()
            if self.pos >= self.length:
                break
            ch = src[self.pos]
            if ch == "{":
                depth += 1
                self.pos += 1
                continue
            if ch == "}":
                depth -= 1
                self.pos += 1
                continue
            if ch in ",*":
                self.pos += 1
                continue
            if ch in _QUOTES:
                # import { "string name" as local } from "..."
                self._read_string()
                continue
            word = self._read_word()
            if word is None:
                break
            if word == "from" and depth <= 0:
                self._skip_trivia()
                if self._at_quote():
                    start, end = self._read_string()
                    self._add_import(start, end)
                    break
                # "from" was a binding name: import from from "pkg"
                continue
        self.last = _VALUE

    def _export(self, start: int) -> None:
        src = self.source
        self._skip_trivia()
        if self.pos >= self.length:
            self.last = _VALUE
            return
        if self._peek_word() == "default":
            self._read_word()
            if self.result.default_export is None:
                self.result.default_export = (start, self.pos)
            self.last = "default"
            return
        ch = src[self.pos]
        if ch == "*":
            self.pos += 1
            self._skip_trivia()
            if self._peek_word() == "as":
                self._read_word()
                self._skip_trivia()
                if self._at_quote():
                    self._read_string()
                else:
                    self._read_word()
                self._skip_trivia()
            if self._peek_word() == "from":
                self._read_word()
                self._skip_trivia()
                if self._at_quote():
                    specifier_start, specifier_end = self._read_string()
                    self._add_import(specifier_start, specifier_end)
            self.last = _VALUE
            return
        if ch == "{":
            self._export_clause(start)
            return
        self.last = "export"

    def _export_clause(self, start: int) -> None:
        src = self.source
        self.pos += 1
        bindings: List[ExportBinding] = []
        names: List[str] = []
        closed = False
        while True:
            self._skip_trivia()
            if self.pos >= self.length:
                break
            ch = src[self.pos]
            if ch == "}":
                self.pos += 1
                closed = True
                break
            if ch == ",":
                self.pos += 1
                binding = _binding_from(names)
                if binding is not None:
                    bindings.append(binding)
                names = []
                continue
            if ch in _QUOTES:
                name_start, name_end = self._read_string()
                names.append(src[name_start:name_end])
                continue
            word = self._read_word()
            if word is None:
                # not a clause this lexer understands
                self.last = _VALUE
                return
            names.append(word)
        binding = _binding_from(names)
        if binding is not None:
            bindings.append(binding)
        if not closed:
            self.last = _VALUE
            return
        end = self.pos
        source: Optional[ImportSpecifier] = None
        self._skip_trivia()
        if self._peek_word() == "from":
            self._read_word()
            self._skip_trivia()
            if self._at_quote():
                specifier_start, specifier_end = self._read_string()
                source = self._add_import(specifier_start, specifier_end)
                end = self.pos
        else:
            self.pos = end
        self.result.exports.append(
            ExportClause(start=start, end=end, bindings=tuple(bindings), source=source)
        )
        self.last = _VALUE


def lex_module(source: str) -> ModuleLexResult:
    """Locate module specifiers and export statements in ``source``."""
    return _ModuleLexer(source).run()


__all__ = [
    "ImportSpecifier",
    "ExportBinding",
    "ExportClause",
    "ModuleLexResult",
    "lex_module",
]
