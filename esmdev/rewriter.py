"""Bare-import rewriting.

Browsers resolve ``./x.js`` and ``/x.js`` natively but not ``vue`` or
``lodash``.  :func:`rewrite_imports` points every bare specifier at the
reserved ``/@module/`` namespace so the request comes back to the package
pipeline, and tags stylesheet/asset imports with ``?import`` so the router
can tell a JavaScript import from a ``<link>`` or ``<img>`` fetch.  Text
outside the specifier literals is never touched.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .address import DEFAULT_ASSET_SUFFIXES, MODULE_PREFIX, STYLESHEET_SUFFIXES
from .lexer import ExportClause, ImportSpecifier, lex_module

_URL_SPECIFIER_RE = re.compile(r"^(?:[a-zA-Z][a-zA-Z0-9+.-]*:|//)")

Replacement = Tuple[int, int, str]


def is_bare_specifier(name: str) -> bool:
    if not name or name[0] in "./":
        return False
    return not _URL_SPECIFIER_RE.match(name)


def _path_suffix(name: str) -> str:
    path = name.split("?", 1)[0].split("#", 1)[0]
    return PurePosixPath(path).suffix.lower()


def _has_import_flag(name: str) -> bool:
    _, _, query = name.partition("?")
    query = query.split("#", 1)[0]
    return any(part.split("=", 1)[0] == "import" for part in query.split("&") if part)


def mark_import(name: str) -> str:
    """Append the ``import`` flag to a relative specifier."""
    if _has_import_flag(name):
        return name
    path, hash_mark, fragment = name.partition("#")
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}import{hash_mark}{fragment}"


def rewrite_specifier(
    name: str,
    *,
    asset_suffixes: Iterable[str] = DEFAULT_ASSET_SUFFIXES,
) -> Optional[str]:
    """Return the replacement for ``name``, or ``None`` to keep it."""
    if not name or _URL_SPECIFIER_RE.match(name):
        return None
    if name[0] in "./":
        if name.startswith(MODULE_PREFIX):
            return None
        suffix = _path_suffix(name)
        if suffix in STYLESHEET_SUFFIXES or suffix in frozenset(asset_suffixes):
            marked = mark_import(name)
            return marked if marked != name else None
        return None
    if is_bare_specifier(name):
        return MODULE_PREFIX + name
    return None


def apply_replacements(source: str, replacements: Sequence[Replacement]) -> str:
    """Splice non-overlapping ``(start, end, text)`` replacements into ``source``."""
    if not replacements:
        return source
    pieces: List[str] = []
    cursor = 0
    for start, end, text in sorted(replacements, key=lambda item: item[0]):
        if start < cursor:
            raise ValueError(f"Overlapping replacement at offset {start}")
        pieces.append(source[cursor:start])
        pieces.append(text)
        cursor = end
    pieces.append(source[cursor:])
    return "".join(pieces)


def rewrite_imports(
    source: str,
    *,
    asset_suffixes: Iterable[str] = DEFAULT_ASSET_SUFFIXES,
) -> str:
    """Rewrite every import/export specifier in ``source`` for the browser."""
    suffixes: FrozenSet[str] = frozenset(asset_suffixes)
    replacements: List[Replacement] = []
    for specifier in lex_module(source).imports:
        replacement = rewrite_specifier(specifier.name, asset_suffixes=suffixes)
        if replacement is not None:
            replacements.append((specifier.start, specifier.end, replacement))
    return apply_replacements(source, replacements)


def _clause_text(clause: ExportClause, keep) -> str:
    parts = []
    for binding in keep:
        if binding.local == binding.exported:
            parts.append(binding.local)
        else:
            parts.append(f"{binding.local} as {binding.exported}")
    text = "export { " + ", ".join(parts) + " }"
    if clause.source is not None:
        text += f' from "{clause.source.name}"'
    return text


def rewrite_default(source: str, binding: str) -> str:
    """Turn the default export of ``source`` into ``const <binding> = ...``.

    Handles ``export default <expr>``, ``export { x as default }`` and
    ``export { default } from "y"``.  A module without a default export
    gets ``const <binding> = {}`` appended so callers always have a target.
    """
    lexed = lex_module(source)
    if lexed.default_export is not None:
        start, end = lexed.default_export
        return apply_replacements(source, [(start, end, f"const {binding} =")])

    for clause in lexed.exports:
        if not clause.exports_default():
            continue
        default = next(item for item in clause.bindings if item.exported == "default")
        keep = [item for item in clause.bindings if item.exported != "default"]
        if clause.source is not None:
            text = f'import {{ {default.local} as {binding} }} from "{clause.source.name}"'
            if keep:
                text += "\n" + _clause_text(clause, keep)
            return apply_replacements(source, [(clause.start, clause.end, text)])
        text = _clause_text(clause, keep) if keep else ""
        rewritten = apply_replacements(source, [(clause.start, clause.end, text)])
        return rewritten + f"\nconst {binding} = {default.local}"

    return source + f"\nconst {binding} = {{}}"


__all__ = [
    "ImportSpecifier",
    "is_bare_specifier",
    "mark_import",
    "rewrite_specifier",
    "rewrite_imports",
    "rewrite_default",
    "apply_replacements",
]
