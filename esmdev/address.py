"""Virtual module addresses.

Every request is parsed into a :class:`ModuleAddress` before any pipeline
runs.  The address carries the file-system-relative path, the kind derived
from its extension and, for single-file components, the requested sub-view.
Invalid ``type``/``index`` combinations are rejected here so the pipelines
never see them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Dict, FrozenSet, Iterable, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote, unquote, urlencode

from .errors import AddressError, NotFoundError

MODULE_PREFIX = "/@module/"

SCRIPT_SUFFIXES = frozenset({".js", ".mjs"})
JSX_SUFFIXES = frozenset({".jsx"})
STYLESHEET_SUFFIXES = frozenset({".css"})
COMPONENT_SUFFIXES = frozenset({".vue"})
DEFAULT_ASSET_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp"})


class ModuleKind(str, Enum):
    INDEX = "index"
    SCRIPT = "script"
    JSX = "jsx"
    PACKAGE = "package"
    STYLESHEET = "stylesheet"
    COMPONENT = "component"
    ASSET = "asset"
    OTHER = "other"


@dataclass(frozen=True)
class MainView:
    """The composed component module (no ``type`` query)."""

    def query(self) -> Dict[str, str]:
        return {}


@dataclass(frozen=True)
class TemplateView:
    """The compiled render-function module (``type=template``)."""

    def query(self) -> Dict[str, str]:
        return {"type": "template"}


@dataclass(frozen=True)
class StyleView:
    """One style block, addressed positionally (``type=style&index=N``)."""

    index: int

    def query(self) -> Dict[str, str]:
        return {"type": "style", "index": str(self.index)}


ComponentView = Union[MainView, TemplateView, StyleView]


def parse_query(query: str) -> Dict[str, str]:
    """Parse a query string; blank values are kept and the last key wins."""
    params: Dict[str, str] = {}
    for key, value in parse_qsl(query or "", keep_blank_values=True):
        params[key] = value
    return params


def parse_component_view(params: Dict[str, str]) -> ComponentView:
    kind = params.get("type")
    index = params.get("index")
    if kind is None:
        if index is not None:
            raise AddressError("'index' is only valid together with 'type=style'")
        return MainView()
    if kind == "template":
        if index is not None:
            raise AddressError("'index' is only valid together with 'type=style'")
        return TemplateView()
    if kind == "style":
        if index is None or index == "":
            raise AddressError("'type=style' requires an 'index' parameter")
        if not index.isdigit():
            raise AddressError(f"Invalid style index {index!r}: expected a non-negative integer")
        return StyleView(int(index))
    raise AddressError(
        f"Unknown component view type {kind!r}",
        hint="Use 'type=template' or 'type=style&index=<n>'",
    )


def classify(path: str, asset_suffixes: Iterable[str] = DEFAULT_ASSET_SUFFIXES) -> ModuleKind:
    if path == "/":
        return ModuleKind.INDEX
    # The package namespace is reserved: "/@module/chart.js" names a package.
    if path.startswith(MODULE_PREFIX):
        return ModuleKind.PACKAGE
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in SCRIPT_SUFFIXES:
        return ModuleKind.SCRIPT
    if suffix in JSX_SUFFIXES:
        return ModuleKind.JSX
    if suffix in STYLESHEET_SUFFIXES:
        return ModuleKind.STYLESHEET
    if suffix in COMPONENT_SUFFIXES:
        return ModuleKind.COMPONENT
    if suffix in asset_suffixes:
        return ModuleKind.ASSET
    return ModuleKind.OTHER


@dataclass(frozen=True)
class ModuleAddress:
    """Parsed form of one request URL."""

    path: str
    kind: ModuleKind
    query: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)
    view: ComponentView = field(default_factory=MainView)

    @classmethod
    def parse(
        cls,
        path: str,
        query: str = "",
        *,
        asset_suffixes: Iterable[str] = DEFAULT_ASSET_SUFFIXES,
    ) -> "ModuleAddress":
        if not path:
            path = "/"
        if not path.startswith("/"):
            path = "/" + path
        params = parse_query(query)
        kind = classify(path, frozenset(asset_suffixes))
        view: ComponentView = MainView()
        if kind is ModuleKind.COMPONENT:
            view = parse_component_view(params)
        return cls(path=path, kind=kind, query=params, view=view)

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        asset_suffixes: Iterable[str] = DEFAULT_ASSET_SUFFIXES,
    ) -> "ModuleAddress":
        raw_path, _, query = url.partition("?")
        raw_path = raw_path.split("#", 1)[0]
        query = query.split("#", 1)[0]
        return cls.parse(unquote(raw_path), query, asset_suffixes=asset_suffixes)

    @property
    def filename(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def is_import(self) -> bool:
        """True when the resource is requested as a JavaScript side-effect import."""
        return "import" in self.query

    @property
    def package_name(self) -> str:
        if not self.path.startswith(MODULE_PREFIX):
            raise AddressError(f"{self.path} is not a package module address")
        return self.path[len(MODULE_PREFIX):]

    @property
    def identity(self) -> Tuple[str, ComponentView]:
        return (self.path, self.view)

    def with_query(self, **params: str) -> str:
        """Build the URL of a sibling sub-module of this path."""
        if not params:
            return quote(self.path)
        return f"{quote(self.path)}?{urlencode(params)}"

    def view_url(self, view: ComponentView) -> str:
        return self.with_query(**view.query())

    def locate(self, root: Path) -> Path:
        """Map the address onto a file below ``root``."""
        relative = self.path.lstrip("/")
        parts = PurePosixPath(relative).parts
        if "\x00" in relative or any(part == ".." for part in parts):
            raise NotFoundError(f"Refusing to serve {self.path}", path=self.path)
        base = root.resolve()
        target = (base / relative).resolve()
        if target != base and base not in target.parents:
            raise NotFoundError(f"Refusing to serve {self.path}", path=self.path)
        return target


__all__ = [
    "MODULE_PREFIX",
    "ModuleKind",
    "ModuleAddress",
    "MainView",
    "TemplateView",
    "StyleView",
    "ComponentView",
    "classify",
    "parse_query",
    "parse_component_view",
]
