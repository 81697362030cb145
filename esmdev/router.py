"""Module transform router.

:class:`ModuleRouter` maps one :class:`ModuleAddress` onto the pipeline that
makes it browser-loadable.  Rules are evaluated in a fixed priority order:

1. ``/``                         -> entry HTML document
2. ``/@module/<pkg>``            -> bundled package
3. ``*.js`` / ``*.mjs``          -> bare-import rewrite
4. ``*.jsx``                     -> JSX transform, then rewrite
5. ``*.css``                     -> raw CSS, or CSS injector with ``?import``
6. ``*.vue``                     -> component view
7. image asset with ``?import``  -> ``export default "<path>"``
8. anything else                 -> static file or 404

:meth:`ModuleRouter.respond` is the error boundary: no pipeline exception
leaves it, every failure becomes a buffered plain-text response.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .address import ModuleAddress, ModuleKind
from .compilers import Toolchain
from .config import Settings
from .css import CSS_CONTENT_TYPE, css_to_module
from .descriptor import parse_component
from .errors import ModuleServerError, NotFoundError
from .observability.logging import get_logger, log_transform_event
from .packages import PackageTranspileCache
from .rewriter import rewrite_imports
from .sfc import compose_component

JS_CONTENT_TYPE = "application/javascript"
HTML_CONTENT_TYPE = "text/html"
TEXT_CONTENT_TYPE = "text/plain"

logger = get_logger("esmdev.router")


@dataclass
class ModuleResponse:
    body: str
    content_type: str
    status: int = 200
    file_path: Optional[Path] = None

    @classmethod
    def javascript(cls, body: str) -> "ModuleResponse":
        return cls(body=body, content_type=JS_CONTENT_TYPE)

    @classmethod
    def error(cls, status: int, message: str) -> "ModuleResponse":
        return cls(body=message, content_type=TEXT_CONTENT_TYPE, status=status)

    @classmethod
    def static(cls, path: Path) -> "ModuleResponse":
        return cls(body="", content_type="", file_path=path)


class ModuleRouter:
    """Dispatches addresses to the transform pipelines."""

    def __init__(
        self,
        settings: Settings,
        toolchain: Optional[Toolchain] = None,
        packages: Optional[PackageTranspileCache] = None,
    ) -> None:
        self.settings = settings
        self.root = settings.project_root
        self.toolchain = toolchain or Toolchain.from_settings(settings)
        self.asset_suffixes = settings.asset_suffixes()
        self.packages = packages or PackageTranspileCache(
            settings.node_modules_path,
            settings.cache_path,
            self.toolchain.bundler,
            reuse_bundles=settings.reuse_bundles,
            lock_bundles=settings.lock_bundles,
        )

    # -- boundary ------------------------------------------------------

    def address(self, path: str, query: str = "") -> ModuleAddress:
        return ModuleAddress.parse(path, query, asset_suffixes=self.asset_suffixes)

    def respond(self, path: str, query: str = "") -> ModuleResponse:
        """Handle one request; never raises."""
        started = time.perf_counter()
        kind = "unknown"
        try:
            address = self.address(path, query)
            kind = address.kind.value
            response = self.handle(address)
            if response is None:
                response = self.serve_static(address)
        except ModuleServerError as exc:
            response = ModuleResponse.error(exc.status_code, str(exc))
            error = exc.format()
        except Exception as exc:
            logger.exception("Unhandled error while transforming %s", path)
            response = ModuleResponse.error(500, str(exc) or exc.__class__.__name__)
            error = repr(exc)
        else:
            error = None
        log_transform_event(
            path=path,
            kind=kind,
            status=response.status,
            elapsed=time.perf_counter() - started,
            error=error if response.status >= 500 else None,
        )
        return response

    # -- dispatch ------------------------------------------------------

    def handle(self, address: ModuleAddress) -> Optional[ModuleResponse]:
        """Apply the first matching rule; ``None`` when no rule matches."""
        kind = address.kind
        if kind is ModuleKind.INDEX:
            return self.serve_index()
        if kind is ModuleKind.PACKAGE:
            return ModuleResponse.javascript(self.packages.resolve(address.package_name))
        if kind is ModuleKind.SCRIPT:
            return ModuleResponse.javascript(self.transform_script(address))
        if kind is ModuleKind.JSX:
            return ModuleResponse.javascript(self.transform_jsx(address))
        if kind is ModuleKind.STYLESHEET:
            return self.transform_stylesheet(address)
        if kind is ModuleKind.COMPONENT:
            return ModuleResponse.javascript(self.transform_component(address))
        if kind is ModuleKind.ASSET and address.is_import:
            return ModuleResponse.javascript(f"export default {json.dumps(address.path)}\n")
        return None

    # -- pipelines -----------------------------------------------------

    def read_source(self, address: ModuleAddress) -> str:
        target = address.locate(self.root)
        if not target.is_file():
            raise NotFoundError(f"File not found: {address.path}", path=address.path)
        return target.read_text(encoding="utf-8")

    def serve_index(self) -> ModuleResponse:
        index = self.settings.index_path
        if not index.is_file():
            raise NotFoundError(f"Entry document not found: {self.settings.index_file}")
        return ModuleResponse(body=index.read_text(encoding="utf-8"), content_type=HTML_CONTENT_TYPE)

    def transform_script(self, address: ModuleAddress) -> str:
        return rewrite_imports(self.read_source(address), asset_suffixes=self.asset_suffixes)

    def transform_jsx(self, address: ModuleAddress) -> str:
        source = self.read_source(address)
        code = self.toolchain.transpiler.transform(source, address.filename)
        return rewrite_imports(code, asset_suffixes=self.asset_suffixes)

    def transform_stylesheet(self, address: ModuleAddress) -> ModuleResponse:
        css = self.read_source(address)
        if address.is_import:
            return ModuleResponse.javascript(css_to_module(css))
        return ModuleResponse(body=css, content_type=CSS_CONTENT_TYPE)

    def transform_component(self, address: ModuleAddress) -> str:
        descriptor = parse_component(self.read_source(address), address.filename)
        return compose_component(
            address,
            descriptor,
            self.toolchain,
            asset_suffixes=self.asset_suffixes,
        )

    def serve_static(self, address: ModuleAddress) -> ModuleResponse:
        target = address.locate(self.root)
        if target.is_file():
            return ModuleResponse.static(target)
        raise NotFoundError("Not found", path=address.path)


__all__ = ["ModuleRouter", "ModuleResponse", "JS_CONTENT_TYPE", "HTML_CONTENT_TYPE"]
