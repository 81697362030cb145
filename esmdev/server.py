"""FastAPI application serving transformed modules."""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, Response

from . import __version__
from .compilers import Toolchain
from .config import Settings, get_settings
from .router import ModuleRouter

# ESM graphs are re-fetched on every reload; stale modules are worse than slow ones.
NO_CACHE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
    "Expires": "0",
}

HEALTH_PATH = "/__esmdev/health"


def create_app(
    settings: Optional[Settings] = None,
    toolchain: Optional[Toolchain] = None,
    router: Optional[ModuleRouter] = None,
) -> FastAPI:
    """Build the application around one :class:`ModuleRouter`."""
    settings = settings or get_settings()
    module_router = router or ModuleRouter(settings, toolchain)

    app = FastAPI(
        title="esmdev",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.module_router = module_router

    @app.get(HEALTH_PATH)
    async def health():
        return {"status": "ok", "root": str(settings.project_root), "version": __version__}

    # Sync handler: FastAPI runs it in the threadpool, compilers block.
    @app.get("/{full_path:path}")
    def serve_module(full_path: str, request: Request) -> Response:
        result = module_router.respond(request.url.path, request.url.query)
        if result.file_path is not None:
            return FileResponse(result.file_path, headers=NO_CACHE_HEADERS)
        return Response(
            content=result.body,
            status_code=result.status,
            media_type=result.content_type,
            headers=NO_CACHE_HEADERS,
        )

    return app


__all__ = ["create_app", "NO_CACHE_HEADERS", "HEALTH_PATH"]
