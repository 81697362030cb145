"""Runtime configuration for the module server."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Union

from pydantic_settings import BaseSettings

DEFAULT_ASSET_EXTENSIONS = ["png", "jpg", "jpeg", "gif", "svg", "ico", "webp"]


class Settings(BaseSettings):
    """Server settings, overridable through ``ESMDEV_*`` environment variables."""

    # Project
    root: Path = Path(".")
    index_file: str = "index.html"
    node_modules_dir: str = "node_modules"

    # HTTP
    host: str = "127.0.0.1"
    port: int = 3000

    # Package bundles
    cache_dir: str = "esbuild"
    reuse_bundles: bool = False
    lock_bundles: bool = True

    # Static assets imported from JavaScript
    asset_extensions: List[str] = DEFAULT_ASSET_EXTENSIONS

    # External tools
    esbuild_bin: str = "esbuild"
    node_bin: str = "node"
    jsx_factory: Optional[str] = None
    jsx_fragment: Optional[str] = None
    tool_timeout: Optional[float] = None

    log_level: str = "info"

    class Config:
        env_prefix = "ESMDEV_"
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def project_root(self) -> Path:
        return self.root.resolve()

    def resolve_path(self, value: Union[str, Path]) -> Path:
        """Anchor ``value`` at the project root unless it is already absolute."""
        path = Path(value)
        if path.is_absolute():
            return path
        return self.project_root / path

    @property
    def index_path(self) -> Path:
        return self.resolve_path(self.index_file)

    @property
    def node_modules_path(self) -> Path:
        return self.resolve_path(self.node_modules_dir)

    @property
    def cache_path(self) -> Path:
        return self.resolve_path(self.cache_dir)

    def asset_suffixes(self) -> frozenset:
        return frozenset("." + ext.lower().lstrip(".") for ext in self.asset_extensions)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
