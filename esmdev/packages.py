"""On-demand bundling of installed packages.

A request for ``/@module/<name>`` resolves ``<name>`` inside
``node_modules``, bundles its entry point into one self-contained ESM file
and serves that file.  Artifacts are written to ``<cache_dir>/<name>.js``.

By default every request re-bundles before serving: the output is
deterministic for a given package version, so this costs time but never
correctness.  ``reuse_bundles`` adds the file-exists guard that skips the
rebuild; nothing invalidates such an artifact after a dependency upgrade.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .compilers import Bundler
from .errors import AddressError, CompileError, ResolutionError
from .observability.logging import get_logger

logger = get_logger("esmdev.packages")

ENTRY_FIELDS = ("module", "main")
_SUBPATH_CANDIDATES = ("{}", "{}.js", "{}.mjs", "{}/index.js", "{}/index.mjs")


def split_package_name(specifier: str) -> Tuple[str, str]:
    """Split ``@scope/pkg/sub/path`` into ``("@scope/pkg", "sub/path")``."""
    parts = specifier.split("/")
    if any(part in ("", ".", "..") for part in parts) or "\x00" in specifier:
        raise AddressError(f"Invalid package name {specifier!r}")
    if parts[0].startswith("@"):
        if len(parts) < 2:
            raise AddressError(f"Invalid scoped package name {specifier!r}")
        return "/".join(parts[:2]), "/".join(parts[2:])
    return parts[0], "/".join(parts[1:])


@dataclass(frozen=True)
class PackageEntry:
    name: str
    root: Path
    entry: Path
    field: Optional[str] = None


def read_manifest(package_dir: Path, name: str) -> Dict[str, Any]:
    manifest_path = package_dir / "package.json"
    if not manifest_path.is_file():
        raise ResolutionError(
            f"Package '{name}' has no package.json at {manifest_path}",
            path=name,
            hint="Is the package installed? Run your package manager's install command",
        )
    try:
        return json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ResolutionError(f"Cannot read manifest of package '{name}': {exc}", path=name) from exc


def select_entry(manifest: Dict[str, Any], name: str) -> Tuple[str, str]:
    for field_name in ENTRY_FIELDS:
        value = manifest.get(field_name)
        if isinstance(value, str) and value:
            return field_name, value
    raise ResolutionError(
        f"Package '{name}' declares neither a 'module' nor a 'main' entry",
        path=name,
    )


class PackageTranspileCache:
    """Resolves bare package names to bundled ESM text."""

    def __init__(
        self,
        node_modules: Path,
        cache_dir: Path,
        bundler: Bundler,
        *,
        reuse_bundles: bool = False,
        lock_bundles: bool = True,
    ) -> None:
        self.node_modules = node_modules
        self.cache_dir = cache_dir
        self.bundler = bundler
        self.reuse_bundles = reuse_bundles
        self.lock_bundles = lock_bundles
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def artifact_path(self, name: str) -> Path:
        split_package_name(name)
        base = self.cache_dir.resolve()
        artifact = (base / f"{name}.js").resolve()
        if base not in artifact.parents:
            raise AddressError(f"Package name {name!r} escapes the bundle cache", path=name)
        return artifact

    def locate(self, name: str) -> PackageEntry:
        """Find the entry file of ``name`` (a package or a deep import)."""
        package_name, subpath = split_package_name(name)
        package_dir = self.node_modules / package_name
        if subpath:
            nested = package_dir / subpath
            if (nested / "package.json").is_file():
                field_name, entry = select_entry(read_manifest(nested, name), name)
                return PackageEntry(name=name, root=nested, entry=nested / entry, field=field_name)
            if not package_dir.is_dir():
                raise ResolutionError(f"Package '{package_name}' is not installed", path=name)
            for pattern in _SUBPATH_CANDIDATES:
                candidate = package_dir / pattern.format(subpath)
                if candidate.is_file():
                    return PackageEntry(name=name, root=package_dir, entry=candidate)
            raise ResolutionError(
                f"Cannot resolve '{subpath}' inside package '{package_name}'",
                path=name,
            )
        field_name, entry = select_entry(read_manifest(package_dir, name), name)
        return PackageEntry(name=name, root=package_dir, entry=package_dir / entry, field=field_name)

    def _lock_for(self, name: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = threading.Lock()
                self._locks[name] = lock
            return lock

    def resolve(self, name: str) -> str:
        """Return the bundled text for ``name``, building it first."""
        artifact = self.artifact_path(name)
        if self.reuse_bundles and artifact.is_file():
            logger.debug("Reusing bundle for %s at %s", name, artifact)
            return artifact.read_text(encoding="utf-8")

        # Locks are only created for names that resolve to an installed entry.
        entry = self.locate(name)
        if not self.lock_bundles:
            return self._build(entry, artifact)
        with self._lock_for(name):
            return self._build(entry, artifact)

    def _build(self, entry: PackageEntry, artifact: Path) -> str:
        logger.info("Bundling %s from %s", entry.name, entry.entry)
        try:
            bundled = self.bundler.bundle(entry.entry)
        except CompileError as exc:
            raise CompileError(
                f"Failed to bundle package '{entry.name}': {exc.message}",
                path=entry.name,
                hint=exc.hint,
            ) from exc
        artifact.parent.mkdir(parents=True, exist_ok=True)
        artifact.write_text(bundled, encoding="utf-8")
        return artifact.read_text(encoding="utf-8")


__all__ = [
    "ENTRY_FIELDS",
    "PackageEntry",
    "PackageTranspileCache",
    "read_manifest",
    "select_entry",
    "split_package_name",
]
