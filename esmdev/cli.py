"""
Command line interface for esmdev.

``esmdev serve`` starts the development module server under uvicorn;
``esmdev bundle`` pre-builds package artifacts into the bundle cache.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .compilers import Toolchain
from .config import Settings
from .errors import ModuleServerError
from .observability.logging import LEVELS, configure_logging
from .packages import PackageTranspileCache


def check_uvicorn_available() -> bool:
    try:
        import uvicorn  # noqa: F401
        return True
    except ImportError:
        return False


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Layer explicit command line options over environment settings."""
    overrides: Dict[str, Any] = {}
    if getattr(args, "root", None):
        overrides["root"] = Path(args.root)
    if getattr(args, "host", None):
        overrides["host"] = args.host
    if getattr(args, "port", None) is not None:
        overrides["port"] = args.port
    if getattr(args, "log_level", None):
        overrides["log_level"] = args.log_level
    if getattr(args, "reuse_bundles", False):
        overrides["reuse_bundles"] = True
    if getattr(args, "cache_dir", None):
        overrides["cache_dir"] = args.cache_dir
    return Settings(**overrides)


def cmd_serve(args: argparse.Namespace) -> int:
    settings = settings_from_args(args)
    logger = configure_logging(settings.log_level)
    if not check_uvicorn_available():
        print("Error: uvicorn is not installed", file=sys.stderr)
        print("Install with: pip install uvicorn[standard]", file=sys.stderr)
        return 1

    import uvicorn

    from .server import create_app

    root = settings.project_root
    if not root.is_dir():
        print(f"Error: project root does not exist: {root}", file=sys.stderr)
        return 2
    if not settings.index_path.is_file():
        logger.warning("No %s under %s; '/' will answer 404", settings.index_file, root)

    app = create_app(settings)
    print(f"Serving {root}")
    print(f"  Open: http://{settings.host}:{settings.port}/")
    print("Press CTRL+C to stop\n")
    log_level = settings.log_level.lower()
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning" if log_level == "warn" else log_level,
    )
    return 0


def cmd_bundle(args: argparse.Namespace) -> int:
    settings = settings_from_args(args)
    configure_logging(settings.log_level)
    toolchain = Toolchain.from_settings(settings)
    cache = PackageTranspileCache(
        settings.node_modules_path,
        settings.cache_path,
        toolchain.bundler,
        reuse_bundles=settings.reuse_bundles,
        lock_bundles=False,
    )
    failures = 0
    for name in args.packages:
        try:
            cache.resolve(name)
        except ModuleServerError as exc:
            failures += 1
            print(f"✗ {name}: {exc.format()}", file=sys.stderr)
            continue
        print(f"✓ {name} -> {cache.artifact_path(name)}")
    return 1 if failures else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="esmdev",
        description="Serve a project as native ES modules, transformed on request",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--root", help="Project directory to serve (default: current directory)")
    common.add_argument(
        "--log-level",
        choices=sorted(LEVELS),
        default=None,
        help="Logging level (or set ESMDEV_LOG_LEVEL)",
    )
    common.add_argument("--cache-dir", help="Directory for bundled package artifacts")
    common.add_argument(
        "--reuse-bundles",
        action="store_true",
        help="Serve an existing package bundle instead of rebuilding it",
    )

    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", parents=[common], help="Start the dev module server")
    serve_parser.add_argument("--host", default=None, help="Interface to bind")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind")
    serve_parser.set_defaults(func=cmd_serve)

    bundle_parser = subparsers.add_parser(
        "bundle", parents=[common], help="Pre-build package bundles into the cache"
    )
    bundle_parser.add_argument("packages", nargs="+", help="Bare package names, e.g. vue or lodash-es")
    bundle_parser.set_defaults(func=cmd_bundle)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    if argv is None:
        argv = sys.argv[1:]
    # Bare invocation serves the current directory.
    if not argv or (argv[0].startswith("-") and argv[0] not in ("-h", "--help", "--version")):
        argv = ["serve"] + list(argv)
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        sys.exit(2)
    sys.exit(args.func(args))


__all__ = ["main", "build_parser", "cmd_serve", "cmd_bundle", "settings_from_args"]
