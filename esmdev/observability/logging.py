"""Centralised logging helpers for the module server."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

_LOGGER_CACHE: Dict[str, logging.Logger] = {}

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def get_logger(name: str = "esmdev") -> logging.Logger:
    """Return a cached :class:`logging.Logger` instance."""

    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = logging.getLogger(name)
    return _LOGGER_CACHE[name]


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a console handler to the ``esmdev`` logger once."""

    numeric_level = LEVELS.get((level or "info").lower(), logging.INFO)
    logger = get_logger("esmdev")
    logger.setLevel(numeric_level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        # Prevent propagation to root logger to avoid duplicate messages
        logger.propagate = False
    return logger


def log_transform_event(
    *,
    path: str,
    kind: str,
    status: int,
    elapsed: float,
    error: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
    extras: Optional[Dict[str, Any]] = None,
) -> None:
    """Emit a structured log entry for one handled request."""

    payload: Dict[str, Any] = {
        "path": path,
        "kind": kind,
        "status": status,
        "elapsed_ms": round(elapsed * 1000, 2),
    }
    if error:
        payload["error"] = error
    if extras:
        payload.update(extras)
    target_logger = logger or get_logger("esmdev.router")
    level = logging.ERROR if status >= 500 else logging.DEBUG
    target_logger.log(
        level,
        "%s %s -> %s",
        kind,
        path,
        status,
        extra={"esmdev_event": "transform", "esmdev_data": payload},
    )
