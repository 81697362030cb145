"""Observability helpers for the module server."""

from .logging import get_logger, log_transform_event

__all__ = ["get_logger", "log_transform_event"]
