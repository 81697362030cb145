"""Unified error model for the module server."""

from __future__ import annotations

from typing import Optional


class ModuleServerError(Exception):
    """Base class for all errors raised while transforming a request."""

    status_code: int = 500
    code: Optional[str] = None
    hint: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        if code is not None:
            self.code = code
        if hint is not None:
            self.hint = hint

    def format(self) -> str:
        components = [self.message]
        meta_parts = []
        if self.path:
            meta_parts.append(self.path)
        if self.code:
            meta_parts.append(self.code)
        if meta_parts:
            components[-1] = f"{components[-1]} ({'; '.join(meta_parts)})"
        if self.hint:
            components.append(f"Hint: {self.hint}")
        return " ".join(part for part in components if part)


class NotFoundError(ModuleServerError):
    """Raised when an address matches no rule or its source file is absent."""

    status_code = 404
    code = "E_NOT_FOUND"


class AddressError(ModuleServerError):
    """Raised for malformed query parameters (bad ``type``/``index`` pairs)."""

    code = "E_ADDRESS"


class CompileError(ModuleServerError):
    """Raised when an external compiler or bundler rejects its input."""

    code = "E_COMPILE"


class ResolutionError(ModuleServerError):
    """Raised when a package manifest or its entry field cannot be found."""

    code = "E_RESOLUTION"


__all__ = [
    "ModuleServerError",
    "NotFoundError",
    "AddressError",
    "CompileError",
    "ResolutionError",
]
