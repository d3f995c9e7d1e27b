"""Exceptions raised by the export pipeline."""

from __future__ import annotations


class ExportError(RuntimeError):
    """Base class for export failures."""


class ExportValidationError(ExportError, ValueError):
    """Raised when an export request is incomplete or malformed."""


class ExportRenderError(ExportError):
    """Raised when a back-end fails; no partial artifact is produced.

    Attributes
    ----------
    message : str
        Generic, user-facing reason such as ``"Failed to generate PDF"``.
    details : str
        Diagnostic detail taken from the underlying error.
    """

    def __init__(self, message: str, details: str = "") -> None:
        super().__init__(f"{message}: {details}" if details else message)
        self.message = message
        self.details = details


class ExportInProgressError(ExportError):
    """Raised when a session already has an export in flight."""


__all__ = [
    "ExportError",
    "ExportInProgressError",
    "ExportRenderError",
    "ExportValidationError",
]
