"""Custom exceptions for the pipeline CRM."""

from __future__ import annotations

from typing import Any


class PipelineCRMError(Exception):
    """Base exception for the pipeline CRM."""

    pass


class ValidationError(PipelineCRMError):
    """Raised when a payload fails validation (e.g. a missing name)."""

    pass


class NotFoundError(PipelineCRMError):
    """Raised when operating on an unknown or deleted prospect id."""

    pass


class StoreWriteError(PipelineCRMError):
    """Raised when the store rejects a write or cannot serve a read."""

    pass


class PartialWriteError(PipelineCRMError):
    """Raised when the prospect update persisted but the history insert failed.

    The prospect update is not rolled back; ``prospect`` holds the updated row
    and ``changes`` the field changes whose history could not be written.
    """

    def __init__(self, message: str, prospect: Any = None, changes: list | None = None) -> None:
        super().__init__(message)
        self.prospect = prospect
        self.changes = list(changes or [])


class ConfigurationError(PipelineCRMError):
    """Raised when configuration is invalid."""

    pass
