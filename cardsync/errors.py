"""
Exceptions raised by CardSync.

Recognizers raise ExtractionFailure, sheet adapters raise SheetAccessError,
and the save service wraps failed writes in SheetSaveError.
"""

from typing import Any, Dict, Optional


class CardSyncError(Exception):
    """Base exception for all CardSync errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ExtractionFailure(CardSyncError):
    """The OCR collaborator could not produce usable text."""

    pass


class SheetAccessError(CardSyncError):
    """A sheet backend call failed (auth, network, not found, write)."""

    pass


class SheetSaveError(CardSyncError):
    """Writing a record to a sheet failed."""

    def __init__(self, message: str, stage: str, backend: Optional[str] = None) -> None:
        """Initialize with the save stage that failed."""
        details = {"stage": stage}
        if backend:
            details["backend"] = backend
        super().__init__(message, details)
        self.stage = stage


class SheetConfigurationError(CardSyncError):
    """Sheet provider is unknown or its configuration is incomplete."""

    pass
