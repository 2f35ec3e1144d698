"""
app/errors.py

Exception taxonomy for pricing file ingestion.

Row-scoped problems (record validation, persistence, unexpected per-row
failures) never surface as exceptions from the orchestrator; they become
rejection log entries. Everything here either aborts a whole file or is a
lifecycle precondition failure reported to the caller.
"""

from __future__ import annotations

import uuid


class PricingIngestionError(Exception):
    """Base exception for pricing ingestion failures."""


class WorkbookParseError(PricingIngestionError):
    """Raised when workbook bytes cannot be read as a spreadsheet."""


class StructuralValidationError(PricingIngestionError):
    """
    Raised when workbook headers fail structure validation.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class CatalogLoadError(PricingIngestionError):
    """Raised when the parameter catalog cannot be loaded."""


class FatalIngestionError(PricingIngestionError):
    """
    Raised when processing of a whole file aborts; the file is marked FAILED.
    """

    def __init__(self, file_id: uuid.UUID, message: str) -> None:
        super().__init__(message)
        self.file_id = file_id


class PricingFileNotFoundError(PricingIngestionError):
    """Raised when a referenced pricing file does not exist."""


class FileAlreadyProcessingError(PricingIngestionError):
    """Raised when processing is triggered for a file already in PROCESSING."""


class FileAlreadyProcessedError(PricingIngestionError):
    """Raised when processing is triggered for a file that already completed."""


class FileValidationFailedError(PricingIngestionError):
    """
    Raised when processing is triggered for a file whose structure validation
    previously failed.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(f"File validation previously failed: {reason}")
        self.reason = reason


class FileNotDeletableError(PricingIngestionError):
    """Raised when deleting a file outside PENDING or FAILED status."""


class UnsupportedFileTypeError(PricingIngestionError):
    """Raised when an upload is empty, too large, or not an Excel workbook."""
