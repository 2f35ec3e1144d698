"""
Repository-layer exceptions for file storage and persistence flows.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for repository failures."""


class FileStorageError(RepositoryError):
    """Raised when storing, reading or deleting stored file bytes fails."""


class StoredObjectNotFoundError(FileStorageError):
    """Raised when a storage key has no stored object."""


class ProductPersistenceError(RepositoryError):
    """Raised when an accepted pricing row cannot be stored as a product."""


class UploadValidationError(RepositoryError):
    """Raised when an uploaded workbook payload is rejected before storage."""
