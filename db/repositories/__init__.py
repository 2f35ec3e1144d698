"""
Repository layer exports.
"""

from db.repositories.errors import (
    FileStorageError,
    ProductPersistenceError,
    RepositoryError,
    StoredObjectNotFoundError,
    UploadValidationError,
)
from db.repositories.parameter_repository import ParameterRepository
from db.repositories.pricing_file_repository import PricingFileRepository
from db.repositories.product_repository import ProductRepository
from db.repositories.rejection_log_repository import RejectionLogRepository
from db.repositories.storage import FileStorageBackend, LocalFileStorage, S3FileStorage
from db.repositories.types import ProductCreate, RejectionLogCreate

__all__ = [
    "ParameterRepository",
    "PricingFileRepository",
    "ProductRepository",
    "RejectionLogRepository",
    "ProductCreate",
    "RejectionLogCreate",
    "FileStorageBackend",
    "LocalFileStorage",
    "S3FileStorage",
    "RepositoryError",
    "FileStorageError",
    "StoredObjectNotFoundError",
    "ProductPersistenceError",
    "UploadValidationError",
]
