"""
app/services package marker.
"""

from app.services.file_processing_service import FileProcessingService
from app.services.pricing_file_service import (
    FastAPIBackgroundTaskExecutor,
    IngestionTaskExecutor,
    PricingFileResults,
    PricingFileService,
    get_parameter_catalog,
    get_pricing_file_service,
)

__all__ = [
    "FastAPIBackgroundTaskExecutor",
    "FileProcessingService",
    "IngestionTaskExecutor",
    "PricingFileResults",
    "PricingFileService",
    "get_parameter_catalog",
    "get_pricing_file_service",
]
