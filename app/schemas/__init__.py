"""
app/schemas package marker.
"""

from app.schemas.pricing_files import (
    DeleteFileResponse,
    HealthResponse,
    PricingFileListResponse,
    PricingFileResponse,
    PricingFileResultsResponse,
    ProcessingAcceptedResponse,
    RejectionLogResponse,
)

__all__ = [
    "DeleteFileResponse",
    "HealthResponse",
    "PricingFileListResponse",
    "PricingFileResponse",
    "PricingFileResultsResponse",
    "ProcessingAcceptedResponse",
    "RejectionLogResponse",
]
