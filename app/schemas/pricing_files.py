"""
Schemas for pricing file upload, processing and results endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PricingFileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    filename: str
    original_name: str
    file_size: int
    content_type: str | None = None
    status: str
    records_processed: int
    records_rejected: int
    processing_started_at: datetime | None = None
    processing_completed_at: datetime | None = None
    validation_error: str | None = None
    created_at: datetime
    updated_at: datetime


class PricingFileListResponse(BaseModel):
    files: list[PricingFileResponse] = Field(default_factory=list)


class ProcessingAcceptedResponse(BaseModel):
    file_id: UUID
    status: str
    message: str = "File processing started"


class RejectionLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    row_number: int
    reason_code: str
    reason_description: str
    rejected_data: dict[str, Any] | None = None
    created_at: datetime


class PricingFileResultsResponse(BaseModel):
    file: PricingFileResponse
    rejection_logs: list[RejectionLogResponse] = Field(default_factory=list)


class DeleteFileResponse(BaseModel):
    file_id: UUID
    message: str = "File deleted successfully"


class HealthResponse(BaseModel):
    status: str
