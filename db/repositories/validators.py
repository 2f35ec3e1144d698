"""
Validation helpers for workbook upload flows.
"""

from __future__ import annotations

from pathlib import Path

from db.repositories.errors import UploadValidationError

ALLOWED_EXTENSIONS = {".xlsx"}
ALLOWED_CONTENT_TYPES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/octet-stream",
}


def validate_upload_payload(
    *,
    file_name: str,
    content: bytes,
    content_type: str | None,
    max_size_bytes: int,
) -> None:
    """
    Validate a workbook upload before storage and DB persistence.
    """

    if not file_name or not file_name.strip():
        raise UploadValidationError("file_name is required.")

    extension = Path(file_name).suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise UploadValidationError(
            f"Unsupported file type '{extension}'. Only Excel workbooks (.xlsx) are allowed."
        )

    if content_type and content_type.lower() not in ALLOWED_CONTENT_TYPES:
        raise UploadValidationError(
            f"Unsupported content_type '{content_type}'."
        )

    if not content:
        raise UploadValidationError("Uploaded file content is empty.")

    if len(content) > max_size_bytes:
        raise UploadValidationError("Uploaded file exceeds configured size limit.")
