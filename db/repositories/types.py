"""
Typed DTOs used by repository persistence flows.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ProductCreate:
    """
    One accepted pricing row ready for product persistence.

    Dates are passed as they came out of the workbook and coerced by the
    repository; ``expiry_date`` may be empty.
    """

    price_record_name: str
    effective_date: Any
    expiry_date: Any
    parameters: dict[str, str]
    values: dict[str, Any]
    source_file_id: uuid.UUID | None = None
    source_row_number: int | None = None


@dataclass(frozen=True)
class RejectionLogCreate:
    """
    One rejected row awaiting its rejection log write.
    """

    file_id: uuid.UUID
    row_number: int
    reason_code: str
    reason_description: str
    rejected_data: dict[str, Any] | None = None
    log_id: uuid.UUID = field(default_factory=uuid.uuid4)
