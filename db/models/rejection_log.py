"""
db/models/rejection_log.py

Append-only log of rows rejected during pricing file ingestion.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, JSONType

if TYPE_CHECKING:
    from db.models.pricing_file import PricingFile


class RejectionReasonCode:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"


class RejectionLog(Base):
    __tablename__ = "rejection_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    file_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("pricing_files.id", ondelete="CASCADE"),
        nullable=False,
    )
    row_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="1-based worksheet row, header rows included",
    )
    reason_code: Mapped[str] = mapped_column(String(32), nullable=False)
    reason_description: Mapped[str] = mapped_column(Text, nullable=False)
    rejected_data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    file: Mapped[PricingFile] = relationship(back_populates="rejection_logs")

    __table_args__ = (
        Index("ix_rejection_logs_file_id_row_number", "file_id", "row_number"),
    )
