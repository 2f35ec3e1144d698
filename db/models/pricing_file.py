"""
db/models/pricing_file.py

Uploaded pricing workbook and its ingestion lifecycle state.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, JSONType, TimestampMixin

if TYPE_CHECKING:
    from db.models.rejection_log import RejectionLog


class PricingFileStatus:
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    COMPLETED_WITH_ERRORS = "COMPLETED_WITH_ERRORS"
    FAILED = "FAILED"

    TERMINAL = frozenset({COMPLETED, COMPLETED_WITH_ERRORS, FAILED})
    DELETABLE = frozenset({PENDING, FAILED})


class PricingFile(Base, TimestampMixin):
    __tablename__ = "pricing_files"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    storage_key: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        comment="Object key in the configured byte store",
    )
    content_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=PricingFileStatus.PENDING,
    )
    records_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    records_rejected: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processing_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    processing_completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    parameter_names: Mapped[list[str] | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="Normalized parameter names captured at structure validation",
    )
    validation_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    rejection_logs: Mapped[list[RejectionLog]] = relationship(
        back_populates="file",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RejectionLog.row_number",
    )

    __table_args__ = (
        Index("ix_pricing_files_status", "status"),
        Index("ix_pricing_files_created_at", "created_at"),
    )
