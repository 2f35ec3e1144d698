"""
Repository for pricing file lifecycle persistence and status lookup.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.pricing_file import PricingFile, PricingFileStatus


class PricingFileRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_file(
        self,
        *,
        file_id: uuid.UUID,
        filename: str,
        original_name: str,
        file_size: int,
        storage_key: str,
        content_type: str | None = None,
    ) -> PricingFile:
        pricing_file = PricingFile(
            id=file_id,
            filename=filename,
            original_name=original_name,
            file_size=file_size,
            storage_key=storage_key,
            content_type=content_type,
            status=PricingFileStatus.PENDING,
            records_processed=0,
            records_rejected=0,
        )
        self._session.add(pricing_file)
        self._session.flush()
        self._session.refresh(pricing_file)
        return pricing_file

    def get_file(self, file_id: uuid.UUID) -> PricingFile | None:
        return self._session.get(PricingFile, file_id)

    def get_file_for_update(self, file_id: uuid.UUID) -> PricingFile | None:
        stmt = (
            select(PricingFile)
            .where(PricingFile.id == file_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._session.scalars(stmt).one_or_none()

    def list_files(
        self,
        *,
        limit: int = 100,
        status: str | None = None,
    ) -> list[PricingFile]:
        stmt: Select[tuple[PricingFile]] = select(PricingFile)
        if status:
            stmt = stmt.where(PricingFile.status == status)
        stmt = stmt.order_by(PricingFile.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def mark_processing(
        self,
        *,
        file_id: uuid.UUID,
        parameter_names: Sequence[str],
    ) -> PricingFile | None:
        pricing_file = self.get_file(file_id)
        if pricing_file is None:
            return None
        pricing_file.status = PricingFileStatus.PROCESSING
        pricing_file.processing_started_at = datetime.now(timezone.utc)
        pricing_file.processing_completed_at = None
        pricing_file.parameter_names = list(parameter_names)
        pricing_file.records_processed = 0
        pricing_file.records_rejected = 0
        pricing_file.validation_error = None
        return pricing_file

    def mark_structure_failed(
        self,
        *,
        file_id: uuid.UUID,
        reason: str,
    ) -> PricingFile | None:
        pricing_file = self.get_file(file_id)
        if pricing_file is None:
            return None
        now = datetime.now(timezone.utc)
        pricing_file.status = PricingFileStatus.FAILED
        pricing_file.processing_started_at = now
        pricing_file.processing_completed_at = now
        pricing_file.validation_error = reason
        return pricing_file

    def mark_finished(
        self,
        *,
        file_id: uuid.UUID,
        status: str,
        records_processed: int,
        records_rejected: int,
        error_message: str | None = None,
    ) -> PricingFile | None:
        pricing_file = self.get_file(file_id)
        if pricing_file is None:
            return None
        pricing_file.status = status
        pricing_file.processing_completed_at = datetime.now(timezone.utc)
        pricing_file.records_processed = records_processed
        pricing_file.records_rejected = records_rejected
        if error_message is not None:
            pricing_file.validation_error = error_message
        return pricing_file

    def delete_file(self, pricing_file: PricingFile) -> None:
        self._session.delete(pricing_file)
        self._session.flush()
