"""
Append-only persistence for rejected pricing rows.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.rejection_log import RejectionLog
from db.repositories.types import RejectionLogCreate


class RejectionLogRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, entry: RejectionLogCreate) -> RejectionLog:
        log = RejectionLog(
            id=entry.log_id,
            file_id=entry.file_id,
            row_number=entry.row_number,
            reason_code=entry.reason_code,
            reason_description=entry.reason_description,
            rejected_data=entry.rejected_data,
        )
        self._session.add(log)
        self._session.flush()
        return log

    def list_for_file(self, file_id: uuid.UUID) -> list[RejectionLog]:
        stmt = (
            select(RejectionLog)
            .where(RejectionLog.file_id == file_id)
            .order_by(RejectionLog.row_number, RejectionLog.created_at)
        )
        return list(self._session.scalars(stmt).all())
