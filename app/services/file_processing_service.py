"""
Processing of one uploaded pricing workbook into products and rejection logs.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.orm import Session, sessionmaker

from app.domain.pricing_submission import (
    ParameterDefinition,
    ParsedRecord,
    ProcessingSummary,
    RowRejection,
)
from app.errors import FatalIngestionError, PricingFileNotFoundError
from app.logging_utils import log_event
from app.mappers.product_value_structurer import structure_product_values
from app.parsers.workbook_parser import WorkbookParser
from app.validators.parameter_catalog import ParameterCatalog
from app.validators.record_validator import RecordValidator
from db.models.pricing_file import PricingFileStatus
from db.models.rejection_log import RejectionReasonCode
from db.repositories.pricing_file_repository import PricingFileRepository
from db.repositories.product_repository import ProductRepository
from db.repositories.rejection_log_repository import RejectionLogRepository
from db.repositories.storage import FileStorageBackend
from db.repositories.types import ProductCreate, RejectionLogCreate

logger = logging.getLogger(__name__)


class FileProcessingService:
    """
    Runs parse, validate, structure and persist for every row of a file.

    Each accepted row commits in its own transaction; row failures become
    rejection logs and never stop the batch.
    """

    def __init__(
        self,
        *,
        storage: FileStorageBackend,
        catalog: ParameterCatalog,
        session_factory: sessionmaker[Session] | None = None,
        parser: WorkbookParser | None = None,
        record_validator: RecordValidator | None = None,
        log_row_events: bool = False,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._storage = storage
        self._catalog = catalog
        self._parser = parser or WorkbookParser()
        self._record_validator = record_validator or RecordValidator(catalog=catalog)
        self._log_row_events = log_row_events

    def process_file(self, file_id: uuid.UUID) -> ProcessingSummary:
        log_event(logger, logging.INFO, "pricing_file_processing_started", file_id=file_id)
        try:
            summary = self._process(file_id)
        except PricingFileNotFoundError:
            raise
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            self._mark_failed(file_id=file_id, message=message)
            raise FatalIngestionError(file_id, message) from exc

        log_event(
            logger,
            logging.INFO,
            "pricing_file_processing_finished",
            file_id=file_id,
            status=summary.status,
            total_records=summary.total_records,
            success_count=summary.success_count,
            failure_count=summary.failure_count,
        )
        return summary

    def _process(self, file_id: uuid.UUID) -> ProcessingSummary:
        with self._session_factory() as db:
            pricing_file = PricingFileRepository(db).get_file(file_id)
            if pricing_file is None:
                raise PricingFileNotFoundError(f"Pricing file not found: {file_id}")
            storage_key = pricing_file.storage_key
            parameter_names = list(pricing_file.parameter_names or [])

        self._catalog.initialize()
        parameter_map = (
            self._catalog.build_parameter_map(parameter_names) if parameter_names else None
        )

        content = self._storage.get(storage_key)
        records = self._parser.parse(content)
        logger.info("Parsed %d records from pricing file id=%s", len(records), file_id)

        success_count = 0
        rejections: list[RowRejection] = []
        for record in records:
            rejection = self._process_record(file_id, record, parameter_map)
            if rejection is None:
                success_count += 1
            else:
                rejections.append(rejection)

        self._write_rejection_logs(file_id, rejections)

        total_records = len(records)
        failure_count = len(rejections)
        if total_records == 0 or success_count == 0:
            status = PricingFileStatus.FAILED
        elif failure_count == 0:
            status = PricingFileStatus.COMPLETED
        else:
            status = PricingFileStatus.COMPLETED_WITH_ERRORS

        with self._session_factory() as db, db.begin():
            PricingFileRepository(db).mark_finished(
                file_id=file_id,
                status=status,
                records_processed=total_records,
                records_rejected=failure_count,
            )

        return ProcessingSummary(
            file_id=file_id,
            status=status,
            total_records=total_records,
            success_count=success_count,
            failure_count=failure_count,
            rejections=rejections,
        )

    def _process_record(
        self,
        file_id: uuid.UUID,
        record: ParsedRecord,
        parameter_map: dict[str, ParameterDefinition] | None,
    ) -> RowRejection | None:
        try:
            outcome = self._record_validator.validate_record(record, parameter_map)
            if not outcome.is_valid:
                self._log_row(file_id, record.row_number, RejectionReasonCode.VALIDATION_ERROR)
                return RowRejection(
                    row_number=record.row_number,
                    reason_code=RejectionReasonCode.VALIDATION_ERROR,
                    reason_description=outcome.reason or "Validation failed",
                    rejected_data=record.to_payload(),
                )

            payload = ProductCreate(
                price_record_name=str(record.metadata.get("PRICERECORDNAME")).strip(),
                effective_date=record.metadata.get("EFFECTIVEDATE"),
                expiry_date=record.metadata.get("EXPIRYDATE"),
                parameters=outcome.parameters or {},
                values=structure_product_values(outcome.values or {}),
                source_file_id=file_id,
                source_row_number=record.row_number,
            )
            try:
                with self._session_factory() as db, db.begin():
                    ProductRepository(db).create_product(payload)
            except Exception as exc:
                logger.warning(
                    "Failed to persist product row=%d file_id=%s error=%s",
                    record.row_number,
                    file_id,
                    exc,
                )
                self._log_row(file_id, record.row_number, RejectionReasonCode.DATABASE_ERROR)
                return RowRejection(
                    row_number=record.row_number,
                    reason_code=RejectionReasonCode.DATABASE_ERROR,
                    reason_description=f"Database error: {exc}",
                    rejected_data=record.to_payload(),
                )
        except Exception as exc:
            logger.exception("Unexpected error processing row=%d file_id=%s", record.row_number, file_id)
            return RowRejection(
                row_number=record.row_number,
                reason_code=RejectionReasonCode.PROCESSING_ERROR,
                reason_description=f"Internal processing error: {exc}",
                rejected_data=record.to_payload(),
            )

        self._log_row(file_id, record.row_number, "ACCEPTED")
        return None

    def _write_rejection_logs(self, file_id: uuid.UUID, rejections: list[RowRejection]) -> None:
        for rejection in rejections:
            entry = RejectionLogCreate(
                file_id=file_id,
                row_number=rejection.row_number,
                reason_code=rejection.reason_code,
                reason_description=rejection.reason_description,
                rejected_data=rejection.rejected_data,
            )
            try:
                with self._session_factory() as db, db.begin():
                    RejectionLogRepository(db).add(entry)
            except Exception:
                logger.exception(
                    "Failed to write rejection log row=%d file_id=%s",
                    rejection.row_number,
                    file_id,
                )

    def _mark_failed(self, *, file_id: uuid.UUID, message: str) -> None:
        try:
            with self._session_factory() as db, db.begin():
                PricingFileRepository(db).mark_finished(
                    file_id=file_id,
                    status=PricingFileStatus.FAILED,
                    records_processed=0,
                    records_rejected=0,
                    error_message=message[:2000],
                )
        except Exception:
            logger.exception("Failed to persist failed pricing file state id=%s", file_id)

    def _log_row(self, file_id: uuid.UUID, row_number: int, outcome: str) -> None:
        if not self._log_row_events:
            return
        log_event(
            logger,
            logging.DEBUG,
            "pricing_row_processed",
            file_id=file_id,
            row_number=row_number,
            outcome=outcome,
        )
