"""
Pricing file lifecycle: upload, trigger, background processing, results, delete.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Protocol

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session, sessionmaker

from app.config import get_file_ingestion_settings, get_storage_settings
from app.domain.pricing_submission import StructureValidationResult
from app.errors import (
    FatalIngestionError,
    FileAlreadyProcessedError,
    FileAlreadyProcessingError,
    FileNotDeletableError,
    FileValidationFailedError,
    PricingFileNotFoundError,
    StructuralValidationError,
    UnsupportedFileTypeError,
    WorkbookParseError,
)
from app.logging_utils import log_event
from app.parsers.workbook_parser import WorkbookParser
from app.services.file_processing_service import FileProcessingService
from app.validators.parameter_catalog import ParameterCatalog, SQLAlchemyCatalogSource
from app.validators.structure_validator import StructureValidator
from db.models.pricing_file import PricingFile, PricingFileStatus
from db.models.rejection_log import RejectionLog
from db.repositories.errors import StoredObjectNotFoundError, UploadValidationError
from db.repositories.pricing_file_repository import PricingFileRepository
from db.repositories.rejection_log_repository import RejectionLogRepository
from db.repositories.storage import FileStorageBackend, LocalFileStorage, S3FileStorage
from db.repositories.validators import validate_upload_payload

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class IngestionTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


@dataclass(frozen=True)
class PricingFileResults:
    pricing_file: PricingFile
    rejection_logs: list[RejectionLog]


class PricingFileService:
    """
    Coordinates file storage, status transitions and background dispatch.
    """

    def __init__(
        self,
        *,
        storage: FileStorageBackend,
        catalog: ParameterCatalog,
        session_factory: sessionmaker[Session] | None = None,
        processing_service: FileProcessingService | None = None,
        parser: WorkbookParser | None = None,
        max_upload_bytes: int = 10 * 1024 * 1024,
        key_prefix: str = "uploads",
        refresh_catalog_on_trigger: bool = False,
    ) -> None:
        self._storage = storage
        self._catalog = catalog
        self._parser = parser or WorkbookParser()
        self._structure_validator = StructureValidator(catalog=catalog, parser=self._parser)
        self._processing_service = processing_service or FileProcessingService(
            storage=storage,
            catalog=catalog,
            session_factory=session_factory,
            parser=self._parser,
        )
        self._max_upload_bytes = max_upload_bytes
        self._key_prefix = key_prefix.strip("/")
        self._refresh_catalog_on_trigger = refresh_catalog_on_trigger

    def upload(
        self,
        *,
        db: Session,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
    ) -> PricingFile:
        try:
            validate_upload_payload(
                file_name=file_name,
                content=content,
                content_type=content_type,
                max_size_bytes=self._max_upload_bytes,
            )
        except UploadValidationError as exc:
            raise UnsupportedFileTypeError(str(exc)) from exc

        file_id = uuid.uuid4()
        stored_name = f"{file_id}-{_safe_file_name(file_name)}"
        storage_key = f"{self._key_prefix}/{stored_name}" if self._key_prefix else stored_name

        self._storage.put(content, storage_key, content_type)
        try:
            with db.begin():
                pricing_file = PricingFileRepository(db).create_file(
                    file_id=file_id,
                    filename=stored_name,
                    original_name=file_name,
                    file_size=len(content),
                    storage_key=storage_key,
                    content_type=content_type,
                )
        except Exception:
            self._delete_object_quietly(storage_key)
            raise

        log_event(
            logger,
            logging.INFO,
            "pricing_file_uploaded",
            file_id=file_id,
            original_name=file_name,
            file_size=len(content),
        )
        return pricing_file

    def list_files(self, *, db: Session, limit: int = 100, status: str | None = None) -> list[PricingFile]:
        return PricingFileRepository(db).list_files(limit=limit, status=status)

    def get_file(self, *, db: Session, file_id: uuid.UUID) -> PricingFile:
        pricing_file = PricingFileRepository(db).get_file(file_id)
        if pricing_file is None:
            raise PricingFileNotFoundError(f"Pricing file not found: {file_id}")
        return pricing_file

    def get_results(self, *, db: Session, file_id: uuid.UUID) -> PricingFileResults:
        pricing_file = self.get_file(db=db, file_id=file_id)
        rejection_logs = RejectionLogRepository(db).list_for_file(file_id)
        return PricingFileResults(pricing_file=pricing_file, rejection_logs=rejection_logs)

    def trigger_processing(
        self,
        *,
        db: Session,
        executor: IngestionTaskExecutor,
        file_id: uuid.UUID,
    ) -> PricingFile:
        """
        Re-validate workbook structure and dispatch background processing.

        Raises a lifecycle error when the file's status does not allow a run,
        or ``StructuralValidationError`` after marking the file FAILED.
        """

        repository = PricingFileRepository(db)
        pricing_file = self.get_file(db=db, file_id=file_id)
        _ensure_processable(pricing_file)
        storage_key = pricing_file.storage_key
        db.rollback()

        if self._refresh_catalog_on_trigger:
            self._catalog.refresh()

        content = self._storage.get(storage_key)
        try:
            workbook = self._parser.load_workbook(content)
        except WorkbookParseError as exc:
            result = StructureValidationResult(is_valid=False, reason=str(exc))
        else:
            try:
                result = self._structure_validator.validate_file_structure(workbook)
            finally:
                workbook.close()

        if not result.is_valid:
            reason = result.reason or "Invalid file structure"
            with db.begin():
                repository.mark_structure_failed(file_id=file_id, reason=reason)
            log_event(logger, logging.WARNING, "pricing_file_structure_invalid", file_id=file_id, reason=reason)
            raise StructuralValidationError(reason)

        # Another trigger may have claimed the file while the workbook was loading.
        with db.begin():
            current = repository.get_file_for_update(file_id)
            if current is None:
                raise PricingFileNotFoundError(f"Pricing file not found: {file_id}")
            _ensure_processable(current)
            pricing_file = repository.mark_processing(
                file_id=file_id,
                parameter_names=result.normalized_parameter_names,
            )
        if pricing_file is None:
            raise PricingFileNotFoundError(f"Pricing file not found: {file_id}")

        try:
            executor.submit(self._run_processing_job, file_id)
        except Exception:
            with db.begin():
                repository.mark_finished(
                    file_id=file_id,
                    status=PricingFileStatus.FAILED,
                    records_processed=0,
                    records_rejected=0,
                    error_message="Failed to schedule pricing file processing.",
                )
            raise

        log_event(
            logger,
            logging.INFO,
            "pricing_file_processing_dispatched",
            file_id=file_id,
            parameter_count=len(result.normalized_parameter_names),
        )
        return pricing_file

    def delete(self, *, db: Session, file_id: uuid.UUID) -> None:
        pricing_file = self.get_file(db=db, file_id=file_id)
        if pricing_file.status not in PricingFileStatus.DELETABLE:
            raise FileNotDeletableError(
                f"Cannot delete file with status {pricing_file.status}. "
                "Only PENDING or FAILED files can be deleted."
            )
        storage_key = pricing_file.storage_key
        db.rollback()

        try:
            self._storage.delete(storage_key)
        except StoredObjectNotFoundError:
            logger.warning("Stored object already missing key=%s file_id=%s", storage_key, file_id)

        with db.begin():
            repository = PricingFileRepository(db)
            pricing_file = repository.get_file(file_id)
            if pricing_file is not None:
                repository.delete_file(pricing_file)

        log_event(logger, logging.INFO, "pricing_file_deleted", file_id=file_id)

    def _run_processing_job(self, file_id: uuid.UUID) -> None:
        try:
            self._processing_service.process_file(file_id)
        except FatalIngestionError:
            logger.exception("Pricing file processing failed id=%s", file_id)
        except PricingFileNotFoundError:
            logger.error("Pricing file disappeared before processing id=%s", file_id)

    def _delete_object_quietly(self, storage_key: str) -> None:
        try:
            self._storage.delete(storage_key)
        except Exception:
            logger.exception("Failed to remove orphaned stored object key=%s", storage_key)


def _ensure_processable(pricing_file: PricingFile) -> None:
    status = pricing_file.status
    if status == PricingFileStatus.PROCESSING:
        raise FileAlreadyProcessingError("File is already being processed")
    if status == PricingFileStatus.FAILED and pricing_file.validation_error:
        raise FileValidationFailedError(pricing_file.validation_error)
    if status in (PricingFileStatus.COMPLETED, PricingFileStatus.COMPLETED_WITH_ERRORS):
        raise FileAlreadyProcessedError("File has already been processed")


def _safe_file_name(file_name: str) -> str:
    cleaned = _UNSAFE_NAME_CHARS.sub("_", Path(file_name).name).strip("._")
    return cleaned or "upload.xlsx"


def build_storage_backend() -> FileStorageBackend:
    settings = get_storage_settings()
    if settings.backend == "s3":
        return S3FileStorage(
            bucket=settings.s3_bucket or "",
            region=settings.aws_region,
            profile=settings.aws_profile,
        )
    return LocalFileStorage(settings.local_root)


@lru_cache(maxsize=1)
def get_parameter_catalog() -> ParameterCatalog:
    return ParameterCatalog(SQLAlchemyCatalogSource())


@lru_cache(maxsize=1)
def get_pricing_file_service() -> PricingFileService:
    settings = get_file_ingestion_settings()
    storage = build_storage_backend()
    catalog = get_parameter_catalog()
    return PricingFileService(
        storage=storage,
        catalog=catalog,
        processing_service=FileProcessingService(
            storage=storage,
            catalog=catalog,
            log_row_events=settings.log_row_events,
        ),
        max_upload_bytes=settings.max_upload_bytes,
        key_prefix=get_storage_settings().key_prefix,
        refresh_catalog_on_trigger=settings.refresh_catalog_on_trigger,
    )
