"""
Pricing file upload, processing and results endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_workbook_upload
from app.errors import (
    FileAlreadyProcessedError,
    FileAlreadyProcessingError,
    FileNotDeletableError,
    FileValidationFailedError,
    PricingFileNotFoundError,
    StructuralValidationError,
    UnsupportedFileTypeError,
)
from app.schemas.pricing_files import (
    DeleteFileResponse,
    PricingFileListResponse,
    PricingFileResponse,
    PricingFileResultsResponse,
    ProcessingAcceptedResponse,
    RejectionLogResponse,
)
from app.services.pricing_file_service import (
    FastAPIBackgroundTaskExecutor,
    PricingFileService,
    get_pricing_file_service,
)
from db.repositories.errors import FileStorageError
from db.session import get_db

router = APIRouter(prefix="/files", tags=["pricing-files"])


@router.post(
    "/upload",
    status_code=status.HTTP_201_CREATED,
    response_model=PricingFileResponse,
)
def upload_pricing_file(
    file: UploadFile = Depends(get_workbook_upload),
    db: Session = Depends(get_db),
    service: PricingFileService = Depends(get_pricing_file_service),
) -> PricingFileResponse:
    try:
        content = file.file.read()
        pricing_file = service.upload(
            db=db,
            file_name=file.filename or "upload.xlsx",
            content=content,
            content_type=file.content_type,
        )
    except UnsupportedFileTypeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except FileStorageError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    finally:
        file.file.close()

    return PricingFileResponse.model_validate(pricing_file)


@router.get("", response_model=PricingFileListResponse)
def list_pricing_files(
    status_filter: str | None = Query(default=None, alias="status", description="Optional status filter"),
    limit: int = Query(default=100, ge=1, le=500, description="Max files returned"),
    db: Session = Depends(get_db),
    service: PricingFileService = Depends(get_pricing_file_service),
) -> PricingFileListResponse:
    files = service.list_files(db=db, limit=limit, status=status_filter)
    return PricingFileListResponse(files=[PricingFileResponse.model_validate(item) for item in files])


@router.post(
    "/{file_id}/process",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ProcessingAcceptedResponse,
)
def process_pricing_file(
    file_id: UUID,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    service: PricingFileService = Depends(get_pricing_file_service),
) -> ProcessingAcceptedResponse:
    try:
        pricing_file = service.trigger_processing(
            db=db,
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
            file_id=file_id,
        )
    except PricingFileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (FileAlreadyProcessingError, FileAlreadyProcessedError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except (FileValidationFailedError, StructuralValidationError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except FileStorageError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    return ProcessingAcceptedResponse(file_id=pricing_file.id, status=pricing_file.status)


@router.get("/{file_id}/results", response_model=PricingFileResultsResponse)
def get_pricing_file_results(
    file_id: UUID,
    db: Session = Depends(get_db),
    service: PricingFileService = Depends(get_pricing_file_service),
) -> PricingFileResultsResponse:
    try:
        results = service.get_results(db=db, file_id=file_id)
    except PricingFileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return PricingFileResultsResponse(
        file=PricingFileResponse.model_validate(results.pricing_file),
        rejection_logs=[RejectionLogResponse.model_validate(log) for log in results.rejection_logs],
    )


@router.delete("/{file_id}", response_model=DeleteFileResponse)
def delete_pricing_file(
    file_id: UUID,
    db: Session = Depends(get_db),
    service: PricingFileService = Depends(get_pricing_file_service),
) -> DeleteFileResponse:
    try:
        service.delete(db=db, file_id=file_id)
    except PricingFileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except FileNotDeletableError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except FileStorageError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    return DeleteFileResponse(file_id=file_id)
