"""
app/api/routers/datasets.py

Dataset upload-finalize, processing and status endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_dataset_ingestion_service
from app.domain.errors import (
    DatasetNotFoundError,
    DatasetNotQueuedError,
    DatasetOwnershipError,
    InvalidInputError,
)
from app.schemas.datasets import DatasetResponse, FinalizeUploadRequest, IngestionResultResponse
from app.services.dataset_ingestion_service import DatasetIngestionService
from db.repositories.errors import PersistenceError

router = APIRouter(tags=["datasets"])

_STATUS_BY_ERROR_CODE: dict[str, int] = {
    DatasetNotFoundError.code: status.HTTP_404_NOT_FOUND,
    DatasetOwnershipError.code: status.HTTP_403_FORBIDDEN,
    DatasetNotQueuedError.code: status.HTTP_409_CONFLICT,
}


@router.post(
    "/accounts/{account_id}/datasets/finalize",
    response_model=DatasetResponse,
    status_code=status.HTTP_201_CREATED,
)
def finalize_upload(
    account_id: uuid.UUID,
    payload: FinalizeUploadRequest,
    service: DatasetIngestionService = Depends(get_dataset_ingestion_service),
) -> DatasetResponse:
    """
    Register an uploaded object as a queued dataset.
    """

    try:
        record = service.finalize_upload(
            account_id=account_id,
            storage_path=payload.storage_path,
            original_filename=payload.original_filename,
        )
    except InvalidInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.message,
        ) from exc
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to register the uploaded dataset.",
        ) from exc

    return DatasetResponse.from_record(record)


@router.post("/datasets/{dataset_id}/process", response_model=IngestionResultResponse)
def process_dataset(
    dataset_id: uuid.UUID,
    account_id: uuid.UUID = Query(..., description="Account that owns the dataset"),
    service: DatasetIngestionService = Depends(get_dataset_ingestion_service),
) -> IngestionResultResponse:
    """
    Run ingestion for one queued dataset and report the outcome.
    """

    result = service.ingest_dataset(dataset_id, account_id)
    response = IngestionResultResponse.from_result(result)
    if result.success:
        return response

    status_code = _STATUS_BY_ERROR_CODE.get(
        result.error_code or "",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        raise HTTPException(
            status_code=status_code,
            detail={
                "error": result.error_message or "Ingestion failed",
                "result": response.model_dump(mode="json"),
            },
        )
    raise HTTPException(status_code=status_code, detail=result.error_message)


@router.get("/datasets/{dataset_id}", response_model=DatasetResponse)
def get_dataset(
    dataset_id: uuid.UUID,
    service: DatasetIngestionService = Depends(get_dataset_ingestion_service),
) -> DatasetResponse:
    record = service.get_dataset(dataset_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Dataset not found: {dataset_id}",
        )
    return DatasetResponse.from_record(record)
