"""
app/schemas package marker.
"""

from app.schemas.datasets import (
    DatasetResponse,
    FinalizeUploadRequest,
    IngestionResultResponse,
    RowRejectionResponse,
)

__all__ = [
    "DatasetResponse",
    "FinalizeUploadRequest",
    "IngestionResultResponse",
    "RowRejectionResponse",
]
