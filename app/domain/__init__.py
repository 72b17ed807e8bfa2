"""
app/domain package marker.
"""

from app.domain.canonical_rows import ManualAdjustmentRow, QuotaAttainmentTransaction, RawUsageRow
from app.domain.dataset_ingestion import (
    DatasetRecord,
    Detected,
    DetectionResult,
    IngestionResult,
    NormalizationContext,
    NormalizationOutcome,
    RejectionKind,
    ResolvedDatasetType,
    RowRejection,
    TabularData,
    Unrecognized,
)
from app.domain.dataset_lifecycle import (
    DatasetStatus,
    DatasetType,
    UsageLayout,
    can_transition,
    ensure_transition,
)

__all__ = [
    "DatasetRecord",
    "DatasetStatus",
    "DatasetType",
    "Detected",
    "DetectionResult",
    "IngestionResult",
    "ManualAdjustmentRow",
    "NormalizationContext",
    "NormalizationOutcome",
    "QuotaAttainmentTransaction",
    "RawUsageRow",
    "RejectionKind",
    "ResolvedDatasetType",
    "RowRejection",
    "TabularData",
    "Unrecognized",
    "UsageLayout",
    "can_transition",
    "ensure_transition",
]
