"""
app/normalizers package marker.
"""

from __future__ import annotations

from typing import Sequence

from app.domain.dataset_lifecycle import DatasetType, UsageLayout, coerce_dataset_type
from app.domain.errors import UnsupportedDatasetTypeError
from app.normalizers.base import RowNormalizer
from app.normalizers.manual_adjustments import ManualAdjustmentsNormalizer
from app.normalizers.quota_attainment import QuotaAttainmentNormalizer
from app.normalizers.raw_usage import RawUsageNormalizer
from app.services.dataset_type_detector import usage_layout_for_headers


def get_row_normalizer(dataset_type: DatasetType | str, headers: Sequence[str]) -> RowNormalizer:
    """
    Return the normalizer for a recorded dataset type.

    Raw usage datasets pick their column layout from the headers; a header
    set that matches no usage layout falls back to the cloud layout, whose
    required columns then drive per-row rejections.
    """

    resolved = coerce_dataset_type(dataset_type)
    if resolved is DatasetType.MANUAL_ADJUSTMENTS:
        return ManualAdjustmentsNormalizer(headers)
    if resolved is DatasetType.QUOTA_ATTAINMENT:
        return QuotaAttainmentNormalizer(headers)
    if resolved is DatasetType.RAW_USAGE:
        layout = usage_layout_for_headers(headers) or UsageLayout.DAILY_USER_CLOUD
        return RawUsageNormalizer(headers, layout)
    raise UnsupportedDatasetTypeError(f"No row normalizer for dataset type: {dataset_type}")


__all__ = [
    "ManualAdjustmentsNormalizer",
    "QuotaAttainmentNormalizer",
    "RawUsageNormalizer",
    "RowNormalizer",
    "get_row_normalizer",
]
