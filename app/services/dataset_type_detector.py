"""
app/services/dataset_type_detector.py

Header-signature classification of uploaded files.

Only the header row is read. Matching is case-insensitive, ignores
surrounding whitespace and does not depend on column order. Signatures are
evaluated in a fixed order so that overlapping layouts resolve
deterministically (the desktop usage layout is a superset of the cloud one
and must be checked first).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from app.domain.dataset_ingestion import (
    Detected,
    DetectionResult,
    ResolvedDatasetType,
    Unrecognized,
)
from app.domain.dataset_lifecycle import DatasetType, UsageLayout
from app.domain.errors import DetectionFailure, FileParseError
from app.services.tabular_reader import read_headers

logger = logging.getLogger(__name__)

ACC_PRODUCT_HEADERS: tuple[str, ...] = ("product / sub product", "product/sub product", "product")
DESKTOP_MARKER_HEADERS: tuple[str, ...] = ("usagehours", "usecount", "previous version")
USAGE_HEADERS: tuple[str, ...] = ("usagedate", "productname", "username", "tokensconsumed")
MANUAL_ADJUSTMENT_HEADERS: tuple[str, ...] = (
    "usagedate",
    "transactiondate",
    "reasontype",
    "productname",
    "tokensconsumed",
)
QUOTA_ATTAINMENT_HEADERS: tuple[str, ...] = (
    "commission month",
    "corporate account name",
    "final credited amnt",
)


def normalize_header(header: str) -> str:
    return header.strip().lower()


@dataclass(frozen=True)
class _HeaderSet:
    names: frozenset[str]

    @classmethod
    def of(cls, headers: Iterable[str]) -> "_HeaderSet":
        return cls(frozenset(normalize_header(header) for header in headers))

    def has_all(self, required: Iterable[str]) -> bool:
        return all(name in self.names for name in required)

    def has_any(self, candidates: Iterable[str]) -> bool:
        return any(name in self.names for name in candidates)


def classify_headers(headers: Iterable[str]) -> DetectionResult:
    """
    Classify an already-decoded header row.
    """

    original = tuple(headers)
    header_set = _HeaderSet.of(original)

    if header_set.has_all(("event date", "user email", "project name")) and header_set.has_any(
        ACC_PRODUCT_HEADERS
    ):
        return Detected(DatasetType.RAW_USAGE, original, UsageLayout.ACC_BIM360)

    if header_set.has_all(USAGE_HEADERS):
        if header_set.has_any(DESKTOP_MARKER_HEADERS):
            return Detected(DatasetType.RAW_USAGE, original, UsageLayout.DAILY_USER_DESKTOP)
        return Detected(DatasetType.RAW_USAGE, original, UsageLayout.DAILY_USER_CLOUD)

    if header_set.has_all(MANUAL_ADJUSTMENT_HEADERS):
        return Detected(DatasetType.MANUAL_ADJUSTMENTS, original)

    if header_set.has_all(QUOTA_ATTAINMENT_HEADERS):
        return Detected(DatasetType.QUOTA_ATTAINMENT, original)

    return Unrecognized(original, reason="No known header signature matched.")


def detect_dataset_type(content: bytes, filename: str) -> DetectionResult:
    """
    Read the header row of an uploaded file and classify it.

    Raises DetectionFailure when the file cannot be read at all; a readable
    file with an unknown layout yields Unrecognized.
    """

    try:
        headers = read_headers(content, filename)
    except FileParseError as exc:
        raise DetectionFailure(f"Failed to detect dataset type: {exc.message}") from exc

    result = classify_headers(headers)
    if isinstance(result, Detected):
        logger.info(
            "Dataset type detected filename=%s dataset_type=%s usage_layout=%s",
            filename,
            result.dataset_type.value,
            result.usage_layout.value if result.usage_layout else None,
        )
    else:
        logger.info(
            "Dataset type unrecognized filename=%s headers=%s",
            filename,
            list(result.headers),
        )
    return result


def detect_dataset_type_or_none(
    content: bytes,
    filename: str,
) -> tuple[DatasetType, tuple[str, ...]] | None:
    """
    Compatibility form: ``(type, headers)`` when recognized, None otherwise.
    """

    result = detect_dataset_type(content, filename)
    if isinstance(result, Detected):
        return result.dataset_type, result.headers
    return None


def resolve_dataset_type(
    detection: DetectionResult | None,
    fallback: DatasetType = DatasetType.MANUAL_ADJUSTMENTS,
) -> ResolvedDatasetType:
    """
    Apply the fallback policy to a detection outcome.

    ``detection`` is None when detection itself failed; the fallback type is
    used with no recorded headers. An unrecognized layout keeps the headers
    that were read so the dataset still documents what was uploaded.
    """

    if isinstance(detection, Detected):
        return ResolvedDatasetType(
            dataset_type=detection.dataset_type,
            detected_headers=detection.headers,
            used_fallback=False,
        )

    headers = detection.headers if isinstance(detection, Unrecognized) else None
    return ResolvedDatasetType(
        dataset_type=fallback,
        detected_headers=headers or None,
        used_fallback=True,
    )


def usage_layout_for_headers(headers: Iterable[str]) -> UsageLayout | None:
    """
    Re-derive the raw-usage column layout from a stored header list.
    """

    result = classify_headers(headers)
    if isinstance(result, Detected):
        return result.usage_layout
    return None
