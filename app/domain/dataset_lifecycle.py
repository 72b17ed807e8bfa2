"""
app/domain/dataset_lifecycle.py

Dataset types, lifecycle states and the transition table that guards
every dataset status write.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from app.domain.errors import IllegalStatusTransitionError


class DatasetType(str, Enum):
    MANUAL_ADJUSTMENTS = "manual_adjustments"
    RAW_USAGE = "raw_usage"
    QUOTA_ATTAINMENT = "quota_attainment"
    UNKNOWN = "unknown"


class UsageLayout(str, Enum):
    """Column layouts that all normalize into raw usage rows."""

    DAILY_USER_CLOUD = "daily_user_cloud"
    DAILY_USER_DESKTOP = "daily_user_desktop"
    ACC_BIM360 = "acc_bim360"


class DatasetStatus(str, Enum):
    """Pipeline state: queued -> processing -> completed | failed."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({DatasetStatus.COMPLETED, DatasetStatus.FAILED})

_ALLOWED_TRANSITIONS: dict[DatasetStatus, frozenset[DatasetStatus]] = {
    DatasetStatus.QUEUED: frozenset({DatasetStatus.PROCESSING}),
    DatasetStatus.PROCESSING: frozenset({DatasetStatus.COMPLETED, DatasetStatus.FAILED}),
    DatasetStatus.COMPLETED: frozenset(),
    DatasetStatus.FAILED: frozenset(),
}


def _coerce_status(value: DatasetStatus | str) -> DatasetStatus | None:
    try:
        return DatasetStatus(value)
    except ValueError:
        return None


def can_transition(current: DatasetStatus | str, target: DatasetStatus | str) -> bool:
    """
    Return True when a dataset may move from ``current`` to ``target``.

    Unknown status strings are never valid on either side.
    """

    current_status = _coerce_status(current)
    target_status = _coerce_status(target)
    if current_status is None or target_status is None:
        return False
    return target_status in _ALLOWED_TRANSITIONS[current_status]


def ensure_transition(
    current: DatasetStatus | str,
    target: DatasetStatus | str,
    *,
    dataset_id: Any = None,
) -> DatasetStatus:
    """
    Validate a transition and return the target status.

    Raises IllegalStatusTransitionError instead of allowing an unchecked
    overwrite.
    """

    if not can_transition(current, target):
        raise IllegalStatusTransitionError(
            _status_text(current),
            _status_text(target),
            dataset_id=dataset_id,
        )
    return DatasetStatus(target)


def coerce_dataset_type(value: DatasetType | str | None) -> DatasetType:
    """
    Map a stored dataset_type string onto DatasetType, defaulting to UNKNOWN.
    """

    if value is None:
        return DatasetType.UNKNOWN
    try:
        return DatasetType(value)
    except ValueError:
        return DatasetType.UNKNOWN


def _status_text(value: DatasetStatus | str) -> str:
    return value.value if isinstance(value, DatasetStatus) else str(value)
