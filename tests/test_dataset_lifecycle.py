from __future__ import annotations

import unittest

from app.domain.dataset_lifecycle import (
    TERMINAL_STATUSES,
    DatasetStatus,
    DatasetType,
    can_transition,
    coerce_dataset_type,
    ensure_transition,
)
from app.domain.errors import IllegalStatusTransitionError


class TestDatasetLifecycle(unittest.TestCase):
    def test_forward_transitions_are_allowed(self) -> None:
        self.assertTrue(can_transition(DatasetStatus.QUEUED, DatasetStatus.PROCESSING))
        self.assertTrue(can_transition(DatasetStatus.PROCESSING, DatasetStatus.COMPLETED))
        self.assertTrue(can_transition(DatasetStatus.PROCESSING, DatasetStatus.FAILED))

    def test_string_statuses_are_accepted(self) -> None:
        self.assertTrue(can_transition("queued", "processing"))
        self.assertFalse(can_transition("queued", "completed"))

    def test_skipping_processing_is_rejected(self) -> None:
        self.assertFalse(can_transition(DatasetStatus.QUEUED, DatasetStatus.COMPLETED))
        self.assertFalse(can_transition(DatasetStatus.QUEUED, DatasetStatus.FAILED))

    def test_terminal_statuses_have_no_exits(self) -> None:
        for terminal in TERMINAL_STATUSES:
            for target in DatasetStatus:
                self.assertFalse(can_transition(terminal, target), f"{terminal} -> {target}")

    def test_no_self_transitions(self) -> None:
        for status in DatasetStatus:
            self.assertFalse(can_transition(status, status))

    def test_unknown_status_strings_are_never_valid(self) -> None:
        self.assertFalse(can_transition("archived", "queued"))
        self.assertFalse(can_transition("queued", "archived"))

    def test_ensure_transition_returns_target(self) -> None:
        self.assertIs(ensure_transition("processing", "failed"), DatasetStatus.FAILED)

    def test_ensure_transition_raises_with_both_states(self) -> None:
        with self.assertRaises(IllegalStatusTransitionError) as ctx:
            ensure_transition(DatasetStatus.COMPLETED, DatasetStatus.PROCESSING, dataset_id="ds-1")

        self.assertEqual(ctx.exception.current, "completed")
        self.assertEqual(ctx.exception.target, "processing")
        self.assertEqual(ctx.exception.dataset_id, "ds-1")
        self.assertEqual(ctx.exception.code, "ILLEGAL_STATUS_TRANSITION")

    def test_coerce_dataset_type(self) -> None:
        self.assertIs(coerce_dataset_type("raw_usage"), DatasetType.RAW_USAGE)
        self.assertIs(coerce_dataset_type(DatasetType.QUOTA_ATTAINMENT), DatasetType.QUOTA_ATTAINMENT)
        self.assertIs(coerce_dataset_type("daily_user_cloud"), DatasetType.UNKNOWN)
        self.assertIs(coerce_dataset_type(None), DatasetType.UNKNOWN)


if __name__ == "__main__":
    unittest.main()
