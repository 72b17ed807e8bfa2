"""
tests/test_dataset_ingestion_service.py

End-to-end orchestrator behaviour over in-memory stores.

Coverage
--------
- Upload finalize: detection, fallback typing, path validation, corrupt workbooks
- XLSX uploads with spreadsheet serial dates
- Partial success: bad rows rejected, good rows inserted, status completed
- Chunked inserts and mid-run chunk failure
- Storage failure, empty datasets and unsupported types end in failed
- Claim guards: not found, wrong account, not queued, lost compare-and-swap
- Reference data: product aliases and corporate account mappings
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from app.config import IngestionSettings
from app.domain.dataset_lifecycle import DatasetType
from app.domain.errors import InvalidInputError
from app.normalizers import get_row_normalizer
from app.services import dataset_ingestion_service as ingestion_module
from app.services.dataset_ingestion_service import DatasetIngestionService
from tests.workbooks import xlsx_bytes, xlsx_with_corrupt_sheet

MANUAL_HEADER = "usageDate,transactionDate,reasonType,productName,tokensConsumed"


def _csv(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


def _manual_file(good: int, bad: int) -> bytes:
    lines = [MANUAL_HEADER]
    for day in range(1, good + 1):
        lines.append(f"2025-01-{day:02d},,Credit,AutoCAD,{day * 10}")
    for _ in range(bad):
        lines.append("not-a-date,,Credit,AutoCAD,5")
    return _csv(*lines)


def _upload(object_store: Any, account_id: uuid.UUID, content: bytes, filename: str = "upload.csv") -> str:
    path = f"{account_id}/{uuid.uuid4()}/{filename}"
    object_store.put(path, content)
    return path


def _queued(service: DatasetIngestionService, object_store: Any, account_id: uuid.UUID, content: bytes, filename: str = "upload.csv"):
    path = _upload(object_store, account_id, content, filename)
    return service.finalize_upload(account_id=account_id, storage_path=path, original_filename=filename)


# ---------------------------------------------------------------------------
# Upload finalize
# ---------------------------------------------------------------------------


class TestFinalizeUpload:
    def test_detected_type_and_headers_are_recorded(self, service, object_store, row_store, account_id) -> None:
        record = _queued(service, object_store, account_id, _manual_file(1, 0))

        stored = row_store.dataset(record.id)
        assert stored["status"] == "queued"
        assert stored["dataset_type"] == "manual_adjustments"
        assert stored["account_id"] == account_id
        assert stored["detected_headers"] == MANUAL_HEADER.split(",")
        assert record.status == "queued"

    def test_raw_usage_is_detected(self, service, object_store, account_id) -> None:
        content = _csv("usageDate,productName,userName,tokensConsumed", "2025-01-01,Fusion,jdoe,1")
        record = _queued(service, object_store, account_id, content)
        assert record.dataset_type == "raw_usage"

    def test_unrecognized_headers_fall_back(self, service, object_store, account_id, caplog) -> None:
        record = _queued(service, object_store, account_id, _csv("foo,bar", "1,2"))

        assert record.dataset_type == "manual_adjustments"
        assert record.detected_headers == ("foo", "bar")
        assert "fallback" in caplog.text

    def test_unreadable_file_falls_back_without_headers(self, service, object_store, account_id) -> None:
        record = _queued(service, object_store, account_id, b"not a workbook", filename="broken.xlsx")

        assert record.dataset_type == "manual_adjustments"
        assert record.detected_headers is None

    def test_configured_fallback_type(self, row_store, object_store, account_id) -> None:
        service = DatasetIngestionService(
            row_store=row_store,
            object_store=object_store,
            settings=IngestionSettings(fallback_dataset_type=DatasetType.QUOTA_ATTAINMENT),
        )
        record = _queued(service, object_store, account_id, _csv("foo", "1"))
        assert record.dataset_type == "quota_attainment"

    @pytest.mark.parametrize("bad_path", ["", "../escape.csv", "/etc/passwd"])
    def test_invalid_paths_are_rejected(self, service, account_id, bad_path: str) -> None:
        with pytest.raises(InvalidInputError):
            service.finalize_upload(account_id=account_id, storage_path=bad_path, original_filename="x.csv")

    def test_path_outside_account_prefix_is_rejected(self, service, object_store, account_id) -> None:
        path = _upload(object_store, uuid.uuid4(), _manual_file(1, 0))
        with pytest.raises(InvalidInputError):
            service.finalize_upload(account_id=account_id, storage_path=path, original_filename="x.csv")

    def test_missing_object_is_rejected(self, service, row_store, account_id) -> None:
        with pytest.raises(InvalidInputError):
            service.finalize_upload(
                account_id=account_id,
                storage_path=f"{account_id}/missing.csv",
                original_filename="missing.csv",
            )
        assert row_store.tables["datasets"] == []

    def test_blank_filename_is_rejected(self, service, object_store, account_id) -> None:
        path = _upload(object_store, account_id, _manual_file(1, 0))
        with pytest.raises(InvalidInputError):
            service.finalize_upload(account_id=account_id, storage_path=path, original_filename="  ")

    def test_corrupt_worksheet_falls_back_and_stays_queued(self, service, object_store, row_store, account_id) -> None:
        content = xlsx_with_corrupt_sheet(MANUAL_HEADER.split(","), [45658, None, "Credit", "AutoCAD", 10])

        record = _queued(service, object_store, account_id, content, filename="broken.xlsx")

        assert record.dataset_type == "manual_adjustments"
        assert record.detected_headers is None
        assert row_store.dataset(record.id)["status"] == "queued"

        result = service.ingest_dataset(record.id, account_id)

        assert result.success is False
        assert result.error_code == "FILE_PARSE_ERROR"
        assert row_store.dataset(record.id)["status"] == "failed"


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class TestIngestDataset:
    def test_partial_success(self, service, object_store, row_store, account_id) -> None:
        record = _queued(service, object_store, account_id, _manual_file(7, 3))

        result = service.ingest_dataset(record.id, account_id)

        assert result.success is True
        assert result.rows_processed == 10
        assert result.rows_inserted == 7
        assert result.rows_rejected == 3
        assert [r.row_number for r in result.row_errors] == [9, 10, 11]
        assert {r.kind for r in result.row_errors} == {"invalid_date"}
        assert result.min_date == date(2025, 1, 1)
        assert result.max_date == date(2025, 1, 7)

        stored = row_store.dataset(record.id)
        assert stored["status"] == "completed"
        assert stored["row_count"] == 7
        assert stored["min_date"] == date(2025, 1, 1)
        assert stored["max_date"] == date(2025, 1, 7)
        assert stored["processed_at"] is not None

        inserted = row_store.tables["manual_adjustment_rows"]
        assert len(inserted) == 7
        assert all(row["dataset_id"] == record.id for row in inserted)
        assert all(row["account_id"] == account_id for row in inserted)
        assert inserted[0]["tokens_consumed"] == Decimal("10")

    def test_rows_are_inserted_in_batches(self, service, object_store, row_store, account_id) -> None:
        record = _queued(service, object_store, account_id, _manual_file(7, 0))
        service.ingest_dataset(record.id, account_id)
        assert row_store.insert_calls["manual_adjustment_rows"] == 3

    def test_row_errors_are_capped(self, row_store, object_store, account_id) -> None:
        service = DatasetIngestionService(
            row_store=row_store,
            object_store=object_store,
            settings=IngestionSettings(max_row_errors=2),
        )
        record = _queued(service, object_store, account_id, _manual_file(1, 5))

        result = service.ingest_dataset(record.id, account_id)

        assert result.rows_rejected == 5
        assert len(result.row_errors) == 2

    def test_chunk_failure_keeps_earlier_chunks(self, service, object_store, row_store, account_id) -> None:
        record = _queued(service, object_store, account_id, _manual_file(7, 0))
        row_store.fail_insert = ("manual_adjustment_rows", 2)

        result = service.ingest_dataset(record.id, account_id)

        assert result.success is False
        assert result.error_code == "DATABASE_ERROR"
        assert "Failed to insert batch 2/3" in result.error_message
        assert result.rows_processed == 7
        assert result.rows_inserted == 3
        assert len(row_store.tables["manual_adjustment_rows"]) == 3

        stored = row_store.dataset(record.id)
        assert stored["status"] == "failed"
        assert "Failed to insert batch 2/3" in stored["error_message"]

    def test_missing_object_fails_the_dataset(self, service, object_store, row_store, account_id) -> None:
        record = _queued(service, object_store, account_id, _manual_file(2, 0))
        object_store.delete(record.storage_path)

        result = service.ingest_dataset(record.id, account_id)

        assert result.success is False
        assert result.error_code == "OBJECT_NOT_FOUND"
        assert result.rows_processed == 0
        assert row_store.dataset(record.id)["status"] == "failed"

    def test_storage_failure_fails_the_dataset(self, service, object_store, row_store, account_id) -> None:
        record = _queued(service, object_store, account_id, _manual_file(2, 0))
        object_store.broken = True

        result = service.ingest_dataset(record.id, account_id)

        assert result.error_code == "STORAGE_ERROR"
        assert row_store.dataset(record.id)["status"] == "failed"

    def test_all_rows_invalid(self, service, object_store, row_store, account_id) -> None:
        record = _queued(service, object_store, account_id, _manual_file(0, 4))

        result = service.ingest_dataset(record.id, account_id)

        assert result.success is False
        assert result.error_code == "NO_VALID_ROWS"
        assert result.rows_processed == 4
        assert result.rows_rejected == 4
        assert len(result.row_errors) == 4
        stored = row_store.dataset(record.id)
        assert stored["status"] == "failed"
        assert "No valid rows" in stored["error_message"]

    def test_unknown_type_fails_the_dataset(self, service, object_store, row_store, account_id) -> None:
        record = _queued(service, object_store, account_id, _manual_file(1, 0))
        row_store.update("datasets", {"id": record.id}, {"dataset_type": "unknown"})

        result = service.ingest_dataset(record.id, account_id)

        assert result.error_code == "UNSUPPORTED_DATASET_TYPE"
        assert row_store.dataset(record.id)["status"] == "failed"

    def test_raw_usage_with_aliases(self, service, object_store, row_store, account_id) -> None:
        row_store.insert_many("product_aliases", [{"alias": "autocad", "product_key": "acad"}])
        content = _csv(
            "usageDate,productName,userName,tokensConsumed",
            "2025-01-01,AutoCAD,JDoe,3",
            "2025-01-02,Revit,jdoe,4",
        )
        record = _queued(service, object_store, account_id, content)

        result = service.ingest_dataset(record.id, account_id)

        assert result.success is True
        keys = [row["product_key"] for row in row_store.tables["raw_usage_rows"]]
        assert keys == ["acad", "revit"]

    def test_quota_mappings_are_scoped_to_the_account(self, service, object_store, row_store, account_id) -> None:
        other_account = uuid.uuid4()
        row_store.insert_many(
            "corporate_account_mappings",
            [
                {"corporate_account_name": "Acme Corp", "account_id": account_id},
                {"corporate_account_name": "Globex", "account_id": other_account},
            ],
        )
        content = _csv(
            "Commission Month,Transaction Date,Corporate Account Name,Final Credited Amnt",
            "March,2025-03-01,ACME CORP,100",
            "March,2025-03-02,Globex,200",
        )
        record = _queued(service, object_store, account_id, content)

        result = service.ingest_dataset(record.id, account_id)

        assert result.rows_inserted == 1
        assert result.row_errors[0].kind == "unknown_mapping"
        assert row_store.tables["quota_attainment_transactions"][0]["fiscal_year"] == 2026

    def test_xlsx_serial_dates(self, service, object_store, row_store, account_id) -> None:
        content = xlsx_bytes(
            MANUAL_HEADER.split(","),
            [45658, None, "Credit", "AutoCAD", 10],
            [45658.5, 45660, "Debit", "Revit", 2.5],
        )
        record = _queued(service, object_store, account_id, content, filename="adjustments.xlsx")
        assert record.dataset_type == "manual_adjustments"

        result = service.ingest_dataset(record.id, account_id)

        assert result.success is True
        assert result.rows_inserted == 2
        assert result.min_date == date(2025, 1, 1)
        assert result.max_date == date(2025, 1, 1)

        first, second = row_store.tables["manual_adjustment_rows"]
        assert first["usage_date"] == date(2025, 1, 1)
        assert first["raw_data"] is None
        assert first["tokens_consumed"] == Decimal("10")
        assert second["usage_date"] == date(2025, 1, 1)
        assert second["transaction_date"] == date(2025, 1, 3)
        assert second["raw_data"] == {"sourceTimestamp": "2025-01-01T12:00:00.000"}
        assert second["tokens_consumed"] == Decimal("2.5")

    def test_recorded_headers_drive_the_normalizer(self, service, object_store, row_store, account_id, monkeypatch) -> None:
        seen: list[tuple[str, ...]] = []

        def recording_normalizer(dataset_type, headers):
            seen.append(tuple(headers))
            return get_row_normalizer(dataset_type, headers)

        monkeypatch.setattr(ingestion_module, "get_row_normalizer", recording_normalizer)
        recorded = _queued(service, object_store, account_id, _manual_file(1, 0))
        fallback = _queued(service, object_store, account_id, _manual_file(1, 0))
        row_store.update("datasets", {"id": fallback.id}, {"detected_headers": None})

        service.ingest_dataset(recorded.id, account_id)
        service.ingest_dataset(fallback.id, account_id)

        assert seen == [recorded.detected_headers, tuple(MANUAL_HEADER.split(","))]


class TestClaimGuards:
    def test_unknown_dataset(self, service, account_id) -> None:
        result = service.ingest_dataset(uuid.uuid4(), account_id)
        assert result.success is False
        assert result.error_code == "DATASET_NOT_FOUND"

    def test_wrong_account_leaves_dataset_untouched(self, service, object_store, row_store, account_id) -> None:
        record = _queued(service, object_store, account_id, _manual_file(1, 0))

        result = service.ingest_dataset(record.id, uuid.uuid4())

        assert result.error_code == "DATASET_OWNERSHIP"
        assert row_store.dataset(record.id)["status"] == "queued"

    def test_second_run_is_rejected(self, service, object_store, row_store, account_id) -> None:
        record = _queued(service, object_store, account_id, _manual_file(2, 0))

        first = service.ingest_dataset(record.id, account_id)
        second = service.ingest_dataset(record.id, account_id)

        assert first.success is True
        assert second.success is False
        assert second.error_code == "DATASET_NOT_QUEUED"
        assert row_store.dataset(record.id)["status"] == "completed"
        assert len(row_store.tables["manual_adjustment_rows"]) == 2

    def test_lost_claim_race(self, service, object_store, row_store, account_id) -> None:
        record = _queued(service, object_store, account_id, _manual_file(2, 0))

        def competing_claim(table: str, filters: dict) -> None:
            if filters.get("status") == "queued":
                row_store.before_update = None
                row_store.update("datasets", {"id": record.id}, {"status": "processing"})

        row_store.before_update = competing_claim

        result = service.ingest_dataset(record.id, account_id)

        assert result.success is False
        assert result.error_code == "DATASET_NOT_QUEUED"
        assert row_store.tables["manual_adjustment_rows"] == []
        assert row_store.dataset(record.id)["status"] == "processing"
