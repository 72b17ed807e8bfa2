"""
tests/test_datasets_router.py

HTTP contract of the dataset endpoints. The ingestion service is wired to
in-memory stores through a dependency override; the app lifespan (database
checks) is not entered.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_dataset_ingestion_service
from app.main import app

MANUAL_CSV = (
    b"usageDate,transactionDate,reasonType,productName,tokensConsumed\n"
    b"2025-01-01,,Credit,AutoCAD,10\n"
    b"bad-date,,Credit,AutoCAD,10\n"
)


@pytest.fixture()
def client(service) -> Iterator[TestClient]:
    app.dependency_overrides[get_dataset_ingestion_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _finalize(client: TestClient, object_store, account_id: uuid.UUID, content: bytes = MANUAL_CSV) -> dict:
    path = f"{account_id}/uploads/usage.csv"
    object_store.put(path, content)
    response = client.post(
        f"/accounts/{account_id}/datasets/finalize",
        json={"storage_path": path, "original_filename": "usage.csv"},
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_finalize_returns_queued_dataset(client, object_store, account_id) -> None:
    body = _finalize(client, object_store, account_id)

    assert body["status"] == "queued"
    assert body["dataset_type"] == "manual_adjustments"
    assert body["account_id"] == str(account_id)
    assert body["detected_headers"][0] == "usageDate"


def test_finalize_rejects_foreign_path(client, object_store, account_id) -> None:
    other = uuid.uuid4()
    object_store.put(f"{other}/usage.csv", MANUAL_CSV)

    response = client.post(
        f"/accounts/{account_id}/datasets/finalize",
        json={"storage_path": f"{other}/usage.csv", "original_filename": "usage.csv"},
    )

    assert response.status_code == 400


def test_finalize_validates_body(client, account_id) -> None:
    response = client.post(f"/accounts/{account_id}/datasets/finalize", json={"storage_path": ""})
    assert response.status_code == 422


def test_process_and_get(client, object_store, account_id) -> None:
    dataset = _finalize(client, object_store, account_id)

    response = client.post(f"/datasets/{dataset['id']}/process", params={"account_id": str(account_id)})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    assert body["rows_processed"] == 2
    assert body["rows_inserted"] == 1
    assert body["rows_rejected"] == 1
    assert body["row_errors"][0]["row_number"] == 3
    assert body["row_errors"][0]["kind"] == "invalid_date"
    assert body["min_date"] == "2025-01-01"

    status_response = client.get(f"/datasets/{dataset['id']}")
    assert status_response.status_code == 200
    assert status_response.json()["status"] == "completed"
    assert status_response.json()["row_count"] == 1


def test_process_unknown_dataset(client, account_id) -> None:
    response = client.post(f"/datasets/{uuid.uuid4()}/process", params={"account_id": str(account_id)})
    assert response.status_code == 404


def test_process_other_accounts_dataset(client, object_store, account_id) -> None:
    dataset = _finalize(client, object_store, account_id)
    response = client.post(f"/datasets/{dataset['id']}/process", params={"account_id": str(uuid.uuid4())})
    assert response.status_code == 403


def test_process_twice_conflicts(client, object_store, account_id) -> None:
    dataset = _finalize(client, object_store, account_id)
    params = {"account_id": str(account_id)}

    assert client.post(f"/datasets/{dataset['id']}/process", params=params).status_code == 200
    assert client.post(f"/datasets/{dataset['id']}/process", params=params).status_code == 409


def test_process_failure_returns_error_and_result(client, object_store, account_id) -> None:
    dataset = _finalize(client, object_store, account_id)
    object_store.delete(dataset["storage_path"])

    response = client.post(f"/datasets/{dataset['id']}/process", params={"account_id": str(account_id)})

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert "Object not found" in detail["error"]
    assert detail["result"]["success"] is False
    assert detail["result"]["error_code"] == "OBJECT_NOT_FOUND"

    assert client.get(f"/datasets/{dataset['id']}").json()["status"] == "failed"


def test_process_requires_account_id(client) -> None:
    response = client.post(f"/datasets/{uuid.uuid4()}/process")
    assert response.status_code == 422


def test_get_unknown_dataset(client) -> None:
    assert client.get(f"/datasets/{uuid.uuid4()}").status_code == 404
