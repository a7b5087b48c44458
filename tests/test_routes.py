"""HTTP tests for the plate endpoints (store and enricher are faked)."""

from __future__ import annotations

from fastapi.testclient import TestClient

from core import errors
from fakes import FakeEnricher, FakeStore


def test_root_and_health(client: TestClient):
    assert client.get("/").json() == "Start page"
    assert client.get("/health").json() == {"status": "ok"}


def test_create_echoes_numbers_with_per_item_results(client: TestClient, store: FakeStore, enricher: FakeEnricher):
    enricher.failures["B456DE"] = errors.RemoteStatusError(503)

    resp = client.post("/create", json={"regNums": ["A123BC", "B456DE"]})

    assert resp.status_code == 200
    body = resp.json()
    assert body["regNums"] == ["A123BC", "B456DE"]
    ok, failed = body["results"]
    assert ok["created"] is True and ok["enriched"] is True and ok["error"] is None
    assert failed["created"] is True and failed["enriched"] is False
    assert failed["error"] == "RemoteStatusError"
    assert sorted(store.rows.values()) == ["A123BC", "B456DE"]


def test_create_then_list_by_id_round_trip(client: TestClient):
    created = client.post("/create", json={"regNums": ["X001AA"]}).json()
    number_id = created["results"][0]["id"]

    resp = client.get("/list", params={"id": number_id})

    assert resp.status_code == 200
    assert resp.json() == "X001AA"


def test_create_rejects_malformed_body(client: TestClient, store: FakeStore):
    assert client.post("/create", json={"nums": ["A123BC"]}).status_code == 400
    assert client.post("/create", json={"regNums": "A123BC"}).status_code == 400
    assert client.post("/create", json={"regNums": [""]}).status_code == 400
    assert client.post("/create", content=b"{not json", headers={"content-type": "application/json"}).status_code == 400
    assert store.create_calls == []


def test_create_rejects_oversized_batch(client: TestClient, store: FakeStore):
    resp = client.post("/create", json={"regNums": [f"A{i:03d}BC" for i in range(11)]})

    assert resp.status_code == 400
    assert store.create_calls == []


def test_delete_returns_ids(client: TestClient, store: FakeStore):
    ids = [client.post("/create", json={"regNums": [n]}).json()["results"][0]["id"] for n in ("A1", "B2")]

    resp = client.post("/delete", json={"ids": ids})

    assert resp.status_code == 200
    assert resp.json()["ids"] == ids
    assert store.rows == {}


def test_delete_reports_500_when_any_delete_fails(client: TestClient, store: FakeStore):
    store.fail_delete["2"] = errors.StoreError("boom")

    resp = client.post("/delete", json={"ids": ["1", "2"]})

    assert resp.status_code == 500
    body = resp.json()
    assert body["detail"] == "delete error"
    assert body["ids"] == ["1", "2"]
    assert sorted(store.delete_calls) == ["1", "2"]


def test_list_requires_exactly_one_mode(client: TestClient):
    assert client.get("/list").status_code == 400
    assert client.get("/list", params={"id": "1", "prefix": "A"}).status_code == 400


def test_list_by_id_absent_is_empty(client: TestClient):
    resp = client.get("/list", params={"id": "12345"})

    assert resp.status_code == 200
    assert resp.json() == ""


def test_list_by_prefix(client: TestClient):
    client.post("/create", json={"regNums": ["A123BC", "B456DE", "A199XY"]})

    resp = client.get("/list", params={"prefix": "A1"})

    assert resp.status_code == 200
    assert sorted(resp.json()) == ["A123BC", "A199XY"]


def test_list_by_region(client: TestClient):
    client.post("/create", json={"regNums": ["A123BC77", "B456DE99"]})

    resp = client.get("/list", params={"region": "77"})

    assert resp.status_code == 200
    assert resp.json() == ["A123BC77"]
    assert client.get("/list", params={"region": "7.*"}).status_code == 400


def test_list_store_error_is_500(client: TestClient, store: FakeStore):
    store.fail_reads = errors.StoreError("down")

    resp = client.get("/list", params={"prefix": "A"})

    assert resp.status_code == 500
    assert resp.json() == {"detail": "list error"}


def test_update(client: TestClient):
    number_id = client.post("/create", json={"regNums": ["X001AA"]}).json()["results"][0]["id"]

    resp = client.post("/update", json={"id": number_id, "newNum": "Y002BB"})

    assert resp.status_code == 200
    assert resp.json() == number_id
    assert client.get("/list", params={"id": number_id}).json() == "Y002BB"


def test_update_missing_is_generic_500(client: TestClient):
    resp = client.post("/update", json={"id": "999", "newNum": "Y002BB"})

    assert resp.status_code == 500
    assert resp.json() == {"detail": "update error"}


def test_update_rejects_malformed_body(client: TestClient):
    assert client.post("/update", json={"id": "1"}).status_code == 400
    assert client.post("/update", json={"id": "1", "newNum": ""}).status_code == 400


def test_create_results_do_not_expose_driver_text(client: TestClient, store: FakeStore):
    store.fail_create["A123BC"] = errors.StoreError("password authentication failed for user plates")

    resp = client.post("/create", json={"regNums": ["A123BC"]})

    assert resp.status_code == 200
    (outcome,) = resp.json()["results"]
    assert outcome["error"] == "PersistFailed"
    assert "password" not in resp.text
