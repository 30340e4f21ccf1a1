from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pipeline_crm.core.dependencies import get_db_session
from pipeline_crm.core.exceptions import StoreWriteError
from pipeline_crm.main import app
from pipeline_crm.models import Base
from pipeline_crm.services.change_reconciler import ChangeReconciler
from pipeline_crm.services.prospect_service import ProspectService

PREFIX = "/api/v1"


@pytest.fixture
def client():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def _get_db_session():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = _get_db_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create(client, **overrides):
    payload = {"name": "Ana", "company": "Acme", "email": "ana@acme.com", "estimated_amount": "1500"}
    payload.update(overrides)
    response = client.post(f"{PREFIX}/prospects", json=payload)
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get(f"{PREFIX}/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["store"] == "ok"


def test_create_and_fetch_prospect(client):
    created = _create(client)

    assert created["stage"] == "new"
    assert created["estimated_amount"] == "1500.00"

    fetched = client.get(f"{PREFIX}/prospects/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["email"] == "ana@acme.com"


def test_create_rejects_blank_name(client):
    response = client.post(f"{PREFIX}/prospects", json={"name": "  "})
    assert response.status_code == 422


def test_unknown_prospect_returns_404(client):
    assert client.get(f"{PREFIX}/prospects/missing").status_code == 404
    assert client.get(f"{PREFIX}/prospects/missing/history").status_code == 404
    assert client.patch(f"{PREFIX}/prospects/missing/stage", json={"stage": "paid"}).status_code == 404


def test_update_returns_changes_and_history(client):
    created = _create(client)

    response = client.put(
        f"{PREFIX}/prospects/{created['id']}",
        json={"name": "Ana", "company": "Acme", "email": "ana@acme.com", "estimated_amount": "1500", "notes": "Hi"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["changes"] == [{"field": "notes", "previous_value": "", "new_value": "Hi"}]
    assert body["warning"] is None
    history = client.get(f"{PREFIX}/prospects/{created['id']}/history").json()
    assert [entry["field_changed"] for entry in history] == ["notes"]


def test_move_stage_to_same_stage_returns_no_changes(client):
    created = _create(client)

    response = client.patch(f"{PREFIX}/prospects/{created['id']}/stage", json={"stage": "new"})

    assert response.status_code == 200
    assert response.json()["changes"] == []
    assert client.get(f"{PREFIX}/prospects/{created['id']}/history").json() == []


def test_move_stage_rejects_unknown_stage(client):
    created = _create(client)
    response = client.patch(f"{PREFIX}/prospects/{created['id']}/stage", json={"stage": "won"})
    assert response.status_code == 422


def test_partial_write_returns_warning(client, monkeypatch):
    created = _create(client)

    def _fail(self, entries):
        raise OperationalError("INSERT INTO prospect_history", {}, Exception("timeout"))

    monkeypatch.setattr(ChangeReconciler, "_insert_history", _fail)
    response = client.post(f"{PREFIX}/prospects/{created['id']}/mark-paid")

    assert response.status_code == 200
    body = response.json()
    assert body["prospect"]["stage"] == "paid"
    assert body["warning"]


def test_mark_lost_records_reason(client):
    created = _create(client)

    response = client.post(f"{PREFIX}/prospects/{created['id']}/mark-lost", json={"reason": "Budget"})

    assert response.status_code == 200
    assert response.json()["prospect"]["notes"] == "Loss reason: Budget"


def test_list_filters_and_empty_store(client):
    empty = client.get(f"{PREFIX}/prospects").json()
    assert empty["store_is_empty"] is True
    assert empty["offer_create_prospect"] is True

    _create(client)
    _create(client, name="Beto", company="Globex", email="beto@globex.com", temperature="hot")

    hot = client.get(f"{PREFIX}/prospects", params={"temperature": "hot"}).json()
    assert [item["name"] for item in hot["items"]] == ["Beto"]
    searched = client.get(f"{PREFIX}/prospects", params={"search": "ACME"}).json()
    assert searched["total"] == 1
    assert client.get(f"{PREFIX}/prospects", params={"stage": "archived"}).status_code == 422


def test_board_and_dashboard(client):
    created = _create(client, next_action_date="2026-10-20", temperature="hot")
    _create(client, name="Beto", stage="lost", estimated_amount="500")

    board = client.get(f"{PREFIX}/board").json()
    columns = {column["stage"]: column for column in board["columns"]}
    assert [p["id"] for p in columns["new"]["prospects"]] == [created["id"]]
    assert columns["lost"]["count"] == 1

    dashboard = client.get(f"{PREFIX}/dashboard", params={"today": "2026-10-19"}).json()
    assert dashboard["active_count"] == 1
    assert dashboard["hot_count"] == 1
    assert dashboard["actions_this_week"] == 1
    assert dashboard["upcoming_actions"][0]["prospect_id"] == created["id"]


def test_partial_update_keeps_unsent_fields(client):
    created = _create(client, stage="negotiating", temperature="hot")

    response = client.put(f"{PREFIX}/prospects/{created['id']}", json={"name": "Ana", "notes": "hi"})

    assert response.status_code == 200
    body = response.json()
    assert [change["field"] for change in body["changes"]] == ["notes"]
    assert body["prospect"]["stage"] == "negotiating"
    assert body["prospect"]["temperature"] == "hot"


def test_board_and_dashboard_map_store_failures(client, monkeypatch):
    def _fail(self, *args, **kwargs):
        raise StoreWriteError("Store could not load prospects.")

    monkeypatch.setattr(ProspectService, "list_all", _fail)
    monkeypatch.setattr(ProspectService, "dashboard_summary", _fail)

    assert client.get(f"{PREFIX}/board").status_code == 502
    assert client.get(f"{PREFIX}/dashboard").status_code == 502
