from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from workcal.app import app, get_today
from workcal.db import get_db
from workcal.models import Base

CONFIG = {
    "year": 2025,
    "cycle": {"mode": "WEEKLY", "weekly_mask": [True, True, True, True, True, False, False]},
    "annual_contract_hours": 1762,
    "holidays": [{"date": "2025-01-01", "name": "Año Nuevo"}],
    "vacations": [{"start": "2025-08-04", "end": "2025-08-08", "description": "Verano"}],
    "guardias": [{"date": "2025-01-04", "hours": 12}],
}


@pytest.fixture
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: date(2025, 6, 1)
    yield TestClient(app)
    app.dependency_overrides.clear()
    engine.dispose()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_generate_calendar(client):
    resp = client.post("/api/calendar", json=CONFIG)
    assert resp.status_code == 200
    body = resp.json()
    assert body["year"] == 2025
    assert len(body["days"]) == 365
    assert body["days"][0]["state"] == "FestivoTrabajado"
    assert body["days"][3]["state"] == "Guardia"
    assert body["statistics"]["vacation_days"] == 5
    assert body["statistics"]["hours_balance"]["balance_type"] in {
        "empresa_debe", "empleado_debe", "equilibrado"
    }
    assert body["validation"]["valid"] is True
    assert body["stage_reports"]["guardias"]["guardia_days_marked"] == 1
    assert "days" not in body["stage_reports"]["cycle"]


def test_generate_calendar_without_days(client):
    resp = client.post("/api/calendar", params={"include_days": False}, json=CONFIG)
    assert resp.status_code == 200
    assert resp.json()["days"] is None


def test_year_outside_window_is_rejected(client):
    resp = client.post("/api/calendar", json={**CONFIG, "year": 2040})
    assert resp.status_code == 422


def test_invalid_working_hours_are_rejected(client):
    resp = client.post("/api/calendar", json={**CONFIG, "working_hours": {"weekday": 30}})
    assert resp.status_code == 422


def test_pipeline_failure_names_the_stage(client):
    resp = client.post("/api/calendar", json={**CONFIG, "employment_status": "STARTED_THIS_YEAR"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["stage"] == "skeleton"


def test_validate_configuration(client):
    draft = {
        "year": 2025,
        "guardias": [
            {"date": "2025-01-04", "hours": 12},
            {"date": "2025-01-04", "hours": 6},
        ],
    }
    resp = client.post("/api/configuration/validate", json=draft)
    assert resp.status_code == 200
    body = resp.json()
    assert body["can_generate"] is False
    statuses = {s["field"]: s["status"] for s in body["sections"]}
    assert statuses["guardias"] == "ERROR"
    assert statuses["cycle"] == "INCOMPLETE"


def test_saved_configuration_round_trip(client):
    created = client.post("/api/configurations", json={"name": "Mi año", "config": CONFIG})
    assert created.status_code == 201
    saved = created.json()
    assert saved["version"] == "1.0"
    assert saved["year"] == 2025

    listed = client.get("/api/configurations").json()
    assert [c["id"] for c in listed] == [saved["id"]]

    direct = client.post("/api/calendar", json=CONFIG).json()
    regenerated = client.post(f"/api/configurations/{saved['id']}/calendar").json()
    assert regenerated["statistics"] == direct["statistics"]

    renamed = client.put(
        f"/api/configurations/{saved['id']}", json={"name": "Renombrado", "config": CONFIG}
    )
    assert renamed.json()["name"] == "Renombrado"

    assert client.delete(f"/api/configurations/{saved['id']}").status_code == 204
    assert client.get(f"/api/configurations/{saved['id']}").status_code == 404


def test_unknown_configuration(client):
    assert client.get("/api/configurations/999").status_code == 404
    assert client.post("/api/configurations/999/calendar").status_code == 404
    assert client.delete("/api/configurations/999").status_code == 404
    resp = client.put("/api/configurations/999", json={"name": "x", "config": CONFIG})
    assert resp.status_code == 404


def test_invalid_configuration_is_not_saved(client):
    resp = client.post(
        "/api/configurations", json={"name": "Malo", "config": {**CONFIG, "year": 2040}}
    )
    assert resp.status_code == 422
    assert client.get("/api/configurations").json() == []
