import importlib

import pytest
from fastapi.testclient import TestClient

from services.measurements.config import MeasurementsConfig


@pytest.fixture
def main_module(monkeypatch, tmp_path):
    # The module builds its default app on import, which needs a database URL.
    monkeypatch.setenv("MEASUREMENTS_DATABASE_URL", f"sqlite:///{tmp_path / 'default.db'}")
    monkeypatch.setenv("MEASUREMENTS_EVENTS_BACKEND", "logging")
    return importlib.import_module("services.measurements.main")


@pytest.fixture
def client(main_module, tmp_path):
    config = MeasurementsConfig(
        database_url=f"sqlite:///{tmp_path / 'app.db'}",
        id_prefix="msr",
        id_length=8,
        adjustment_factor=0.935,
        reference_tables_path=None,
        events_backend="logging",
        redis_host="localhost",
        redis_port=6379,
        redis_db=0,
        redis_channel="measurements",
        log_level="INFO",
    )
    return TestClient(main_module.build_app(config))


def test_ping(client):
    response = client.get("/ping")
    assert response.status_code == 200
    assert response.json() == {"message": "pong"}


def test_built_app_serves_measurements(client, reference_readings):
    created = client.post(
        "/v1/measurements",
        json={"patient_id": "pat_1", "sex": "female", "age": 35, **reference_readings},
    )

    assert created.status_code == 201
    body = created.json()
    assert body["measurement"]["measurement_id"].startswith("msr_")
    assert body["composition"]["body_fat_percentage"] == pytest.approx(33.43, abs=0.01)
