import asyncio
import os
from dataclasses import replace

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from rahaseva_api.app.core.connectivity import ConnectionState, connect_with_retry, open_live_store
from rahaseva_api.app.core.middleware import DatabaseFallbackMiddleware
from rahaseva_api.app.main import create_app
from rahaseva_api.app.store import MockDataStore, SQLiteDocumentStore


def test_state_starts_disconnected_on_mock_data():
    state = ConnectionState(mock_store=MockDataStore(seed=False))
    connected, store = state.snapshot()
    assert connected is False
    assert store is state.mock_store
    assert state.status() == {
        "is_connected": False,
        "status": "disconnected",
        "using": "mock-data",
        "last_error": None,
    }


def test_lifecycle_events_toggle_the_flag(tmp_path):
    state = ConnectionState(mock_store=MockDataStore(seed=False))
    live = SQLiteDocumentStore(str(tmp_path / "state.db"))

    state.on_connected(live)
    assert state.is_connected
    assert state.snapshot() == (True, live)
    assert state.status()["using"] == "sqlite"

    state.on_disconnected()
    assert not state.is_connected
    assert state.snapshot()[1] is state.mock_store

    state.on_error(RuntimeError("disk gone"))
    assert state.status()["last_error"] == "disk gone"
    state.on_connected(live)
    assert state.status()["last_error"] is None


def test_open_live_store_success_and_failure(settings, tmp_path):
    state = ConnectionState(mock_store=MockDataStore(seed=False))
    bad = replace(settings, database_url=str(tmp_path / "missing" / "db.sqlite"))
    assert open_live_store(state, bad) is False
    assert state.status()["last_error"]

    good = replace(settings, database_url=str(tmp_path / "db.sqlite"))
    assert open_live_store(state, good) is True
    assert state.is_connected


def test_retry_backs_off_exponentially_then_gives_up(settings, tmp_path):
    state = ConnectionState(mock_store=MockDataStore(seed=False))
    app_settings = replace(
        settings,
        database_url=str(tmp_path / "missing" / "db.sqlite"),
        db_max_retry_attempts=4,
        db_retry_base_delay=0.5,
    )
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    assert asyncio.run(connect_with_retry(state, app_settings, sleep=fake_sleep)) is False
    assert delays == [1.0, 2.0, 4.0]
    assert not state.is_connected


def test_retry_connects_once_the_database_appears(settings, tmp_path):
    state = ConnectionState(mock_store=MockDataStore(seed=False))
    directory = tmp_path / "later"
    app_settings = replace(settings, database_url=str(directory / "db.sqlite"), db_max_retry_attempts=5)
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)
        os.makedirs(directory, exist_ok=True)

    assert asyncio.run(connect_with_retry(state, app_settings, sleep=fake_sleep)) is True
    assert len(delays) == 1
    assert state.is_connected


def _stamping_app(state: ConnectionState) -> FastAPI:
    app = FastAPI()
    app.state.connection = state
    app.add_middleware(DatabaseFallbackMiddleware)

    @app.get("/mode")
    async def mode(request: Request):
        return {
            "is_db_connected": request.state.is_db_connected,
            "store": request.state.store.name,
            "has_mock_store": hasattr(request.state, "mock_store"),
        }

    return app


def test_fallback_middleware_stamps_disconnected_requests():
    state = ConnectionState(mock_store=MockDataStore(seed=False))
    with TestClient(_stamping_app(state)) as test_client:
        body = test_client.get("/mode").json()
    assert body == {"is_db_connected": False, "store": "mock-data", "has_mock_store": True}


def test_fallback_middleware_stamps_connected_requests(tmp_path):
    state = ConnectionState(mock_store=MockDataStore(seed=False))
    state.on_connected(SQLiteDocumentStore(str(tmp_path / "db.sqlite")))
    with TestClient(_stamping_app(state)) as test_client:
        body = test_client.get("/mode").json()
    assert body == {"is_db_connected": True, "store": "sqlite", "has_mock_store": False}


def test_unreachable_database_falls_back_to_mock_data(settings, tmp_path):
    app_settings = replace(settings, database_url=str(tmp_path / "missing" / "db.sqlite"))
    with TestClient(create_app(app_settings)) as test_client:
        health = test_client.get("/health").json()
        assert health["status"] == "ok"
        assert health["database"]["is_connected"] is False
        assert health["database"]["using"] == "mock-data"

        resp = test_client.post(
            "/api/auth/login", json={"email": "test@example.com", "password": "password123"}
        )
        assert resp.status_code == 200


def test_health_and_root_report_live_store(live_client):
    health = live_client.get("/health").json()
    assert health["database"]["status"] == "connected"
    assert health["database"]["using"] == "sqlite"

    root = live_client.get("/").json()
    assert root["database"] == "connected"
    assert root["using"] == "sqlite"
    assert root["version"]


def test_root_reports_mock_mode(client):
    root = client.get("/").json()
    assert root == {
        "message": "Welcome to RahaSeva API",
        "version": root["version"],
        "database": "disconnected",
        "using": "mock-data",
    }
