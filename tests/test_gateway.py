"""
Tests for the HTTP gateway: health and per-party cycle status.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

import main
import run_janitor


@pytest.fixture
def client():
    with TestClient(main.app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "system": "Hub Engine"}


def test_system_party_has_no_reset(client):
    payload = client.get("/hubs/SYSTEM/cycle").json()
    assert payload["party_id"] == "SYSTEM"
    assert payload["reset_in"] is None
    assert payload["windows"] == []


def test_unknown_party(client):
    response = client.get("/hubs/99/cycle")
    assert response.status_code == 404
    assert response.json() == {"error": "Unknown party."}


def test_party_cycle(client):
    client.portal.call(run_janitor.store.insert, "parties", {
        "id": "81", "name": "Gateway Hub", "timezone": "Asia/Tokyo",
        "session_config": {"morning": {"enabled": True, "start": "08:00", "end": "09:00"}},
    })

    payload = client.get("/hubs/81/cycle").json()

    assert payload["timezone"] == "Asia/Tokyo"
    assert payload["reset_time"] == "07:00"
    assert payload["windows"] == [{"name": "morning", "start": "08:00", "end": "09:00"}]
    assert 0 <= payload["reset_in"] < 1440


async def test_stop_service_waits_for_background_loops():
    finished = []

    async def loop():
        try:
            await asyncio.sleep(3600)
        finally:
            await asyncio.sleep(0)
            finished.append(True)

    task = asyncio.create_task(loop())
    await asyncio.sleep(0)
    run_janitor.tasks.append(task)

    await run_janitor.stop_service()

    assert task.done()
    assert finished == [True]
    assert run_janitor.tasks == []
