import pytest

from app.core.config import settings
from app.routers import system_router


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "message": "Payment server is running"}


@pytest.mark.parametrize("path", ["/ping-companion", "/ping-activity"])
def test_ping_without_url(client, path):
    response = client.get(path)

    assert response.status_code == 400
    assert response.json()["code"] == "NOT_CONFIGURED"


def test_ping_companion(client, monkeypatch):
    calls = []

    async def fake_ping(url, timeout):
        calls.append(url)
        return {"status": "healthy"}

    monkeypatch.setattr(settings, "COMPANION_APP_URL", "https://companion.kob.test")
    monkeypatch.setattr(system_router, "ping_health", fake_ping)

    response = client.get("/ping-companion")

    assert response.status_code == 200
    assert response.json() == {"success": True, "companionStatus": {"status": "healthy"}}
    assert calls == ["https://companion.kob.test"]


def test_ping_activity_failure(client, monkeypatch):
    async def failing_ping(url, timeout):
        raise ConnectionError("refused")

    monkeypatch.setattr(settings, "ACTIVITY_APP_URL", "https://activity.kob.test")
    monkeypatch.setattr(system_router, "ping_health", failing_ping)

    response = client.get("/ping-activity")

    assert response.status_code == 500
    assert response.json()["code"] == "UPSTREAM_UNAVAILABLE"
    assert "refused" in response.json()["error"]
