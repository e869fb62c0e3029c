import pytest

from sanga.settings import settings


@pytest.mark.asyncio
async def test_health_endpoints(api_client):
	live = await api_client.get("/health/live")
	assert live.json() == {"status": "ok"}

	ready = await api_client.get("/health/ready")
	assert ready.status_code == 200
	assert ready.json()["store"]["ok"] is True


@pytest.mark.asyncio
async def test_metrics_access(api_client, monkeypatch):
	monkeypatch.setattr(settings, "obs_admin_token", None)
	denied = await api_client.get("/metrics")
	assert denied.status_code == 403

	monkeypatch.setattr(settings, "obs_admin_token", "ops-secret")
	allowed = await api_client.get("/metrics", headers={"X-Admin-Token": "ops-secret"})
	assert allowed.status_code == 200
	assert "sanga_" in allowed.text


@pytest.mark.asyncio
async def test_manual_sweep(api_client, monkeypatch):
	monkeypatch.setattr(settings, "obs_admin_token", "ops-secret")
	resp = await api_client.post("/ops/notifications/sweep", headers={"X-Admin-Token": "ops-secret"})
	assert resp.status_code == 200
	assert resp.json()["purged"] == 0
