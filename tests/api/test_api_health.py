"""API tests for authentication, health and metrics endpoints"""
import pytest

from gymtrainer import config


@pytest.mark.asyncio
async def test_health_check_needs_no_auth(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"


@pytest.mark.asyncio
async def test_metrics_endpoint(client):
    response = await client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.asyncio
async def test_invalid_api_key(client, test_user_id):
    response = await client.get(
        f"/api/v1/users/{test_user_id}/points",
        headers={"Authorization": "Bearer wrong_key"},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "AuthenticationError"
    assert "wrong_key" not in response.text


@pytest.mark.asyncio
async def test_missing_api_key(client, test_user_id):
    response = await client.get(f"/api/v1/users/{test_user_id}/points")

    assert response.status_code == 401
    assert response.json()["error"] == "AuthenticationError"


@pytest.mark.asyncio
async def test_no_configured_keys_is_503(client, auth_headers, monkeypatch, test_user_id):
    monkeypatch.setattr(config, "API_KEYS", [])

    response = await client.get(f"/api/v1/users/{test_user_id}/points", headers=auth_headers)

    assert response.status_code == 503
