"""
System smoke test: full actor lifecycle in-process with SQLite.

Bootstraps the first administrator the way startup does, then walks an
operative user from creation through login, refresh, disable and delete.
"""

import pytest
from httpx import AsyncClient

from pricesurvey import main

API = "/api/v1"
BOOT_EMAIL = "boot@example.com"
BOOT_PASSWORD = "BootPassword123"


@pytest.fixture
def bootstrap_settings(monkeypatch):
    monkeypatch.setattr(main.settings, "bootstrap_admin_email", BOOT_EMAIL)
    monkeypatch.setattr(main.settings, "bootstrap_admin_password", BOOT_PASSWORD)
    monkeypatch.setattr(main.settings, "bootstrap_admin_username", "boot")


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    """Health endpoint responds."""
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_operative_lifecycle(client: AsyncClient, bootstrap_settings):
    """Bootstrap admin -> create operative -> login -> refresh -> disable -> delete."""
    await main.seed_bootstrap_admin()
    # Running it again is a no-op
    await main.seed_bootstrap_admin()

    r = await client.post(
        f"{API}/auth/login",
        json={"email": BOOT_EMAIL, "password": BOOT_PASSWORD, "actorType": "ADMIN"},
    )
    assert r.status_code == 200, r.text
    admin = r.json()
    admin_headers = {"Authorization": f"Bearer {admin['accessToken']}"}

    # Create operative
    r = await client.post(
        f"{API}/operative-users",
        json={
            "fullName": "Field Operative",
            "email": "field@example.com",
            "username": "field",
            "password": "FieldPass123",
        },
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    operative = r.json()
    assert operative["createdById"] == admin["actor"]["id"]
    assert operative["enabled"] is True

    # Listed under its creator
    r = await client.get(
        f"{API}/operative-users",
        params={"createdById": admin["actor"]["id"]},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert [o["id"] for o in r.json()["data"]] == [operative["id"]]

    # Operative logs in and refreshes
    r = await client.post(
        f"{API}/auth/login",
        json={"email": "field@example.com", "password": "FieldPass123", "actorType": "OPERATIVE_USER"},
    )
    assert r.status_code == 200
    session = r.json()
    r = await client.post(f"{API}/auth/refresh", json={"refreshToken": session["refreshToken"]})
    assert r.status_code == 200
    session = r.json()
    op_headers = {"Authorization": f"Bearer {session['accessToken']}"}
    assert (await client.get(f"{API}/auth/me", headers=op_headers)).status_code == 200

    # Operatives cannot manage operatives
    r = await client.get(f"{API}/operative-users", headers=op_headers)
    assert r.status_code == 403

    # Disable: the very next request fails, and so does refresh
    r = await client.patch(
        f"{API}/operative-users/{operative['id']}/status",
        json={"enable": False},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["enabled"] is False
    assert (await client.get(f"{API}/auth/me", headers=op_headers)).status_code == 401
    r = await client.post(f"{API}/auth/refresh", json={"refreshToken": session["refreshToken"]})
    assert r.status_code == 401

    # Re-enable: old refresh token stays dead, a fresh login works
    r = await client.patch(
        f"{API}/operative-users/{operative['id']}/status",
        json={"enable": True},
        headers=admin_headers,
    )
    assert r.status_code == 200
    r = await client.post(f"{API}/auth/refresh", json={"refreshToken": session["refreshToken"]})
    assert r.status_code == 401
    r = await client.post(
        f"{API}/auth/login",
        json={"email": "field@example.com", "password": "FieldPass123", "actorType": "OPERATIVE_USER"},
    )
    assert r.status_code == 200

    # Edit
    r = await client.put(
        f"{API}/operative-users/{operative['id']}",
        json={"fullName": "Renamed Operative"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["fullName"] == "Renamed Operative"

    # Delete
    r = await client.delete(f"{API}/operative-users/{operative['id']}", headers=admin_headers)
    assert r.status_code == 200
    r = await client.get(f"{API}/operative-users/{operative['id']}", headers=admin_headers)
    assert r.status_code == 404
    r = await client.post(
        f"{API}/auth/login",
        json={"email": "field@example.com", "password": "FieldPass123", "actorType": "OPERATIVE_USER"},
    )
    assert r.status_code == 401
