"""Tests for admin user management and owner notifications."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from casebook.core.config import settings


async def _me(client: AsyncClient, headers: dict) -> dict:
    return (await client.get("/api/v1/auth/me", headers=headers)).json()


@pytest.mark.asyncio
async def test_admin_routes_require_admin(async_client: AsyncClient, sign_in):
    headers = await sign_in("g-user")
    assert (await async_client.get("/api/v1/admin/users", headers=headers)).status_code == 403
    assert (await async_client.get("/api/v1/admin/users")).status_code == 401


@pytest.mark.asyncio
async def test_list_users_newest_first(async_client: AsyncClient, sign_in):
    await sign_in("g-first")
    await sign_in("g-second")
    admin = await sign_in(settings.OWNER_OPEN_ID)

    resp = await async_client.get("/api/v1/admin/users", headers=admin)
    assert resp.status_code == 200
    open_ids = [u["open_id"] for u in resp.json()]
    assert open_ids == [settings.OWNER_OPEN_ID, "g-second", "g-first"]


@pytest.mark.asyncio
async def test_change_role(async_client: AsyncClient, sign_in):
    user = await sign_in("g-user")
    admin = await sign_in(settings.OWNER_OPEN_ID)
    user_id = (await _me(async_client, user))["id"]

    resp = await async_client.put(
        f"/api/v1/admin/users/{user_id}/role", json={"role": "admin"}, headers=admin
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "admin"

    resp = await async_client.put(
        f"/api/v1/admin/users/{user_id}/role", json={"role": "user"}, headers=admin
    )
    assert resp.json()["role"] == "user"


@pytest.mark.asyncio
async def test_change_role_validation(async_client: AsyncClient, sign_in):
    admin = await sign_in(settings.OWNER_OPEN_ID)
    admin_id = (await _me(async_client, admin))["id"]

    own = await async_client.put(
        f"/api/v1/admin/users/{admin_id}/role", json={"role": "user"}, headers=admin
    )
    assert own.status_code == 400

    missing = await async_client.put(
        "/api/v1/admin/users/9999/role", json={"role": "user"}, headers=admin
    )
    assert missing.status_code == 404

    bogus = await async_client.put(
        "/api/v1/admin/users/9999/role", json={"role": "superuser"}, headers=admin
    )
    assert bogus.status_code == 422


@pytest.mark.asyncio
async def test_delete_user_reassigns_case_studies(async_client: AsyncClient, sign_in):
    author = await sign_in("g-author")
    resp = await async_client.post(
        "/api/v1/case-studies",
        json={
            "title": "Orphan",
            "description": "d",
            "category": "tools",
            "tools": [],
            "challenge": "c",
            "solution": "s",
            "steps": [],
        },
        headers=author,
    )
    case_id = resp.json()["id"]
    author_id = (await _me(async_client, author))["id"]

    admin = await sign_in(settings.OWNER_OPEN_ID)
    admin_id = (await _me(async_client, admin))["id"]

    resp = await async_client.delete(f"/api/v1/admin/users/{author_id}", headers=admin)
    assert resp.json() == {"success": True}

    case = (await async_client.get(f"/api/v1/case-studies/{case_id}")).json()
    assert case["user_id"] == admin_id
    users = (await async_client.get("/api/v1/admin/users", headers=admin)).json()
    assert "g-author" not in [u["open_id"] for u in users]


@pytest.mark.asyncio
async def test_delete_user_validation(async_client: AsyncClient, sign_in):
    admin = await sign_in(settings.OWNER_OPEN_ID)
    admin_id = (await _me(async_client, admin))["id"]

    assert (await async_client.delete(f"/api/v1/admin/users/{admin_id}", headers=admin)).status_code == 400
    assert (await async_client.delete("/api/v1/admin/users/9999", headers=admin)).status_code == 404


@pytest.mark.asyncio
async def test_notify_owner_unconfigured_is_503(async_client: AsyncClient, sign_in):
    admin = await sign_in(settings.OWNER_OPEN_ID)
    resp = await async_client.post(
        "/api/v1/system/notify-owner", json={"title": "Hi", "content": "Hello"}, headers=admin
    )
    assert resp.status_code == 503
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_notify_owner_delivers(async_client: AsyncClient, sign_in):
    admin = await sign_in(settings.OWNER_OPEN_ID)
    with patch(
        "casebook.api.v1.endpoints.admin.notify_owner", new=AsyncMock(return_value=True)
    ) as notify:
        resp = await async_client.post(
            "/api/v1/system/notify-owner",
            json={"title": "  Release  ", "content": "Shipped v2"},
            headers=admin,
        )
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    notify.assert_awaited_once_with("Release", "Shipped v2")


@pytest.mark.asyncio
async def test_notify_owner_rejects_blank(async_client: AsyncClient, sign_in):
    admin = await sign_in(settings.OWNER_OPEN_ID)
    resp = await async_client.post(
        "/api/v1/system/notify-owner", json={"title": " ", "content": "x"}, headers=admin
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_notify_owner_requires_admin(async_client: AsyncClient, sign_in):
    user = await sign_in("g-user")
    resp = await async_client.post(
        "/api/v1/system/notify-owner", json={"title": "Hi", "content": "Hello"}, headers=user
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": True}
