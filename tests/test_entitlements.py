"""Plan quotas, the upgrade flow and role gating of tenant operations."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from app.core.errors import EntitlementExceeded, InsufficientPermissions
from app.models.tenant import Subscription, Tenant
from app.models.user import User, UserRole
from app.services.entitlements import (
    UNLIMITED,
    EntitlementEngine,
    apply_subscription,
    derive_quota,
)
from app.services.isolation import IsolationContext, TenantGuard
from app.services.roles import RoleGate
from conftest import login


async def _create(client: AsyncClient, headers: dict, title: str):
    return await client.post("/api/notes", json={"title": title, "content": "c"}, headers=headers)


# ── Pure quota derivation ────────────────────────────────────

def test_derive_quota_mapping():
    assert derive_quota(Subscription.FREE) == 3
    assert derive_quota(Subscription.PRO) == UNLIMITED
    assert derive_quota("pro") == UNLIMITED


def test_apply_subscription_recomputes_quota():
    tenant = Tenant(name="T", slug="t", subscription=Subscription.FREE, max_notes=99)
    apply_subscription(tenant, Subscription.FREE)
    assert tenant.max_notes == 3

    apply_subscription(tenant, Subscription.PRO)
    assert tenant.subscription == Subscription.PRO
    assert tenant.max_notes == UNLIMITED


# ── Engine ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_pro_tenant_skips_count_query():
    session = MagicMock()
    session.execute = AsyncMock()
    tenant = apply_subscription(Tenant(name="P", slug="p"), Subscription.PRO)

    await EntitlementEngine(session).ensure_can_create(tenant)

    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_free_tenant_at_cap_is_rejected():
    result = MagicMock()
    result.scalar_one.return_value = 3
    session = MagicMock()
    session.execute = AsyncMock(return_value=result)
    tenant = apply_subscription(Tenant(name="F", slug="f"), Subscription.FREE)

    with pytest.raises(EntitlementExceeded) as exc_info:
        await EntitlementEngine(session).ensure_can_create(tenant)

    assert exc_info.value.to_body()["upgradeRequired"] is True
    session.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_free_tenant_below_cap_is_allowed():
    result = MagicMock()
    result.scalar_one.return_value = 2
    session = MagicMock()
    session.execute = AsyncMock(return_value=result)
    tenant = apply_subscription(Tenant(name="F", slug="f"), Subscription.FREE)

    await EntitlementEngine(session).ensure_can_create(tenant)


def _context(tenant: Tenant, role: UserRole = UserRole.MEMBER) -> IsolationContext:
    user = User(tenant_id=tenant.id, email=f"{role}@{tenant.slug}", password_hash="x", role=role)
    return IsolationContext(user=user, tenant=tenant)


def test_role_gate():
    tenant = Tenant(name="T", slug="t")
    admin = _context(tenant, UserRole.ADMIN)
    member = _context(tenant, UserRole.MEMBER)
    gate = RoleGate([UserRole.ADMIN])

    assert gate.check(admin) is admin
    with pytest.raises(InsufficientPermissions):
        gate.check(member)


def test_ensure_slug_rejects_other_tenant():
    tenant = Tenant(name="T", slug="acme")
    context = _context(tenant)

    TenantGuard.ensure_slug(context, "ACME")
    with pytest.raises(InsufficientPermissions):
        TenantGuard.ensure_slug(context, "globex")


# ── End-to-end quota + upgrade ───────────────────────────────

@pytest.mark.asyncio
async def test_free_quota_then_upgrade(client: AsyncClient, acme):
    member = await login(client, "user@acme.test")
    for i in range(3):
        resp = await _create(client, member, f"note {i}")
        assert resp.status_code == 201

    resp = await _create(client, member, "note 4")
    assert resp.status_code == 403
    assert resp.json() == {
        "success": False,
        "message": "Note limit reached. Upgrade to Pro for unlimited notes.",
        "upgradeRequired": True,
    }

    admin = await login(client, "admin@acme.test")
    resp = await client.post("/api/tenants/acme/upgrade", headers=admin)
    assert resp.status_code == 200, resp.text
    tenant = resp.json()["tenant"]
    assert tenant["subscription"] == "pro"
    assert tenant["maxNotes"] == UNLIMITED

    for i in range(4, 8):
        resp = await _create(client, member, f"note {i}")
        assert resp.status_code == 201

    resp = await client.get("/api/notes", headers=member)
    assert resp.json()["tenant"] == {"subscription": "pro", "maxNotes": -1, "currentNotes": 7}


@pytest.mark.asyncio
async def test_quota_not_rechecked_on_update(client: AsyncClient, acme):
    member = await login(client, "user@acme.test")
    ids = [(await _create(client, member, f"n{i}")).json()["note"]["id"] for i in range(3)]

    resp = await client.put(f"/api/notes/{ids[0]}", json={"title": "edited"}, headers=member)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_deleting_frees_quota(client: AsyncClient, acme):
    member = await login(client, "user@acme.test")
    ids = [(await _create(client, member, f"n{i}")).json()["note"]["id"] for i in range(3)]
    assert (await _create(client, member, "over")).status_code == 403

    await client.delete(f"/api/notes/{ids[0]}", headers=member)
    assert (await _create(client, member, "fits")).status_code == 201


@pytest.mark.asyncio
async def test_upgrade_is_idempotent(client: AsyncClient, acme):
    admin = await login(client, "admin@acme.test")
    await client.post("/api/tenants/acme/upgrade", headers=admin)
    resp = await client.post("/api/tenants/acme/upgrade", headers=admin)
    assert resp.status_code == 200
    assert resp.json()["tenant"]["subscription"] == "pro"


@pytest.mark.asyncio
async def test_member_cannot_upgrade(client: AsyncClient, acme):
    member = await login(client, "user@acme.test")
    resp = await client.post("/api/tenants/acme/upgrade", headers=member)
    assert resp.status_code == 403

    resp = await client.get("/api/tenants/info", headers=member)
    assert resp.json()["tenant"]["subscription"] == "free"


@pytest.mark.asyncio
async def test_admin_cannot_upgrade_another_tenant(client: AsyncClient, acme, globex):
    admin = await login(client, "admin@acme.test")
    resp = await client.post("/api/tenants/globex/upgrade", headers=admin)
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access denied to this tenant."

    globex_admin = await login(client, "admin@globex.test")
    resp = await client.get("/api/tenants/info", headers=globex_admin)
    assert resp.json()["tenant"]["subscription"] == "free"


@pytest.mark.asyncio
async def test_tenant_info(client: AsyncClient, acme):
    headers = await login(client, "user@acme.test")
    resp = await client.get("/api/tenants/info", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "tenant": {
            "id": str(acme.id),
            "name": "Acme Co",
            "slug": "acme",
            "subscription": "free",
            "maxNotes": 3,
        },
    }
