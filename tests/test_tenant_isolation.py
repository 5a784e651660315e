"""Cross-tenant isolation: another tenant's notes behave as if they do not exist."""

import pytest
from httpx import AsyncClient

from app.models.note import NoteCreate
from app.services.accounts import AccountService
from app.services.isolation import IsolationContext
from app.services.notes import NoteQuery, NoteService
from conftest import login


@pytest.mark.asyncio
async def test_cannot_read_update_or_delete_other_tenants_note(client: AsyncClient, acme, globex):
    acme_headers = await login(client, "admin@acme.test")
    resp = await client.post("/api/notes", json={
        "title": "Acme secret",
        "content": "launch codes",
    }, headers=acme_headers)
    note_id = resp.json()["note"]["id"]

    globex_headers = await login(client, "admin@globex.test")

    resp = await client.get(f"/api/notes/{note_id}", headers=globex_headers)
    assert resp.status_code == 404

    resp = await client.put(f"/api/notes/{note_id}", json={"title": "pwned"}, headers=globex_headers)
    assert resp.status_code == 404

    resp = await client.delete(f"/api/notes/{note_id}", headers=globex_headers)
    assert resp.status_code == 404

    # Untouched for its owner.
    resp = await client.get(f"/api/notes/{note_id}", headers=acme_headers)
    assert resp.status_code == 200
    assert resp.json()["note"]["title"] == "Acme secret"


@pytest.mark.asyncio
async def test_list_only_returns_own_tenant_notes(client: AsyncClient, acme, globex):
    acme_headers = await login(client, "user@acme.test")
    globex_headers = await login(client, "user@globex.test")

    await client.post("/api/notes", json={"title": "acme note", "content": "a"}, headers=acme_headers)
    await client.post("/api/notes", json={"title": "globex note", "content": "g"}, headers=globex_headers)

    resp = await client.get("/api/notes", params={"search": "note"}, headers=acme_headers)
    data = resp.json()
    assert [n["title"] for n in data["notes"]] == ["acme note"]
    assert data["tenant"]["currentNotes"] == 1


@pytest.mark.asyncio
async def test_create_ignores_client_supplied_tenant(client: AsyncClient, acme, globex):
    headers = await login(client, "user@acme.test")
    resp = await client.post("/api/notes", json={
        "title": "sneaky",
        "content": "c",
        "tenantId": str(globex.id),
    }, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["note"]["tenantId"] == str(acme.id)


@pytest.mark.asyncio
async def test_quota_is_counted_per_tenant(client: AsyncClient, acme, globex):
    """Globex filling its quota does not affect Acme."""
    globex_headers = await login(client, "user@globex.test")
    for i in range(3):
        await client.post("/api/notes", json={"title": f"g{i}", "content": "c"}, headers=globex_headers)

    acme_headers = await login(client, "user@acme.test")
    resp = await client.post("/api/notes", json={"title": "a", "content": "c"}, headers=acme_headers)
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_service_scopes_queries_to_context_tenant(session, acme, globex):
    """NoteService bound to one tenant never sees the other's rows."""
    accounts = AccountService(session)
    acme_user = await accounts._find_user("user@acme.test")
    globex_user = await accounts._find_user("user@globex.test")

    acme_notes = NoteService(session, IsolationContext(user=acme_user, tenant=acme))
    globex_notes = NoteService(session, IsolationContext(user=globex_user, tenant=globex))

    created = await acme_notes.create(NoteCreate(title="mine", content="c"))

    page = await globex_notes.list_notes(NoteQuery())
    assert page.total == 0
    assert (await globex_notes.usage()).current_notes == 0
    assert (await acme_notes.get(created.id)).title == "mine"
