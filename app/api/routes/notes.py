"""Note CRUD — every query scoped to the caller's tenant."""

import uuid

from fastapi import APIRouter, status

from app.api.deps import Notes
from app.core.errors import ValidationFailed
from app.models.base import ApiSchema
from app.models.note import NoteCreate, NotePriority, NoteRead, NoteUpdate
from app.models.tenant import TenantUsage
from app.services.notes import NoteQuery

router = APIRouter(prefix="/notes", tags=["notes"])


# ── Schemas ──────────────────────────────────────────────────

class NoteResponse(ApiSchema):
    success: bool = True
    message: str | None = None
    note: NoteRead


class Pagination(ApiSchema):
    current_page: int
    total_pages: int
    total_notes: int
    has_next: bool
    has_prev: bool


class NoteListResponse(ApiSchema):
    success: bool = True
    notes: list[NoteRead]
    pagination: Pagination
    tenant: TenantUsage


class DeleteResponse(ApiSchema):
    success: bool = True
    message: str = "Note deleted successfully."


def _parse_priority(value: str) -> NotePriority | None:
    # Clients send priority="" for "any priority".
    if not value:
        return None
    try:
        return NotePriority(value.lower())
    except ValueError as exc:
        raise ValidationFailed("Priority must be one of: low, medium, high.") from exc


# ── Routes ───────────────────────────────────────────────────

@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(body: NoteCreate, notes: Notes) -> NoteResponse:
    note = await notes.create(body)
    return NoteResponse(message="Note created successfully.", note=note)


@router.get("", response_model=NoteListResponse)
async def list_notes(
    notes: Notes,
    page: int = 1,
    limit: int = 10,
    search: str = "",
    priority: str = "",
    archived: bool = False,
) -> NoteListResponse:
    result = await notes.list_notes(NoteQuery(
        page=page,
        limit=limit,
        search=search,
        priority=_parse_priority(priority),
        archived=archived,
    ))
    return NoteListResponse(
        notes=result.notes,
        pagination=Pagination(
            current_page=result.page,
            total_pages=result.total_pages,
            total_notes=result.total,
            has_next=result.has_next,
            has_prev=result.has_prev,
        ),
        tenant=await notes.usage(),
    )


@router.get("/{note_id}", response_model=NoteResponse, response_model_exclude_none=True)
async def get_note(note_id: uuid.UUID, notes: Notes) -> NoteResponse:
    return NoteResponse(note=await notes.get(note_id))


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(note_id: uuid.UUID, body: NoteUpdate, notes: Notes) -> NoteResponse:
    """Partial update: fields left out of the body keep their current values."""
    note = await notes.update(note_id, body)
    return NoteResponse(message="Note updated successfully.", note=note)


@router.delete("/{note_id}", response_model=DeleteResponse)
async def delete_note(note_id: uuid.UUID, notes: Notes) -> DeleteResponse:
    await notes.delete(note_id)
    return DeleteResponse()
