"""Tenant-scoped note operations.

``NoteService`` is constructed per request with the caller's
``IsolationContext``. All reads and writes go through ``_scoped()``, so a
note id from another tenant behaves exactly like one that does not exist.
"""

import json
import math
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFound, ValidationFailed
from app.models.base import utcnow
from app.models.note import Note, NoteAuthor, NoteCreate, NotePriority, NoteRead, NoteUpdate
from app.models.tenant import TenantUsage
from app.models.user import User
from app.services.entitlements import EntitlementEngine
from app.services.isolation import IsolationContext

MAX_TITLE_LENGTH = 200
MAX_PAGE_SIZE = 100
TAG_SEPARATOR = "\n"


# ── Pure helpers ──────────────────────────────────────────────

def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Trim and lowercase tags, dropping empties. Idempotent."""
    return [t for t in (tag.strip().lower() for tag in tags) if t]


def validate_new_note(body: NoteCreate) -> NoteCreate:
    title = body.title.strip()
    content = body.content.strip()
    if not title or not content:
        raise ValidationFailed("Title and content are required.")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationFailed(f"Title must be at most {MAX_TITLE_LENGTH} characters.")
    return NoteCreate(
        title=title,
        content=content,
        tags=normalize_tags(body.tags),
        priority=body.priority,
    )


def validate_note_changes(body: NoteUpdate) -> dict:
    """Return only the supplied, non-null fields, cleaned for storage."""
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}

    for field in ("title", "content"):
        if field in changes:
            changes[field] = changes[field].strip()
            if not changes[field]:
                raise ValidationFailed(f"{field.capitalize()} cannot be empty.")
    if len(changes.get("title", "")) > MAX_TITLE_LENGTH:
        raise ValidationFailed(f"Title must be at most {MAX_TITLE_LENGTH} characters.")
    if "tags" in changes:
        changes["tags"] = normalize_tags(changes["tags"])
    return changes


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _store_tags(note: Note, tags: list[str]) -> None:
    note.tags = json.dumps(tags, ensure_ascii=False)
    note.tags_text = TAG_SEPARATOR.join(tags)


def _to_read(note: Note, author_email: str | None) -> NoteRead:
    return NoteRead(
        id=note.id,
        title=note.title,
        content=note.content,
        tags=json.loads(note.tags) if isinstance(note.tags, str) else note.tags,
        priority=note.priority,
        tenant_id=note.tenant_id,
        created_by=(
            NoteAuthor(id=note.created_by, email=author_email) if author_email is not None else None
        ),
        is_archived=note.is_archived,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


# ── Listing ───────────────────────────────────────────────────

@dataclass(frozen=True)
class NoteQuery:
    page: int = 1
    limit: int = 10
    search: str = ""
    priority: NotePriority | None = None
    archived: bool = False


@dataclass(frozen=True)
class NotePage:
    notes: list[NoteRead]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


# ── Service ───────────────────────────────────────────────────

class NoteService:
    def __init__(
        self,
        session: AsyncSession,
        context: IsolationContext,
        entitlements: EntitlementEngine | None = None,
    ) -> None:
        self._session = session
        self._context = context
        self._entitlements = entitlements or EntitlementEngine(session)

    def _scoped(self, *columns):
        """SELECT over notes, constrained to the acting tenant."""
        stmt = select(*columns) if columns else select(Note)
        return stmt.where(Note.tenant_id == self._context.tenant_id)

    async def _get_or_404(self, note_id: uuid.UUID) -> Note:
        result = await self._session.execute(self._scoped().where(Note.id == note_id))
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFound("Note not found.")
        return note

    async def _author_email(self, user_id: uuid.UUID) -> str | None:
        # Authors are always members of the same tenant.
        stmt = select(User.email).where(
            User.id == user_id,
            User.tenant_id == self._context.tenant_id,
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def create(self, body: NoteCreate) -> NoteRead:
        clean = validate_new_note(body)
        await self._entitlements.ensure_can_create(self._context.tenant)

        note = Note(
            tenant_id=self._context.tenant_id,
            created_by=self._context.user_id,
            title=clean.title,
            content=clean.content,
            priority=clean.priority,
        )
        _store_tags(note, clean.tags)
        self._session.add(note)
        await self._session.commit()
        await self._session.refresh(note)
        return _to_read(note, self._context.user.email)

    async def list_notes(self, query: NoteQuery) -> NotePage:
        if query.page < 1:
            raise ValidationFailed("Page must be at least 1.")
        if not 1 <= query.limit <= MAX_PAGE_SIZE:
            raise ValidationFailed(f"Limit must be between 1 and {MAX_PAGE_SIZE}.")

        filters = [Note.is_archived == query.archived]
        search = query.search.strip()
        if search:
            pattern = f"%{_escape_like(search)}%"
            matches = [
                Note.title.ilike(pattern, escape="\\"),  # type: ignore[union-attr]
                Note.content.ilike(pattern, escape="\\"),  # type: ignore[union-attr]
            ]
            # A term spanning the separator would match across two tags.
            if TAG_SEPARATOR not in search:
                matches.append(Note.tags_text.ilike(pattern, escape="\\"))  # type: ignore[union-attr]
            filters.append(or_(*matches))
        if query.priority is not None:
            filters.append(Note.priority == query.priority)

        total_stmt = self._scoped(func.count()).select_from(Note).where(*filters)
        total = (await self._session.execute(total_stmt)).scalar_one()

        stmt = (
            self._scoped(Note, User.email)
            .outerjoin(User, User.id == Note.created_by)  # type: ignore[arg-type]
            .where(*filters)
            .order_by(Note.created_at.desc())  # type: ignore[union-attr]
            .limit(query.limit)
            .offset((query.page - 1) * query.limit)
        )
        rows = (await self._session.execute(stmt)).all()
        return NotePage(
            notes=[_to_read(note, email) for note, email in rows],
            total=total,
            page=query.page,
            limit=query.limit,
        )

    async def get(self, note_id: uuid.UUID) -> NoteRead:
        note = await self._get_or_404(note_id)
        return _to_read(note, await self._author_email(note.created_by))

    async def update(self, note_id: uuid.UUID, body: NoteUpdate) -> NoteRead:
        note = await self._get_or_404(note_id)
        changes = validate_note_changes(body)

        if "tags" in changes:
            _store_tags(note, changes.pop("tags"))
        for field, value in changes.items():
            setattr(note, field, value)

        note.updated_at = utcnow()
        self._session.add(note)
        await self._session.commit()
        await self._session.refresh(note)
        return _to_read(note, await self._author_email(note.created_by))

    async def delete(self, note_id: uuid.UUID) -> None:
        note = await self._get_or_404(note_id)
        await self._session.delete(note)
        await self._session.commit()

    async def usage(self) -> TenantUsage:
        return await self._entitlements.usage(self._context.tenant)
