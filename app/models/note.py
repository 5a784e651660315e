"""Note model — a tenant-owned document with tags and a priority."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from app.models.base import ApiSchema, TimestampMixin, new_uuid


class NotePriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Note(TimestampMixin, SQLModel, table=True):
    __tablename__ = "notes"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    # Set once at creation from the isolation context, never from the request.
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    created_by: uuid.UUID = Field(foreign_key="users.id", nullable=False)

    title: str = Field(max_length=200, nullable=False)
    content: str = Field(sa_column=Column(Text, nullable=False))

    # Normalized tag list stored as JSON text, e.g. '["work", "urgent"]'
    tags: str = Field(default="[]", sa_column=Column(Text, nullable=False, server_default="[]"))
    # The same tags joined by "\n"; searched instead of the JSON text.
    tags_text: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))

    priority: NotePriority = Field(default=NotePriority.MEDIUM)
    is_archived: bool = Field(default=False, index=True)


# ── Pydantic schemas ─────────────────────────────────────────

class NoteCreate(ApiSchema):
    title: str = ""
    content: str = ""
    tags: list[str] = []
    priority: NotePriority = NotePriority.MEDIUM


class NoteUpdate(ApiSchema):
    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    priority: NotePriority | None = None
    is_archived: bool | None = None


class NoteAuthor(ApiSchema):
    id: uuid.UUID
    email: str


class NoteRead(ApiSchema):
    id: uuid.UUID
    title: str
    content: str
    tags: list[str]
    priority: NotePriority
    tenant_id: uuid.UUID
    created_by: NoteAuthor | None
    is_archived: bool
    created_at: datetime
    updated_at: datetime
