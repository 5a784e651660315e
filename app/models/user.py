"""User model — belongs to exactly one tenant for its whole lifetime."""

import uuid
from enum import StrEnum

from sqlmodel import Field, SQLModel

from app.models.base import ApiSchema, TimestampMixin, new_uuid
from app.models.tenant import TenantRead


class UserRole(StrEnum):
    ADMIN = "admin"
    MEMBER = "member"


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    # Stored lowercased; unique across all tenants.
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    password_hash: str = Field(nullable=False)
    role: UserRole = Field(default=UserRole.MEMBER)
    is_active: bool = Field(default=True)


# ── Pydantic schemas ─────────────────────────────────────────

class UserSummary(ApiSchema):
    id: uuid.UUID
    email: str
    role: UserRole


class UserProfile(UserSummary):
    tenant: TenantRead
