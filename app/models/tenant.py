"""Tenant model — top-level isolation boundary and unit of subscription."""

import uuid
from enum import StrEnum

from sqlmodel import Field, SQLModel

from app.models.base import ApiSchema, TimestampMixin, new_uuid


class Subscription(StrEnum):
    FREE = "free"
    PRO = "pro"


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    slug: str = Field(max_length=100, unique=True, nullable=False, index=True)
    is_active: bool = Field(default=True)

    # Plan and its derived quota; always written together via apply_subscription().
    subscription: Subscription = Field(default=Subscription.FREE)
    max_notes: int = Field(default=3, nullable=False)


# ── Pydantic schemas ─────────────────────────────────────────

class TenantRead(ApiSchema):
    id: uuid.UUID
    name: str
    slug: str
    subscription: Subscription
    max_notes: int


class TenantUsage(ApiSchema):
    subscription: Subscription
    max_notes: int
    current_notes: int
