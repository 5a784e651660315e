"""Import all models so SQLModel.metadata picks them up."""

from app.models.note import Note, NoteAuthor, NoteCreate, NotePriority, NoteRead, NoteUpdate
from app.models.tenant import Subscription, Tenant, TenantRead, TenantUsage
from app.models.user import User, UserProfile, UserRole, UserSummary

__all__ = [
    "Note",
    "NoteAuthor",
    "NoteCreate",
    "NotePriority",
    "NoteRead",
    "NoteUpdate",
    "Subscription",
    "Tenant",
    "TenantRead",
    "TenantUsage",
    "User",
    "UserProfile",
    "UserRole",
    "UserSummary",
]
