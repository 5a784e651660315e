"""Tenant resolution and the per-request isolation context.

A verified token only proves *who* is calling. ``TenantGuard`` turns that
identity into an ``IsolationContext`` after checking that the user and its
tenant are both still active. Every tenant-owned query is then built from
``IsolationContext.tenant_id`` — callers never supply a tenant id.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InsufficientPermissions, TenantInactive, Unauthenticated, UserInactive
from app.models.tenant import Tenant
from app.models.user import User, UserRole


class IsolationContext:
    """Acting user and tenant, resolved once per request."""

    __slots__ = ("user", "tenant")

    def __init__(self, user: User, tenant: Tenant) -> None:
        self.user = user
        self.tenant = tenant

    @property
    def tenant_id(self) -> uuid.UUID:
        return self.tenant.id

    @property
    def user_id(self) -> uuid.UUID:
        return self.user.id

    @property
    def role(self) -> UserRole:
        return self.user.role


class TenantGuard:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def resolve(self, user_id: uuid.UUID, tenant_id: uuid.UUID) -> IsolationContext:
        """Build the isolation context for a verified token identity."""
        user = await self._session.get(User, user_id)
        if user is None:
            raise Unauthenticated("Invalid or inactive user.")
        if not user.is_active:
            raise UserInactive()
        # Users never move between tenants; a mismatched claim is a forged or stale token.
        if user.tenant_id != tenant_id:
            raise Unauthenticated("Invalid or expired token.")

        tenant = await self._session.get(Tenant, user.tenant_id)
        if tenant is None:
            raise Unauthenticated("Invalid or inactive user.")
        if not tenant.is_active:
            raise TenantInactive()

        return IsolationContext(user=user, tenant=tenant)

    @staticmethod
    def ensure_slug(context: IsolationContext, slug: str) -> None:
        """Reject a path slug that names any tenant other than the acting one."""
        if slug.lower() != context.tenant.slug:
            raise InsufficientPermissions("Access denied to this tenant.")
