"""Subscription-derived quotas and their enforcement at note creation."""

import logging

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import EntitlementExceeded
from app.models.base import utcnow
from app.models.note import Note
from app.models.tenant import Subscription, Tenant, TenantUsage

logger = logging.getLogger(__name__)

UNLIMITED = -1

PLAN_NOTE_QUOTAS: dict[Subscription, int] = {
    Subscription.FREE: 3,
    Subscription.PRO: UNLIMITED,
}


def derive_quota(subscription: Subscription) -> int:
    """Max notes for a plan; ``UNLIMITED`` (-1) means no cap."""
    return PLAN_NOTE_QUOTAS[Subscription(subscription)]


def apply_subscription(tenant: Tenant, subscription: Subscription) -> Tenant:
    """Set the plan and recompute its quota in the same step."""
    tenant.subscription = Subscription(subscription)
    tenant.max_notes = derive_quota(tenant.subscription)
    tenant.updated_at = utcnow()
    return tenant


class EntitlementEngine:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def count_notes(self, tenant: Tenant) -> int:
        stmt = select(func.count()).select_from(Note).where(Note.tenant_id == tenant.id)
        return (await self._session.execute(stmt)).scalar_one()

    async def ensure_can_create(self, tenant: Tenant) -> None:
        """Raise EntitlementExceeded when a free tenant is at its note cap.

        Count and insert are separate statements, so two concurrent creates
        at the boundary can both pass. Notes are a soft limit.
        """
        if tenant.subscription == Subscription.PRO or tenant.max_notes == UNLIMITED:
            return

        current = await self.count_notes(tenant)
        if current >= tenant.max_notes:
            logger.info(
                "Note quota reached for tenant %s (%d/%d)", tenant.slug, current, tenant.max_notes,
            )
            raise EntitlementExceeded()

    async def usage(self, tenant: Tenant) -> TenantUsage:
        return TenantUsage(
            subscription=tenant.subscription,
            max_notes=tenant.max_notes,
            current_notes=await self.count_notes(tenant),
        )
