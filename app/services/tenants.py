"""Subscription changes for the acting tenant."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.tenant import Subscription, Tenant
from app.services.entitlements import apply_subscription

logger = logging.getLogger(__name__)


class TenantService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upgrade(self, tenant: Tenant) -> Tenant:
        """Move a tenant to Pro. Upgrading a Pro tenant is a no-op; there is no downgrade."""
        if tenant.subscription == Subscription.PRO:
            return tenant

        apply_subscription(tenant, Subscription.PRO)
        self._session.add(tenant)
        await self._session.commit()
        await self._session.refresh(tenant)
        logger.info("Tenant %s upgraded to %s", tenant.slug, tenant.subscription)
        return tenant
