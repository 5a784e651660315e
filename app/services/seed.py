"""Demo data: two free tenants with an admin and a member each.

Run with ``python -m app.services.seed`` or set ``SEED_DEMO_DATA=true``.
"""

import asyncio
import logging

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.tenant import Tenant
from app.models.user import UserRole
from app.services.accounts import AccountService

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password"

DEMO_TENANTS = [
    ("Acme Corporation", "acme"),
    ("Globex Corporation", "globex"),
]


async def seed_demo_data(session: AsyncSession) -> bool:
    """Create the demo tenants unless any tenant exists. Returns True if seeded."""
    existing = (await session.execute(select(func.count()).select_from(Tenant))).scalar_one()
    if existing:
        return False

    logger.info("Seeding demo tenants")
    accounts = AccountService(session)
    for name, slug in DEMO_TENANTS:
        tenant = await accounts.onboard_tenant(name=name, slug=slug)
        await accounts.create_user(tenant, f"admin@{slug}.test", DEMO_PASSWORD, UserRole.ADMIN)
        await accounts.create_user(tenant, f"user@{slug}.test", DEMO_PASSWORD, UserRole.MEMBER)
    logger.info("Seeded %d demo tenants", len(DEMO_TENANTS))
    return True


async def main() -> None:
    from app.core.database import async_session_factory, init_db

    await init_db()
    async with async_session_factory() as session:
        await seed_demo_data(session)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
