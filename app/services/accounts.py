"""Login, invitations and tenant onboarding."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import Conflict, TenantInactive, Unauthenticated, UserInactive, ValidationFailed
from app.core.security import create_jwt, hash_password, verify_password
from app.models.tenant import Subscription, Tenant
from app.models.user import User, UserRole
from app.services.entitlements import apply_subscription
from app.services.isolation import IsolationContext

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _find_user(self, email: str) -> User | None:
        result = await self._session.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def authenticate(self, email: str, password: str) -> tuple[User, Tenant, str]:
        """Verify credentials and issue a session token.

        Wrong email and wrong password share one message; an inactive
        tenant is reported separately and only after the password checks out.
        """
        if not email.strip() or not password:
            raise ValidationFailed("Email and password are required.")

        user = await self._find_user(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login for %s", normalize_email(email))
            raise Unauthenticated("Invalid credentials.")
        if not user.is_active:
            raise UserInactive("Account is disabled.")

        tenant = await self._session.get(Tenant, user.tenant_id)
        if tenant is None or not tenant.is_active:
            raise TenantInactive("Tenant account is inactive.")

        token = create_jwt(subject=str(user.id), tenant_id=str(tenant.id))
        logger.info("User %s logged in to tenant %s", user.email, tenant.slug)
        return user, tenant, token

    async def invite(self, context: IsolationContext, email: str, role: UserRole) -> User:
        """Create a user in the inviter's tenant with the default password.

        The invitee is expected to change the password; there is no reset
        flow yet.
        """
        if not email.strip():
            raise ValidationFailed("Email is required.")
        if "@" not in email:
            raise ValidationFailed("Email is invalid.")
        if await self._find_user(email) is not None:
            raise Conflict("User with this email already exists.")

        user = User(
            tenant_id=context.tenant_id,
            email=normalize_email(email),
            password_hash=hash_password(get_settings().default_invite_password),
            role=role,
        )
        self._session.add(user)
        await self._session.commit()
        await self._session.refresh(user)
        logger.info(
            "User %s invited to tenant %s by %s", user.email, context.tenant.slug, context.user.email,
        )
        return user

    # ── Onboarding (seed scripts / tests) ─────────────────────

    async def onboard_tenant(
        self,
        name: str,
        slug: str,
        subscription: Subscription = Subscription.FREE,
    ) -> Tenant:
        slug = slug.strip().lower()
        existing = await self._session.execute(select(Tenant).where(Tenant.slug == slug))
        if existing.scalar_one_or_none():
            raise Conflict(f"Slug '{slug}' is already taken")

        tenant = apply_subscription(Tenant(name=name.strip(), slug=slug), subscription)
        self._session.add(tenant)
        await self._session.commit()
        await self._session.refresh(tenant)
        return tenant

    async def create_user(
        self,
        tenant: Tenant,
        email: str,
        password: str,
        role: UserRole = UserRole.MEMBER,
    ) -> User:
        if await self._find_user(email) is not None:
            raise Conflict("User with this email already exists.")

        user = User(
            tenant_id=tenant.id,
            email=normalize_email(email),
            password_hash=hash_password(password),
            role=role,
        )
        self._session.add(user)
        await self._session.commit()
        await self._session.refresh(user)
        return user
