"""FastAPI dependencies: token verification, tenant resolution, role gating."""

import uuid
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.errors import Unauthenticated
from app.core.security import decode_jwt
from app.models.user import UserRole
from app.services.entitlements import EntitlementEngine
from app.services.isolation import IsolationContext, TenantGuard
from app.services.notes import NoteService
from app.services.roles import RoleGate

# auto_error=False so a missing header goes through our own 401 envelope.
bearer_scheme = HTTPBearer(auto_error=False)

Session = Annotated[AsyncSession, Depends(get_session)]


async def get_auth_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    session: Session,
) -> IsolationContext:
    """Verify the bearer JWT and resolve the caller's tenant."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Access denied. No token provided.")

    try:
        payload = decode_jwt(credentials.credentials)
    except JWTError as exc:
        raise Unauthenticated("Invalid or expired token.") from exc

    try:
        user_id = uuid.UUID(payload["sub"])
        tenant_id = uuid.UUID(payload["tid"])
    except (KeyError, TypeError, ValueError) as exc:
        raise Unauthenticated("Malformed token payload.") from exc

    return await TenantGuard(session).resolve(user_id, tenant_id)


# Typed shorthand for use in route signatures
Auth = Annotated[IsolationContext, Depends(get_auth_context)]


def require_role(*roles: UserRole) -> Callable[..., Awaitable[IsolationContext]]:
    """Dependency factory: resolve the tenant first, then check the role."""
    gate = RoleGate(roles)

    async def _check(auth: Auth) -> IsolationContext:
        return gate.check(auth)

    return _check


AdminAuth = Annotated[IsolationContext, Depends(require_role(UserRole.ADMIN))]


def get_note_service(auth: Auth, session: Session) -> NoteService:
    return NoteService(session, auth, EntitlementEngine(session))


Notes = Annotated[NoteService, Depends(get_note_service)]
