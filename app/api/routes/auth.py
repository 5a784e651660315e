"""Authentication endpoints — login, logout, profile, invitations."""

from fastapi import APIRouter, status

from app.api.deps import AdminAuth, Auth, Session
from app.models.base import ApiSchema
from app.models.tenant import TenantRead
from app.models.user import UserProfile, UserRole, UserSummary
from app.services.accounts import AccountService

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Schemas ──────────────────────────────────────────────────

class LoginRequest(ApiSchema):
    email: str = ""
    password: str = ""


class LoginResponse(ApiSchema):
    success: bool = True
    message: str = "Login successful."
    user: UserProfile
    token: str


class MessageResponse(ApiSchema):
    success: bool = True
    message: str


class ProfileResponse(ApiSchema):
    success: bool = True
    user: UserProfile


class InviteRequest(ApiSchema):
    email: str = ""
    role: UserRole = UserRole.MEMBER


class InviteResponse(ApiSchema):
    success: bool = True
    message: str = "User invited successfully."
    user: UserSummary


# ── Routes ───────────────────────────────────────────────────

@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, session: Session) -> LoginResponse:
    """Authenticate with email + password, receive a JWT."""
    user, tenant, token = await AccountService(session).authenticate(body.email, body.password)
    return LoginResponse(
        user=UserProfile(
            id=user.id,
            email=user.email,
            role=user.role,
            tenant=TenantRead.model_validate(tenant),
        ),
        token=token,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout() -> MessageResponse:
    """Tokens are stateless; the client discards its copy."""
    return MessageResponse(message="Logout successful.")


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(auth: Auth) -> ProfileResponse:
    return ProfileResponse(
        user=UserProfile(
            id=auth.user.id,
            email=auth.user.email,
            role=auth.user.role,
            tenant=TenantRead.model_validate(auth.tenant),
        )
    )


@router.post("/invite", response_model=InviteResponse, status_code=status.HTTP_201_CREATED)
async def invite_user(body: InviteRequest, auth: AdminAuth, session: Session) -> InviteResponse:
    """Admin-only: add a user to the caller's tenant with the default password."""
    user = await AccountService(session).invite(auth, body.email, body.role)
    return InviteResponse(user=UserSummary.model_validate(user))
