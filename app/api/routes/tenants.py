"""Tenant info and subscription upgrade."""

from fastapi import APIRouter

from app.api.deps import AdminAuth, Auth, Session
from app.models.base import ApiSchema
from app.models.tenant import TenantRead
from app.services.isolation import TenantGuard
from app.services.tenants import TenantService

router = APIRouter(prefix="/tenants", tags=["tenants"])


class TenantResponse(ApiSchema):
    success: bool = True
    message: str | None = None
    tenant: TenantRead


@router.get("/info", response_model=TenantResponse, response_model_exclude_none=True)
async def get_tenant_info(auth: Auth) -> TenantResponse:
    """Returns the tenant associated with the authenticated token."""
    return TenantResponse(tenant=TenantRead.model_validate(auth.tenant))


@router.post("/{slug}/upgrade", response_model=TenantResponse)
async def upgrade_tenant(slug: str, auth: AdminAuth, session: Session) -> TenantResponse:
    """Admin-only: move the caller's own tenant to the Pro plan."""
    TenantGuard.ensure_slug(auth, slug)
    tenant = await TenantService(session).upgrade(auth.tenant)
    return TenantResponse(
        message="Tenant upgraded to Pro successfully.",
        tenant=TenantRead.model_validate(tenant),
    )
