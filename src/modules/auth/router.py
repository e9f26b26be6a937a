"""
Authentication and Organization Endpoints

Endpoints:
- POST  /api/v1/auth/register         - Create user + organization, returns token
- POST  /api/v1/auth/login            - Email/password login, returns token
- GET   /api/v1/auth/me               - Current user and memberships
- GET   /api/v1/organizations/{id}    - Organization profile (members only)
- PATCH /api/v1/organizations/{id}    - Update profile / base location (admins)
"""
import uuid

from fastapi import APIRouter, status

from src.core.exceptions import ForbiddenError
from src.modules.auth.dependencies import AuthServiceDep, CurrentUser, TenantContextDep
from src.modules.auth.schemas import (
    LoginRequest,
    MeResponse,
    OrganizationResponse,
    OrganizationUpdate,
    RegisterRequest,
    Token,
)

router = APIRouter(prefix="/auth", tags=["auth"])
organizations_router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.post(
    "/register",
    response_model=Token,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    service: AuthServiceDep,
) -> Token:
    """Register a user together with their organization."""
    return await service.register(request)


@router.post("/login", response_model=Token)
async def login(
    request: LoginRequest,
    service: AuthServiceDep,
) -> Token:
    """Exchange email/password for an access token."""
    return await service.login(request)


@router.get("/me", response_model=MeResponse)
async def get_me(
    tenant: TenantContextDep,
    service: AuthServiceDep,
) -> MeResponse:
    """Current user, active organization and all memberships."""
    return await service.get_me(tenant.user, tenant.organization_id)


# ============== Organizations ==============

@organizations_router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization_id: uuid.UUID,
    current_user: CurrentUser,
    service: AuthServiceDep,
) -> OrganizationResponse:
    """Get an organization the caller belongs to."""
    if not current_user.membership_for(organization_id):
        raise ForbiddenError("You don't have access to this organization")
    org = await service.get_organization(organization_id)
    return OrganizationResponse.model_validate(org)


@organizations_router.patch("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    organization_id: uuid.UUID,
    data: OrganizationUpdate,
    current_user: CurrentUser,
    service: AuthServiceDep,
) -> OrganizationResponse:
    """Update organization profile. Requires ADMIN role in that organization."""
    org = await service.update_organization(organization_id, data, current_user)
    return OrganizationResponse.model_validate(org)
