"""
Auth Module - FastAPI Dependencies

Bearer JWT verification and tenant (organization) resolution.
"""
import uuid
from typing import Annotated

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.exceptions import ForbiddenError, TenantContextError, UnauthorizedError, ValidationError
from src.core.logging import bind_context, get_logger
from src.core.security import verify_token
from src.core.sentry import set_user
from src.modules.auth.models import MemberRole, Organization, OrganizationType, User
from src.modules.auth.service import AuthService

logger = get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: Annotated[AsyncSession, Depends(get_db)]) -> AuthService:
    """Get AuthService instance with injected database session."""
    return AuthService(db)


async def get_token_payload(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict:
    if not credentials:
        raise UnauthorizedError("Authentication required")

    payload = verify_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise UnauthorizedError("Invalid or expired token")
    return payload


async def get_current_user(
    payload: Annotated[dict, Depends(get_token_payload)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """
    Get current authenticated user from the bearer token.

    Raises:
        UnauthorizedError: token missing/invalid or user unknown/disabled
    """
    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        raise UnauthorizedError("Invalid token subject")

    user = await auth_service.get_user_by_id(user_id)
    if not user:
        logger.warning("Token subject not found", user_id=str(user_id))
        raise UnauthorizedError("User not found")
    if not user.is_active:
        raise UnauthorizedError("User account is disabled")

    bind_context(user_id=str(user.id))
    set_user(str(user.id), user.email)
    return user


class TenantContext:
    """
    Tenant context for multi-tenant operations.
    The active organization and the caller's role in it.
    """

    def __init__(
        self,
        organization: Organization,
        user: User,
        role: str,
    ):
        self.organization = organization
        self.user = user
        self.role = role

    @property
    def organization_id(self) -> uuid.UUID:
        return self.organization.id

    @property
    def user_id(self) -> uuid.UUID:
        return self.user.id

    @property
    def org_type(self) -> OrganizationType:
        return OrganizationType(self.organization.org_type)

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.ADMIN.value


async def get_tenant_context(
    current_user: Annotated[User, Depends(get_current_user)],
    payload: Annotated[dict, Depends(get_token_payload)],
    x_organization_id: Annotated[str | None, Header()] = None,
) -> TenantContext:
    """
    Get tenant context from header or token.

    Priority:
    1. X-Organization-Id header
    2. org_id from JWT token
    3. User's default organization
    """
    org_id: uuid.UUID | None = None

    if x_organization_id:
        try:
            org_id = uuid.UUID(x_organization_id)
        except ValueError:
            raise ValidationError("Invalid X-Organization-Id header")

    if not org_id and payload.get("org_id"):
        try:
            org_id = uuid.UUID(payload["org_id"])
        except ValueError:
            raise UnauthorizedError("Invalid organization claim")

    if not org_id:
        for membership in current_user.organization_memberships:
            if membership.is_default:
                org_id = membership.organization_id
                break

    if not org_id:
        raise TenantContextError()

    membership = current_user.membership_for(org_id)
    if not membership:
        raise ForbiddenError("You don't have access to this organization")

    bind_context(org_id=str(org_id))
    return TenantContext(
        organization=membership.organization,
        user=current_user,
        role=membership.role,
    )


def require_role(roles: list[MemberRole]):
    """
    Dependency factory for role-based access control within the active organization.

    Usage:
        @router.post("/rate-cards", dependencies=[Depends(require_role([MemberRole.ADMIN]))])
    """
    allowed = {r.value for r in roles}

    async def role_checker(
        tenant: Annotated[TenantContext, Depends(get_tenant_context)],
    ) -> TenantContext:
        if tenant.role not in allowed:
            raise ForbiddenError(f"Required role: {', '.join(sorted(allowed))}")
        return tenant

    return role_checker


def require_org_type(org_types: list[OrganizationType]):
    """Dependency factory restricting an endpoint to some organization types."""
    allowed = {t.value for t in org_types}

    async def org_type_checker(
        tenant: Annotated[TenantContext, Depends(get_tenant_context)],
    ) -> TenantContext:
        if tenant.organization.org_type not in allowed:
            raise ForbiddenError(
                f"Organization type {tenant.organization.org_type} cannot perform this action"
            )
        return tenant

    return org_type_checker


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
TenantContextDep = Annotated[TenantContext, Depends(get_tenant_context)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
