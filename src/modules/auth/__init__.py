from src.modules.auth.models import (
    MemberRole,
    Organization,
    OrganizationMember,
    OrganizationStatus,
    OrganizationType,
    User,
)
from src.modules.auth.router import organizations_router, router

__all__ = [
    "User",
    "Organization",
    "OrganizationMember",
    "OrganizationType",
    "OrganizationStatus",
    "MemberRole",
    "router",
    "organizations_router",
]
