"""
Auth Module - Business Logic Service
NEVER put business logic in Routers. Routers only parse requests and call Services.
"""
import re
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from src.core.logging import get_logger
from src.core.security import create_access_token, get_password_hash, verify_password
from src.modules.auth.models import MemberRole, Organization, OrganizationMember, User
from src.modules.auth.schemas import (
    LoginRequest,
    MembershipResponse,
    MeResponse,
    OrganizationUpdate,
    RegisterRequest,
    Token,
)

logger = get_logger(__name__)


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "org"


def issue_token(user: User, membership: OrganizationMember | None) -> Token:
    """Build an access token scoped to one membership."""
    token = create_access_token(
        subject=user.id,
        extra_claims={
            "org_id": str(membership.organization_id) if membership else None,
            "role": membership.role if membership else None,
        },
    )
    return Token(
        access_token=token,
        organization_id=membership.organization_id if membership else None,
    )


class AuthService:
    """Authentication and organization management service."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: uuid.UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_organization_by_slug(self, slug: str) -> Organization | None:
        result = await self.db.execute(select(Organization).where(Organization.slug == slug))
        return result.scalar_one_or_none()

    async def get_organization(self, organization_id: uuid.UUID) -> Organization:
        result = await self.db.execute(
            select(Organization).where(Organization.id == organization_id)
        )
        org = result.unique().scalar_one_or_none()
        if not org:
            raise NotFoundError("Organization", organization_id)
        return org

    async def authenticate(self, email: str, password: str) -> User | None:
        """Authenticate user by email and password."""
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            return None
        return user

    async def login(self, request: LoginRequest) -> Token:
        """Login and return JWT token scoped to the default organization."""
        user = await self.authenticate(request.email, request.password)
        if not user:
            raise UnauthorizedError("Invalid email or password")
        if not user.is_active:
            raise UnauthorizedError("User account is disabled")

        default = next(
            (m for m in user.organization_memberships if m.is_default),
            user.organization_memberships[0] if user.organization_memberships else None,
        )

        logger.info("User logged in", user_id=str(user.id))
        return issue_token(user, default)

    async def register(self, request: RegisterRequest) -> Token:
        """Create a user, their organization and an ADMIN membership."""
        if await self.get_user_by_email(request.email):
            raise ConflictError(f"User with email {request.email} already exists")

        user = User(
            email=request.email.lower(),
            hashed_password=get_password_hash(request.password),
            full_name=request.full_name,
            phone=request.phone,
            is_active=True,
        )
        self.db.add(user)

        slug = slugify(request.organization_name)
        if await self.get_organization_by_slug(slug):
            slug = f"{slug}-{uuid.uuid4().hex[:6]}"

        org = Organization(
            legal_name=request.organization_name,
            slug=slug,
            org_type=request.org_type.value,
            country=request.country.upper() if request.country else None,
            vat_number=request.vat_number,
            base_location_lat=request.base_location.lat if request.base_location else None,
            base_location_lng=request.base_location.lng if request.base_location else None,
        )
        self.db.add(org)
        await self.db.flush()

        membership = OrganizationMember(
            user_id=user.id,
            organization_id=org.id,
            role=MemberRole.ADMIN.value,
            is_default=True,
        )
        self.db.add(membership)
        await self.db.commit()

        logger.info(
            "User registered",
            user_id=str(user.id),
            org_id=str(org.id),
            org_type=org.org_type,
        )
        return issue_token(user, membership)

    async def get_me(self, user: User, active_organization_id: uuid.UUID | None) -> MeResponse:
        me = MeResponse.model_validate(user)
        me.active_organization_id = active_organization_id
        me.memberships = [
            MembershipResponse.model_validate(m) for m in user.organization_memberships
        ]
        return me

    async def update_organization(
        self,
        organization_id: uuid.UUID,
        data: OrganizationUpdate,
        user: User,
    ) -> Organization:
        membership = user.membership_for(organization_id)
        if not membership or membership.role != MemberRole.ADMIN.value:
            raise ForbiddenError("Organization admin role required")

        org = await self.get_organization(organization_id)
        update_data = data.model_dump(exclude_unset=True, exclude={"base_location"})
        for field, value in update_data.items():
            setattr(org, field, value)
        if data.base_location is not None:
            org.base_location_lat = data.base_location.lat
            org.base_location_lng = data.base_location.lng

        await self.db.commit()
        await self.db.refresh(org)
        logger.info("Organization updated", org_id=str(org.id))
        return org
