"""
Auth Module - Pydantic Schemas (DTOs)
NEVER expose SQLAlchemy models directly in API responses.
Always map them to Pydantic Schemas using model_validate.
"""
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from src.modules.auth.models import MemberRole, OrganizationStatus, OrganizationType


# ============== Token Schemas ==============

class Token(BaseModel):
    """JWT Token response."""
    access_token: str
    token_type: str = "bearer"
    organization_id: uuid.UUID | None = None


class TokenPayload(BaseModel):
    """JWT Token payload."""
    sub: str
    exp: datetime
    iat: datetime
    org_id: uuid.UUID | None = None
    role: MemberRole | None = None


# ============== User Schemas ==============

class UserResponse(BaseModel):
    """User response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: EmailStr
    full_name: str | None = None
    phone: str | None = None
    is_active: bool
    created_at: datetime


# ============== Organization Schemas ==============

class GeoLocation(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class OrganizationResponse(BaseModel):
    """Organization response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    legal_name: str
    slug: str
    org_type: OrganizationType
    status: OrganizationStatus
    is_certified: bool
    country: str | None = None
    vat_number: str | None = None
    phone: str | None = None
    base_location_lat: float | None = None
    base_location_lng: float | None = None
    created_at: datetime


class OrganizationUpdate(BaseModel):
    """Fields an organization admin may change."""
    legal_name: str | None = Field(None, min_length=2, max_length=255)
    phone: str | None = Field(None, max_length=50)
    vat_number: str | None = Field(None, max_length=50)
    base_location: GeoLocation | None = None

    @field_validator("legal_name")
    @classmethod
    def legal_name_not_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("legal_name cannot be null")
        return value


class MembershipResponse(BaseModel):
    """A user's membership in one organization."""
    model_config = ConfigDict(from_attributes=True)

    organization_id: uuid.UUID
    role: MemberRole
    is_default: bool
    organization: OrganizationResponse


# ============== Auth Request/Response ==============

class LoginRequest(BaseModel):
    """Login request schema."""
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    """
    Registration creates the user together with their organization.
    The user becomes the organization's ADMIN.
    """
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    full_name: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    organization_name: str = Field(..., min_length=2, max_length=255)
    org_type: OrganizationType = OrganizationType.BUYER
    country: str | None = Field(None, min_length=2, max_length=2)
    vat_number: str | None = Field(None, max_length=50)
    base_location: GeoLocation | None = None


class MeResponse(UserResponse):
    """GET /auth/me response: the user and every organization they belong to."""
    active_organization_id: uuid.UUID | None = None
    memberships: list[MembershipResponse] = []
