"""
Auth Module - Database Models
Organizations (tenants), users and their memberships.
"""
import uuid
from enum import Enum

from sqlalchemy import Boolean, Float, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.models import Base


class OrganizationType(str, Enum):
    """What an organization does on the marketplace."""
    BUYER = "BUYER"          # Farms posting jobs and buying products
    VENDOR = "VENDOR"        # Sells drones/parts, may also fly services
    OPERATOR = "OPERATOR"    # Drone service provider


class OrganizationStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class MemberRole(str, Enum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class User(Base):
    """
    User model.
    Users can belong to multiple organizations through OrganizationMember.
    """
    __tablename__ = "user"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    organization_memberships: Mapped[list["OrganizationMember"]] = relationship(
        "OrganizationMember",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def membership_for(self, organization_id: uuid.UUID) -> "OrganizationMember | None":
        for membership in self.organization_memberships:
            if membership.organization_id == organization_id:
                return membership
        return None


class Organization(Base):
    """
    Organization (Tenant) model.
    Multi-tenant isolation is based on organization_id.
    """
    __tablename__ = "organization"

    legal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    org_type: Mapped[str] = mapped_column(
        String(20),
        default=OrganizationType.BUYER.value,
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=OrganizationStatus.ACTIVE.value,
        nullable=False,
    )
    is_certified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Contact / legal
    country: Mapped[str | None] = mapped_column(String(2), nullable=True)
    vat_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Operator base, used for travel distance
    base_location_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    base_location_lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    members: Mapped[list["OrganizationMember"]] = relationship(
        "OrganizationMember",
        back_populates="organization",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def base_location(self) -> tuple[float, float] | None:
        if self.base_location_lat is None or self.base_location_lng is None:
            return None
        return (self.base_location_lat, self.base_location_lng)


class OrganizationMember(Base):
    """
    Many-to-Many relationship between User and Organization with a role.
    A user can have different roles in different organizations.
    """
    __tablename__ = "organization_member"

    __table_args__ = (
        UniqueConstraint("user_id", "organization_id", name="uq_org_member"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role: Mapped[str] = mapped_column(
        String(20),
        default=MemberRole.MEMBER.value,
        nullable=False,
    )

    is_default: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="User's default organization",
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="organization_memberships")
    organization: Mapped["Organization"] = relationship(
        "Organization",
        back_populates="members",
        lazy="joined",
    )
