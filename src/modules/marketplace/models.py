"""
Marketplace Module - Database Models
Service jobs posted by buyers, offers placed by operators, and the
message thread attached to an accepted offer.
"""
from datetime import date
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, Date, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.models import Base, JSONType, TenantMixin


class JobStatus(str, Enum):
    OPEN = "OPEN"
    AWARDED = "AWARDED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class JobOfferStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    WITHDRAWN = "WITHDRAWN"
    COMPLETED = "COMPLETED"


# One operator may hold at most one of these per job
ACTIVE_OFFER_STATUSES = (JobOfferStatus.SUBMITTED.value, JobOfferStatus.ACCEPTED.value)


class Job(Base, TenantMixin):
    """
    A buyer's request for a drone service on a field.
    organization_id is the buyer organization.
    """
    __tablename__ = "job"

    __table_args__ = (
        Index("ix_job_status_created", "status", "created_at"),
    )

    created_by_user_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
    )
    saved_field_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("saved_field.id", ondelete="SET NULL"),
        nullable=True,
    )

    field_name: Mapped[str] = mapped_column(String(255), nullable=False)
    service_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    crop_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    treatment_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    terrain: Mapped[str | None] = mapped_column(String(20), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=JobStatus.OPEN.value,
        nullable=False,
    )

    polygon: Mapped[list[dict]] = mapped_column(JSONType, nullable=False)
    area_ha: Mapped[float] = mapped_column(Float, nullable=False)
    location_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_label: Mapped[str | None] = mapped_column(String(255), nullable=True)

    target_date_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    target_date_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    max_budget_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # No FK: job_offer already references job
    accepted_offer_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    @property
    def location(self) -> tuple[float, float] | None:
        if self.location_lat is None or self.location_lng is None:
            return None
        return (self.location_lat, self.location_lng)


class JobOffer(Base):
    """An operator's priced bid on a job."""
    __tablename__ = "job_offer"

    __table_args__ = (
        Index("ix_job_offer_job_operator", "job_id", "operator_org_id"),
    )

    job_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("job.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    operator_org_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by_user_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=JobOfferStatus.SUBMITTED.value,
        nullable=False,
    )
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    pricing_snapshot: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    provider_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    proposed_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    proposed_end: Mapped[date | None] = mapped_column(Date, nullable=True)

    job: Mapped["Job"] = relationship(
        "Job",
        lazy="joined",
    )


class OfferMessage(Base):
    """Chat message between buyer and operator on an accepted offer."""
    __tablename__ = "offer_message"

    offer_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("job_offer.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender_user_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
    )
    sender_org_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization.id", ondelete="CASCADE"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
