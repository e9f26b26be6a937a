"""
Marketplace Module - Pydantic Schemas
"""
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.modules.fields.schemas import GeoPoint, validate_polygon
from src.modules.marketplace.models import JobOfferStatus, JobStatus
from src.modules.pricing.models import CropType, ServiceType, Terrain, TreatmentType
from src.modules.pricing.money import MAX_CENTS, parse_price_cents


def _check_window(start: date | None, end: date | None, label: str) -> None:
    if start and end and end < start:
        raise ValueError(f"{label} end must not be before start")


def _positive_cents(value: int | float | str | None) -> int | None:
    if value is None:
        return None
    cents = parse_price_cents(value)
    if cents <= 0:
        raise ValueError("Amount must be greater than zero")
    return cents


# === Job Schemas ===

class JobCreate(BaseModel):
    """
    Schema for posting a job.
    Either a polygon or a saved_field_id is required; area is computed server-side.
    """
    field_name: str | None = Field(None, min_length=1, max_length=255)
    service_type: ServiceType
    crop_type: CropType | None = None
    treatment_type: TreatmentType | None = None
    terrain: Terrain | None = None
    polygon: list[GeoPoint] | None = Field(None, min_length=3)
    saved_field_id: UUID | None = None
    location: GeoPoint | None = None
    location_label: str | None = Field(None, max_length=255)
    target_date_start: date | None = None
    target_date_end: date | None = None
    max_budget_cents: int | None = Field(None, gt=0, le=MAX_CENTS)
    notes: str | None = Field(None, max_length=5000)

    @field_validator("polygon")
    @classmethod
    def check_polygon(cls, value: list[GeoPoint] | None) -> list[GeoPoint] | None:
        return validate_polygon(value) if value is not None else value

    @model_validator(mode="after")
    def check_job(self):
        if self.polygon is None and self.saved_field_id is None:
            raise ValueError("Either polygon or saved_field_id is required")
        _check_window(self.target_date_start, self.target_date_end, "Target date")
        return self


class JobResponse(BaseModel):
    """Job response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    created_by_user_id: UUID | None
    saved_field_id: UUID | None
    field_name: str
    service_type: ServiceType
    crop_type: CropType | None
    treatment_type: TreatmentType | None
    terrain: Terrain | None
    status: JobStatus
    polygon: list[GeoPoint]
    area_ha: float
    location_lat: float | None
    location_lng: float | None
    location_label: str | None
    target_date_start: date | None
    target_date_end: date | None
    max_budget_cents: int | None
    notes: str | None
    accepted_offer_id: UUID | None
    created_at: datetime
    updated_at: datetime


class JobListResponse(BaseModel):
    """List of jobs response."""
    jobs: list[JobResponse]
    total: int
    page: int
    page_size: int


# === Job Offer Schemas ===

class JobOfferCreate(BaseModel):
    """
    Schema for bidding on a job.
    total_cents accepts integer cents or a euro string ("4.869,57").
    When omitted, the price is computed from the operator's own rate card.
    """
    total_cents: int | str | None = None
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    provider_note: str | None = Field(None, max_length=5000)
    proposed_start: date | None = None
    proposed_end: date | None = None
    month: int | None = Field(None, ge=1, le=12)
    risk_key: str | None = Field(None, max_length=50)
    has_obstacles: bool = False

    @field_validator("total_cents")
    @classmethod
    def normalize_total(cls, value: int | str | None) -> int | None:
        return _positive_cents(value)

    @model_validator(mode="after")
    def check_window(self):
        _check_window(self.proposed_start, self.proposed_end, "Proposed")
        return self


class JobOfferUpdate(BaseModel):
    total_cents: int | str | None = None
    provider_note: str | None = Field(None, max_length=5000)
    proposed_start: date | None = None
    proposed_end: date | None = None

    @field_validator("total_cents")
    @classmethod
    def normalize_total(cls, value: int | str | None) -> int | None:
        return _positive_cents(value)

    @model_validator(mode="after")
    def check_window(self):
        _check_window(self.proposed_start, self.proposed_end, "Proposed")
        return self


class JobOfferResponse(BaseModel):
    """Job offer response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_id: UUID
    operator_org_id: UUID
    created_by_user_id: UUID | None
    status: JobOfferStatus
    total_cents: int
    currency: str
    pricing_snapshot: dict | None
    provider_note: str | None
    proposed_start: date | None
    proposed_end: date | None
    created_at: datetime
    updated_at: datetime


class JobOfferListResponse(BaseModel):
    """List of offers response."""
    offers: list[JobOfferResponse]
    total: int


# === Offer Message Schemas ===

class OfferMessageCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)


class OfferMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    offer_id: UUID
    sender_user_id: UUID | None
    sender_org_id: UUID
    body: str
    is_read: bool
    created_at: datetime


class MessagesReadResponse(BaseModel):
    """Number of messages from the other party newly marked as read."""
    marked_read: int
