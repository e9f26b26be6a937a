"""
Pricing Module - Pydantic Schemas (DTOs)
"""
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.modules.fields.schemas import GeoPoint, validate_polygon
from src.modules.pricing.models import CropType, ServiceType, Terrain
from src.modules.pricing.money import MAX_CENTS


# ============== Rate Card Schemas ==============

RATE_CARD_NULLABLE_FIELDS = frozenset({"crop_type", "hourly_operator_rate_cents"})


class CustomSurcharge(BaseModel):
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    amount_cents: int = Field(..., ge=0, le=MAX_CENTS)


def _check_multipliers(value: dict[str, float] | None) -> dict[str, float] | None:
    if value is None:
        return value
    for key, multiplier in value.items():
        if multiplier <= 0:
            raise ValueError(f"Multiplier '{key}' must be positive")
    return value


class RateCardBase(BaseModel):
    """Base rate card schema. All amounts are integer cents."""
    crop_type: CropType | None = None
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    base_rate_per_ha_cents: int = Field(..., ge=0, le=MAX_CENTS)
    min_charge_cents: int = Field(default=0, ge=0, le=MAX_CENTS)
    travel_fixed_cents: int = Field(default=0, ge=0, le=MAX_CENTS)
    travel_rate_per_km_cents: int = Field(default=0, ge=0, le=MAX_CENTS)
    hilly_terrain_multiplier: float = Field(default=1.0, gt=0)
    hilly_terrain_surcharge_cents: int = Field(default=0, ge=0, le=MAX_CENTS)
    hourly_operator_rate_cents: int | None = Field(None, ge=0, le=MAX_CENTS)
    seasonal_multipliers: dict[str, float] = {}
    risk_multipliers: dict[str, float] = {}
    custom_multipliers: dict[str, float] = {}
    custom_surcharges: list[CustomSurcharge] = []
    is_active: bool = True

    @field_validator("seasonal_multipliers", "risk_multipliers", "custom_multipliers")
    @classmethod
    def multipliers_positive(cls, value: dict[str, float]) -> dict[str, float]:
        return _check_multipliers(value)


class RateCardCreate(RateCardBase):
    service_type: ServiceType


class RateCardUpdate(BaseModel):
    """Partial update. service_type is immutable."""
    crop_type: CropType | None = None
    base_rate_per_ha_cents: int | None = Field(None, ge=0, le=MAX_CENTS)
    min_charge_cents: int | None = Field(None, ge=0, le=MAX_CENTS)
    travel_fixed_cents: int | None = Field(None, ge=0, le=MAX_CENTS)
    travel_rate_per_km_cents: int | None = Field(None, ge=0, le=MAX_CENTS)
    hilly_terrain_multiplier: float | None = Field(None, gt=0)
    hilly_terrain_surcharge_cents: int | None = Field(None, ge=0, le=MAX_CENTS)
    hourly_operator_rate_cents: int | None = Field(None, ge=0, le=MAX_CENTS)
    seasonal_multipliers: dict[str, float] | None = None
    risk_multipliers: dict[str, float] | None = None
    custom_multipliers: dict[str, float] | None = None
    custom_surcharges: list[CustomSurcharge] | None = None
    is_active: bool | None = None

    @field_validator("seasonal_multipliers", "risk_multipliers", "custom_multipliers")
    @classmethod
    def multipliers_positive(cls, value: dict[str, float] | None) -> dict[str, float] | None:
        return _check_multipliers(value)

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data):
        """Explicit null is only allowed where the column is nullable."""
        if isinstance(data, dict):
            nulls = sorted(
                key for key, value in data.items()
                if value is None and key not in RATE_CARD_NULLABLE_FIELDS
            )
            if nulls:
                raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return data


class RateCardResponse(RateCardBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    service_type: ServiceType
    created_at: datetime
    updated_at: datetime


# ============== Quote Schemas ==============

class QuoteRequestBase(BaseModel):
    """Job parameters shared by single-seller quotes and operator matching."""
    service_type: ServiceType
    area_ha: float | None = Field(None, gt=0, le=100_000)
    field_polygon: list[GeoPoint] | None = Field(None, min_length=3)
    location: GeoPoint | None = None
    month: int | None = Field(None, ge=1, le=12)
    risk_key: str | None = Field(None, max_length=50)
    terrain: Terrain | None = None
    has_obstacles: bool = False
    crop_type: CropType | None = None

    @field_validator("field_polygon")
    @classmethod
    def check_polygon(cls, value: list[GeoPoint] | None) -> list[GeoPoint] | None:
        return validate_polygon(value) if value is not None else value

    @model_validator(mode="after")
    def area_or_polygon(self):
        if self.area_ha is None and self.field_polygon is None:
            raise ValueError("Either area_ha or field_polygon is required")
        return self


class QuoteEstimateRequest(QuoteRequestBase):
    seller_org_id: uuid.UUID
    distance_km: float | None = Field(None, ge=0, le=5_000)


class QuoteBreakdownResponse(BaseModel):
    area_ha: float
    distance_km: float
    base_cents: int
    seasonal_multiplier: float
    terrain_multiplier: float
    risk_multiplier: float
    custom_multiplier: float
    multiplied_cents: int
    travel_cents: int
    surcharges_cents: int
    subtotal_cents: int
    min_charge_cents: int
    min_charge_applied: bool
    total_cents: int


class PricingSnapshot(BaseModel):
    """Frozen record of how a price was computed; stored on offers."""
    version: str
    computed_at: datetime
    rate_card_id: uuid.UUID
    seller_org_id: uuid.UUID
    service_type: ServiceType
    inputs: dict
    breakdown: QuoteBreakdownResponse


class QuoteEstimateResponse(BaseModel):
    currency: str
    total_estimated_cents: int
    total_display: str
    breakdown: QuoteBreakdownResponse
    pricing_snapshot: PricingSnapshot


class OperatorMatchRequest(QuoteRequestBase):
    limit: int = Field(default=20, ge=1, le=100)


class OperatorQuote(BaseModel):
    organization_id: uuid.UUID
    legal_name: str
    org_type: str
    is_certified: bool
    rate_card_id: uuid.UUID
    distance_km: float
    currency: str
    total_cents: int
    total_display: str
    breakdown: QuoteBreakdownResponse


class OperatorMatchResponse(BaseModel):
    """`total` counts every eligible provider; `operators` holds at most `limit` of them."""
    service_type: ServiceType
    area_ha: float
    operators: list[OperatorQuote]
    total: int
