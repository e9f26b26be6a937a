"""
Pricing Module - Database Models
Per-organization rate cards for drone services.
"""
from enum import Enum

from sqlalchemy import Boolean, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.core.models import Base, JSONType, TenantMixin


class ServiceType(str, Enum):
    SPRAY = "SPRAY"
    SPREAD = "SPREAD"
    MAPPING = "MAPPING"


class CropType(str, Enum):
    VINEYARD = "VINEYARD"
    OLIVE_GROVE = "OLIVE_GROVE"
    CEREAL = "CEREAL"
    VEGETABLES = "VEGETABLES"
    FRUIT = "FRUIT"
    OTHER = "OTHER"


class TreatmentType(str, Enum):
    FUNGICIDE = "FUNGICIDE"
    INSECTICIDE = "INSECTICIDE"
    HERBICIDE = "HERBICIDE"
    FERTILIZER = "FERTILIZER"
    ORGANIC_FERTILIZER = "ORGANIC_FERTILIZER"
    CHEMICAL_FERTILIZER = "CHEMICAL_FERTILIZER"
    LIME = "LIME"


class Terrain(str, Enum):
    FLAT = "FLAT"
    HILLY = "HILLY"
    MOUNTAINOUS = "MOUNTAINOUS"


class RateCard(Base, TenantMixin):
    """
    Pricing configuration of one organization for one service type.

    Multiplier maps are JSON objects of key -> number:
    - seasonal_multipliers: month ("1".."12") or season name ("spring", ...)
    - risk_multipliers: free-form risk keys chosen by the buyer
    - custom_multipliers: always applied, "obstacles" only when the field has obstacles
    custom_surcharges is a list of {"id", "name", "amount_cents"}.
    """
    __tablename__ = "rate_card"

    __table_args__ = (
        UniqueConstraint("organization_id", "service_type", name="uq_rate_card_org_service"),
    )

    service_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    crop_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)

    base_rate_per_ha_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    min_charge_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    travel_fixed_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    travel_rate_per_km_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hilly_terrain_multiplier: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)
    hilly_terrain_surcharge_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hourly_operator_rate_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)

    seasonal_multipliers: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    risk_multipliers: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    custom_multipliers: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    custom_surcharges: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
