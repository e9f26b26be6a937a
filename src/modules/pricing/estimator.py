"""
Quote Estimator

Pure pricing arithmetic over a rate card's terms:

    base       = rate_per_ha * area
    multiplied = base * seasonal * terrain * risk * custom
    travel     = travel_fixed + distance * travel_rate
    total      = max(multiplied + travel + surcharges, min_charge)

Every money amount is an integer number of cents, rounded half-up.
"""
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from src.modules.pricing.models import RateCard, Terrain

HILLY_TERRAINS = frozenset({Terrain.HILLY.value, Terrain.MOUNTAINOUS.value})
OBSTACLES_KEY = "obstacles"


def season_for_month(month: int) -> str:
    if month in (3, 4, 5):
        return "spring"
    if month in (6, 7, 8):
        return "summer"
    if month in (9, 10, 11):
        return "autumn"
    return "winter"


def to_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _number(value: Any) -> Decimal | None:
    """Decimal for numeric JSON values, None for anything else (bools included)."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def pick_multiplier(mapping: Mapping[str, Any] | None, *keys: str | None) -> Decimal:
    """First numeric value found under keys, else 1."""
    if not mapping:
        return Decimal(1)
    for key in keys:
        if key is None:
            continue
        number = _number(mapping.get(key))
        if number is not None:
            return number
    return Decimal(1)


@dataclass(frozen=True)
class PricingTerms:
    """The numbers of a rate card that pricing depends on."""
    base_rate_per_ha_cents: int
    min_charge_cents: int = 0
    travel_fixed_cents: int = 0
    travel_rate_per_km_cents: int = 0
    hilly_terrain_multiplier: float = 1.0
    hilly_terrain_surcharge_cents: int = 0
    seasonal_multipliers: Mapping[str, Any] = field(default_factory=dict)
    risk_multipliers: Mapping[str, Any] = field(default_factory=dict)
    custom_multipliers: Mapping[str, Any] = field(default_factory=dict)
    custom_surcharges: tuple[Mapping[str, Any], ...] = ()

    @classmethod
    def from_rate_card(cls, card: RateCard) -> "PricingTerms":
        return cls(
            base_rate_per_ha_cents=card.base_rate_per_ha_cents,
            min_charge_cents=card.min_charge_cents or 0,
            travel_fixed_cents=card.travel_fixed_cents or 0,
            travel_rate_per_km_cents=card.travel_rate_per_km_cents or 0,
            hilly_terrain_multiplier=card.hilly_terrain_multiplier or 1.0,
            hilly_terrain_surcharge_cents=card.hilly_terrain_surcharge_cents or 0,
            seasonal_multipliers=card.seasonal_multipliers or {},
            risk_multipliers=card.risk_multipliers or {},
            custom_multipliers=card.custom_multipliers or {},
            custom_surcharges=tuple(card.custom_surcharges or ()),
        )


@dataclass(frozen=True)
class QuoteBreakdown:
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

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def estimate_quote(
    terms: PricingTerms,
    area_ha: float,
    distance_km: float,
    month: int | None = None,
    risk_key: str | None = None,
    terrain: Terrain | str | None = None,
    has_obstacles: bool = False,
) -> QuoteBreakdown:
    """
    Price a job against one rate card.

    Raises:
        ValueError: negative area or distance, or month outside 1..12
    """
    if area_ha < 0:
        raise ValueError("area_ha must be non-negative")
    if distance_km < 0:
        raise ValueError("distance_km must be non-negative")
    if month is not None and not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")

    area = Decimal(str(area_ha))
    distance = Decimal(str(distance_km))
    terrain_value = terrain.value if isinstance(terrain, Terrain) else terrain
    is_hilly = terrain_value in HILLY_TERRAINS

    base_cents = to_cents(Decimal(terms.base_rate_per_ha_cents) * area)

    seasonal = (
        pick_multiplier(terms.seasonal_multipliers, str(month), season_for_month(month))
        if month is not None
        else Decimal(1)
    )
    terrain_mult = (_number(terms.hilly_terrain_multiplier) or Decimal(1)) if is_hilly else Decimal(1)
    risk = pick_multiplier(terms.risk_multipliers, risk_key)

    custom = Decimal(1)
    for key, value in (terms.custom_multipliers or {}).items():
        if key == OBSTACLES_KEY and not has_obstacles:
            continue
        number = _number(value)
        if number is not None:
            custom *= number

    multiplied_cents = to_cents(Decimal(base_cents) * seasonal * terrain_mult * risk * custom)
    travel_cents = terms.travel_fixed_cents + to_cents(distance * Decimal(terms.travel_rate_per_km_cents))

    surcharges_cents = terms.hilly_terrain_surcharge_cents if is_hilly else 0
    for surcharge in terms.custom_surcharges:
        amount = _number(surcharge.get("amount_cents"))
        if amount is not None:
            surcharges_cents += to_cents(amount)

    subtotal_cents = multiplied_cents + travel_cents + surcharges_cents
    total_cents = max(subtotal_cents, terms.min_charge_cents)

    return QuoteBreakdown(
        area_ha=float(area_ha),
        distance_km=float(distance_km),
        base_cents=base_cents,
        seasonal_multiplier=float(seasonal),
        terrain_multiplier=float(terrain_mult),
        risk_multiplier=float(risk),
        custom_multiplier=float(custom),
        multiplied_cents=multiplied_cents,
        travel_cents=travel_cents,
        surcharges_cents=surcharges_cents,
        subtotal_cents=subtotal_cents,
        min_charge_cents=terms.min_charge_cents,
        min_charge_applied=total_cents > subtotal_cents,
        total_cents=total_cents,
    )
