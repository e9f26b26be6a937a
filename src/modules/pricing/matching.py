"""
Operator Matching
Prices one job against many operators' rate cards and ranks them.
"""
from collections.abc import Iterable
from dataclasses import dataclass

from src.modules.auth.models import Organization
from src.modules.fields.geometry import LatLng, haversine_km
from src.modules.pricing.estimator import PricingTerms, QuoteBreakdown, estimate_quote
from src.modules.pricing.models import RateCard, Terrain


@dataclass(frozen=True)
class JobParameters:
    area_ha: float
    location: LatLng | None
    month: int | None = None
    risk_key: str | None = None
    terrain: Terrain | None = None
    has_obstacles: bool = False


@dataclass(frozen=True)
class RankedQuote:
    organization: Organization
    rate_card: RateCard
    distance_km: float
    breakdown: QuoteBreakdown

    @property
    def total_cents(self) -> int:
        return self.breakdown.total_cents


def travel_distance_km(
    origin: LatLng | None,
    destination: LatLng | None,
    default_km: float,
) -> float:
    """Haversine distance rounded to 0.1 km; default_km when either end is unknown."""
    if origin is None or destination is None:
        return default_km
    return round(haversine_km(origin, destination), 1)


def rank_operators(
    candidates: Iterable[tuple[Organization, RateCard]],
    job: JobParameters,
    default_distance_km: float,
) -> list[RankedQuote]:
    """
    Quote every candidate, keep the cheapest card per organization,
    cheapest first (ties broken by distance).
    """
    best: dict = {}
    for org, card in candidates:
        distance = travel_distance_km(org.base_location, job.location, default_distance_km)
        breakdown = estimate_quote(
            PricingTerms.from_rate_card(card),
            area_ha=job.area_ha,
            distance_km=distance,
            month=job.month,
            risk_key=job.risk_key,
            terrain=job.terrain,
            has_obstacles=job.has_obstacles,
        )
        quote = RankedQuote(organization=org, rate_card=card, distance_km=distance, breakdown=breakdown)
        current = best.get(org.id)
        if current is None or quote.total_cents < current.total_cents:
            best[org.id] = quote

    return sorted(best.values(), key=lambda q: (q.total_cents, q.distance_km))
