"""
Pricing Module - Business Logic Service
Rate card management, quote estimates and operator matching.
"""
import uuid

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.core.logging import get_logger
from src.core.metrics import record_quote
from src.core.models import utc_now
from src.modules.auth.models import Organization, OrganizationStatus, OrganizationType
from src.modules.fields.geometry import GeometryError, LatLng, centroid, polygon_area_ha
from src.modules.pricing.estimator import PricingTerms, QuoteBreakdown, estimate_quote
from src.modules.pricing.matching import JobParameters, rank_operators, travel_distance_km
from src.modules.pricing.models import RateCard, ServiceType
from src.modules.pricing.money import format_euro
from src.modules.pricing.schemas import (
    OperatorMatchRequest,
    OperatorMatchResponse,
    OperatorQuote,
    PricingSnapshot,
    QuoteBreakdownResponse,
    QuoteEstimateRequest,
    QuoteEstimateResponse,
    QuoteRequestBase,
    RateCardCreate,
    RateCardUpdate,
)

logger = get_logger(__name__)

MATCHABLE_ORG_TYPES = (OrganizationType.OPERATOR.value, OrganizationType.VENDOR.value)


def resolve_job_geometry(request: QuoteRequestBase) -> tuple[float, LatLng | None]:
    """Area (explicit or from the polygon) and the job location (explicit or centroid)."""
    points = [p.as_tuple() for p in request.field_polygon] if request.field_polygon else None
    try:
        area_ha = request.area_ha if request.area_ha is not None else polygon_area_ha(points)
        if request.location is not None:
            location = request.location.as_tuple()
        else:
            location = centroid(points) if points else None
    except GeometryError as exc:
        raise ValidationError(str(exc), details={"field": "field_polygon"})
    return area_ha, location


def build_snapshot(
    card: RateCard,
    breakdown: QuoteBreakdown,
    inputs: dict,
) -> PricingSnapshot:
    return PricingSnapshot(
        version=settings.pricing_version,
        computed_at=utc_now(),
        rate_card_id=card.id,
        seller_org_id=card.organization_id,
        service_type=ServiceType(card.service_type),
        inputs=inputs,
        breakdown=QuoteBreakdownResponse(**breakdown.as_dict()),
    )


class RateCardService:
    """Rate cards of one organization."""

    def __init__(self, db: AsyncSession, organization_id: uuid.UUID):
        self.db = db
        self.organization_id = organization_id

    async def list_rate_cards(self, active_only: bool = False) -> list[RateCard]:
        query = select(RateCard).where(RateCard.organization_id == self.organization_id)
        if active_only:
            query = query.where(RateCard.is_active.is_(True))
        result = await self.db.execute(query.order_by(RateCard.service_type))
        return list(result.scalars().all())

    async def get_rate_card(self, rate_card_id: uuid.UUID) -> RateCard:
        result = await self.db.execute(
            select(RateCard).where(
                RateCard.id == rate_card_id,
                RateCard.organization_id == self.organization_id,
            )
        )
        card = result.scalar_one_or_none()
        if not card:
            raise NotFoundError("RateCard", rate_card_id)
        return card

    async def create_rate_card(self, data: RateCardCreate) -> RateCard:
        existing = await self.db.execute(
            select(RateCard.id).where(
                RateCard.organization_id == self.organization_id,
                RateCard.service_type == data.service_type.value,
            )
        )
        if existing.scalar_one_or_none():
            raise ConflictError(f"Rate card for {data.service_type.value} already exists")

        card = RateCard(
            organization_id=self.organization_id,
            **data.model_dump(mode="json"),
        )
        self.db.add(card)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Rate card for {data.service_type.value} already exists")
        await self.db.refresh(card)

        logger.info(
            "Rate card created",
            rate_card_id=str(card.id),
            service_type=card.service_type,
        )
        return card

    async def update_rate_card(self, rate_card_id: uuid.UUID, data: RateCardUpdate) -> RateCard:
        card = await self.get_rate_card(rate_card_id)
        for field, value in data.model_dump(mode="json", exclude_unset=True).items():
            setattr(card, field, value)
        await self.db.commit()
        await self.db.refresh(card)
        logger.info("Rate card updated", rate_card_id=str(card.id))
        return card

    async def delete_rate_card(self, rate_card_id: uuid.UUID) -> None:
        card = await self.get_rate_card(rate_card_id)
        await self.db.delete(card)
        await self.db.commit()
        logger.info("Rate card deleted", rate_card_id=str(rate_card_id))


class QuoteService:
    """Public pricing: single-seller estimates and operator matching."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _active_card(self, seller_org_id: uuid.UUID, service_type: ServiceType) -> RateCard:
        result = await self.db.execute(
            select(RateCard).where(
                RateCard.organization_id == seller_org_id,
                RateCard.service_type == service_type.value,
                RateCard.is_active.is_(True),
            )
        )
        card = result.scalar_one_or_none()
        if not card:
            raise NotFoundError("RateCard", f"{seller_org_id}/{service_type.value}")
        return card

    async def estimate(self, request: QuoteEstimateRequest) -> QuoteEstimateResponse:
        card = await self._active_card(request.seller_org_id, request.service_type)
        area_ha, location = resolve_job_geometry(request)

        if request.distance_km is not None:
            distance_km = request.distance_km
        else:
            seller = await self.db.get(Organization, request.seller_org_id)
            distance_km = travel_distance_km(
                seller.base_location if seller else None,
                location,
                settings.default_distance_km,
            )

        try:
            breakdown = estimate_quote(
                PricingTerms.from_rate_card(card),
                area_ha=area_ha,
                distance_km=distance_km,
                month=request.month,
                risk_key=request.risk_key,
                terrain=request.terrain,
                has_obstacles=request.has_obstacles,
            )
        except ValueError as exc:
            raise ValidationError(str(exc))

        record_quote(card.service_type)
        logger.info(
            "Quote estimated",
            seller_org_id=str(card.organization_id),
            service_type=card.service_type,
            total_cents=breakdown.total_cents,
        )

        snapshot = build_snapshot(
            card,
            breakdown,
            inputs=request.model_dump(mode="json", exclude={"field_polygon"}),
        )
        return QuoteEstimateResponse(
            currency=card.currency,
            total_estimated_cents=breakdown.total_cents,
            total_display=format_euro(breakdown.total_cents),
            breakdown=snapshot.breakdown,
            pricing_snapshot=snapshot,
        )

    async def match_operators(self, request: OperatorMatchRequest) -> OperatorMatchResponse:
        """Rank eligible service providers by their quoted total."""
        area_ha, location = resolve_job_geometry(request)

        result = await self.db.execute(
            select(Organization, RateCard)
            .join(RateCard, RateCard.organization_id == Organization.id)
            .where(
                Organization.status == OrganizationStatus.ACTIVE.value,
                or_(
                    Organization.is_certified.is_(True),
                    Organization.org_type.in_(MATCHABLE_ORG_TYPES),
                ),
                RateCard.service_type == request.service_type.value,
                RateCard.is_active.is_(True),
            )
        )
        candidates = result.unique().all()

        ranked = rank_operators(
            ((org, card) for org, card in candidates),
            JobParameters(
                area_ha=area_ha,
                location=location,
                month=request.month,
                risk_key=request.risk_key,
                terrain=request.terrain,
                has_obstacles=request.has_obstacles,
            ),
            default_distance_km=settings.default_distance_km,
        )
        returned = ranked[: request.limit]

        record_quote(request.service_type.value)
        logger.info(
            "Operators matched",
            service_type=request.service_type.value,
            candidates=len(candidates),
            returned=len(returned),
        )

        return OperatorMatchResponse(
            service_type=request.service_type,
            area_ha=area_ha,
            operators=[
                OperatorQuote(
                    organization_id=q.organization.id,
                    legal_name=q.organization.legal_name,
                    org_type=q.organization.org_type,
                    is_certified=q.organization.is_certified,
                    rate_card_id=q.rate_card.id,
                    distance_km=q.distance_km,
                    currency=q.rate_card.currency,
                    total_cents=q.total_cents,
                    total_display=format_euro(q.total_cents),
                    breakdown=QuoteBreakdownResponse(**q.breakdown.as_dict()),
                )
                for q in returned
            ],
            total=len(ranked),
        )
