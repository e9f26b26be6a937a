"""
Pricing Module - API Router
"""
import uuid

from fastapi import APIRouter, Depends, Response, status

from src.modules.auth.dependencies import require_role
from src.modules.auth.models import MemberRole
from src.modules.pricing.dependencies import QuoteServiceDep, RateCardServiceDep
from src.modules.pricing.schemas import (
    OperatorMatchRequest,
    OperatorMatchResponse,
    QuoteEstimateRequest,
    QuoteEstimateResponse,
    RateCardCreate,
    RateCardResponse,
    RateCardUpdate,
)

router = APIRouter(prefix="/rate-cards", tags=["pricing"])
quotes_router = APIRouter(prefix="/quotes", tags=["pricing"])

admin_only = [Depends(require_role([MemberRole.ADMIN]))]


# ============== Rate Cards ==============

@router.get("", response_model=list[RateCardResponse])
async def list_rate_cards(
    service: RateCardServiceDep,
    active_only: bool = False,
) -> list[RateCardResponse]:
    """List the organization's rate cards."""
    cards = await service.list_rate_cards(active_only=active_only)
    return [RateCardResponse.model_validate(c) for c in cards]


@router.get("/{rate_card_id}", response_model=RateCardResponse)
async def get_rate_card(
    rate_card_id: uuid.UUID,
    service: RateCardServiceDep,
) -> RateCardResponse:
    card = await service.get_rate_card(rate_card_id)
    return RateCardResponse.model_validate(card)


@router.post(
    "",
    response_model=RateCardResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=admin_only,
)
async def create_rate_card(
    data: RateCardCreate,
    service: RateCardServiceDep,
) -> RateCardResponse:
    """Create a rate card. One per service type per organization."""
    card = await service.create_rate_card(data)
    return RateCardResponse.model_validate(card)


@router.patch("/{rate_card_id}", response_model=RateCardResponse, dependencies=admin_only)
async def update_rate_card(
    rate_card_id: uuid.UUID,
    data: RateCardUpdate,
    service: RateCardServiceDep,
) -> RateCardResponse:
    card = await service.update_rate_card(rate_card_id, data)
    return RateCardResponse.model_validate(card)


@router.delete(
    "/{rate_card_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=admin_only,
)
async def delete_rate_card(
    rate_card_id: uuid.UUID,
    service: RateCardServiceDep,
) -> Response:
    await service.delete_rate_card(rate_card_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============== Quotes ==============

@quotes_router.post("/estimate", response_model=QuoteEstimateResponse)
async def estimate_quote(
    request: QuoteEstimateRequest,
    service: QuoteServiceDep,
) -> QuoteEstimateResponse:
    """
    Estimate the price of a job with one seller's rate card.

    Provide either `area_ha` or `field_polygon`. When `distance_km` is
    omitted it is derived from the seller's base and the job location.
    """
    return await service.estimate(request)


@quotes_router.post("/operators", response_model=OperatorMatchResponse)
async def match_operators(
    request: OperatorMatchRequest,
    service: QuoteServiceDep,
) -> OperatorMatchResponse:
    """Eligible operators for a job, cheapest first."""
    return await service.match_operators(request)
