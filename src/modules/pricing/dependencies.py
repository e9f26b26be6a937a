"""
Pricing Module - FastAPI Dependencies
"""
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.modules.auth.dependencies import TenantContext, get_tenant_context
from src.modules.pricing.service import QuoteService, RateCardService


async def get_rate_card_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_context: Annotated[TenantContext, Depends(get_tenant_context)],
) -> RateCardService:
    """Get RateCardService instance with tenant context."""
    return RateCardService(db, tenant_context.organization_id)


async def get_quote_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> QuoteService:
    return QuoteService(db)


RateCardServiceDep = Annotated[RateCardService, Depends(get_rate_card_service)]
QuoteServiceDep = Annotated[QuoteService, Depends(get_quote_service)]
