"""
Marketplace Module - API Routes
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.modules.auth.dependencies import TenantContext, get_tenant_context
from src.modules.marketplace.models import JobOfferStatus, JobStatus
from src.modules.marketplace.schemas import (
    JobCreate,
    JobListResponse,
    JobOfferCreate,
    JobOfferListResponse,
    JobOfferResponse,
    JobOfferUpdate,
    JobResponse,
    MessagesReadResponse,
    OfferMessageCreate,
    OfferMessageResponse,
)
from src.modules.marketplace.service import JobOfferService, JobService
from src.modules.pricing.models import ServiceType

router = APIRouter(prefix="/jobs", tags=["marketplace"])
offers_router = APIRouter(prefix="/offers", tags=["marketplace"])


# === Jobs ===

@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    data: JobCreate,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Post a new service job for the active organization."""
    service = JobService(db, tenant)
    return await service.create(data)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    status: JobStatus | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Jobs posted by the active organization."""
    service = JobService(db, tenant)
    jobs, total = await service.list_own(status=status, page=page, page_size=page_size)
    return JobListResponse(
        jobs=[JobResponse.model_validate(j) for j in jobs],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/open", response_model=JobListResponse)
async def list_open_jobs(
    service_type: ServiceType | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Open jobs from other organizations (for operators)."""
    service = JobService(db, tenant)
    jobs, total = await service.list_open(
        service_type=service_type.value if service_type else None,
        page=page,
        page_size=page_size,
    )
    return JobListResponse(
        jobs=[JobResponse.model_validate(j) for j in jobs],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: UUID,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    service = JobService(db, tenant)
    return await service.get_visible(job_id)


@router.post("/{job_id}/cancel", response_model=JobResponse)
async def cancel_job(
    job_id: UUID,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Cancel an open job."""
    service = JobService(db, tenant)
    return await service.cancel(job_id)


# === Offers on a job ===

@router.post(
    "/{job_id}/offers",
    response_model=JobOfferResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_offer(
    job_id: UUID,
    data: JobOfferCreate,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Submit an offer. Without total_cents the operator's rate card prices it."""
    service = JobOfferService(db, tenant)
    return await service.create(job_id, data)


@router.get("/{job_id}/offers", response_model=JobOfferListResponse)
async def list_job_offers(
    job_id: UUID,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    service = JobOfferService(db, tenant)
    offers = await service.list_for_job(job_id)
    return JobOfferListResponse(
        offers=[JobOfferResponse.model_validate(o) for o in offers],
        total=len(offers),
    )


@router.post("/{job_id}/offers/{offer_id}/accept", response_model=JobOfferResponse)
async def accept_offer(
    job_id: UUID,
    offer_id: UUID,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Accept an offer: the job is awarded and competing offers are declined."""
    service = JobOfferService(db, tenant)
    return await service.accept(job_id, offer_id)


# === Offers ===

@offers_router.get("/mine", response_model=JobOfferListResponse)
async def list_my_offers(
    status: JobOfferStatus | None = Query(None),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    service = JobOfferService(db, tenant)
    offers = await service.list_mine(status=status)
    return JobOfferListResponse(
        offers=[JobOfferResponse.model_validate(o) for o in offers],
        total=len(offers),
    )


@offers_router.put("/{offer_id}", response_model=JobOfferResponse)
async def update_offer(
    offer_id: UUID,
    data: JobOfferUpdate,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Change price, note or dates of a submitted offer."""
    service = JobOfferService(db, tenant)
    return await service.update(offer_id, data)


@offers_router.post("/{offer_id}/withdraw", response_model=JobOfferResponse)
async def withdraw_offer(
    offer_id: UUID,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    service = JobOfferService(db, tenant)
    return await service.withdraw(offer_id)


@offers_router.post("/{offer_id}/complete", response_model=JobOfferResponse)
async def complete_offer(
    offer_id: UUID,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    service = JobOfferService(db, tenant)
    return await service.complete(offer_id)


@offers_router.get("/{offer_id}/messages", response_model=list[OfferMessageResponse])
async def list_offer_messages(
    offer_id: UUID,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    service = JobOfferService(db, tenant)
    return await service.list_messages(offer_id)


@offers_router.post(
    "/{offer_id}/messages",
    response_model=OfferMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_offer_message(
    offer_id: UUID,
    data: OfferMessageCreate,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    service = JobOfferService(db, tenant)
    return await service.post_message(offer_id, data)


@offers_router.put("/{offer_id}/messages/read", response_model=MessagesReadResponse)
async def mark_offer_messages_read(
    offer_id: UUID,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    service = JobOfferService(db, tenant)
    marked = await service.mark_messages_read(offer_id)
    return MessagesReadResponse(marked_read=marked)
