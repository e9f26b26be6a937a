"""
Marketplace Module - Service Layer

Job lifecycle:   OPEN -> AWARDED -> COMPLETED, OPEN -> CANCELLED
Offer lifecycle: SUBMITTED -> ACCEPTED -> COMPLETED,
                 SUBMITTED -> DECLINED | WITHDRAWN
"""
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from src.core.logging import get_logger
from src.core.metrics import record_offer_accepted, record_offer_submitted
from src.modules.auth.dependencies import TenantContext
from src.modules.auth.models import OrganizationType
from src.modules.fields.models import SavedField
from src.modules.fields.schemas import GeoPoint
from src.modules.fields.service import measure_polygon
from src.modules.marketplace.models import (
    ACTIVE_OFFER_STATUSES,
    Job,
    JobOffer,
    JobOfferStatus,
    JobStatus,
    OfferMessage,
)
from src.modules.marketplace.schemas import (
    JobCreate,
    JobOfferCreate,
    JobOfferUpdate,
    OfferMessageCreate,
)
from src.modules.pricing.estimator import PricingTerms, estimate_quote
from src.modules.pricing.matching import travel_distance_km
from src.modules.pricing.models import RateCard
from src.modules.pricing.service import build_snapshot

logger = get_logger(__name__)


class JobService:
    """Service for buyer jobs."""

    def __init__(self, db: AsyncSession, tenant: TenantContext):
        self.db = db
        self.tenant = tenant

    async def create(self, data: JobCreate) -> Job:
        """Create a job from a drawn polygon or a saved field."""
        polygon = data.polygon
        field_name = data.field_name

        if data.saved_field_id is not None:
            result = await self.db.execute(
                select(SavedField).where(
                    SavedField.id == data.saved_field_id,
                    SavedField.organization_id == self.tenant.organization_id,
                )
            )
            saved = result.scalar_one_or_none()
            if not saved:
                raise NotFoundError("SavedField", data.saved_field_id)
            if polygon is None:
                polygon = [GeoPoint(**p) for p in saved.polygon]
            field_name = field_name or saved.name

        if not field_name:
            raise ValidationError("field_name is required", details={"field": "field_name"})

        measured = measure_polygon(polygon)
        location = data.location or measured.centroid

        job = Job(
            organization_id=self.tenant.organization_id,
            created_by_user_id=self.tenant.user_id,
            saved_field_id=data.saved_field_id,
            field_name=field_name,
            service_type=data.service_type.value,
            crop_type=data.crop_type.value if data.crop_type else None,
            treatment_type=data.treatment_type.value if data.treatment_type else None,
            terrain=data.terrain.value if data.terrain else None,
            status=JobStatus.OPEN.value,
            polygon=[p.model_dump() for p in polygon],
            area_ha=measured.area_ha,
            location_lat=location.lat,
            location_lng=location.lng,
            location_label=data.location_label,
            target_date_start=data.target_date_start,
            target_date_end=data.target_date_end,
            max_budget_cents=data.max_budget_cents,
            notes=data.notes,
        )
        self.db.add(job)
        await self.db.commit()
        await self.db.refresh(job)

        logger.info(
            "Job created",
            job_id=str(job.id),
            service_type=job.service_type,
            area_ha=job.area_ha,
        )
        return job

    async def _get(self, job_id: UUID) -> Job:
        job = await self.db.get(Job, job_id)
        if not job:
            raise NotFoundError("Job", job_id)
        return job

    async def _has_offer(self, job_id: UUID) -> bool:
        result = await self.db.execute(
            select(func.count(JobOffer.id)).where(
                JobOffer.job_id == job_id,
                JobOffer.operator_org_id == self.tenant.organization_id,
            )
        )
        return (result.scalar() or 0) > 0

    async def get_visible(self, job_id: UUID) -> Job:
        """
        A job is visible to its buyer, to anyone while it is OPEN,
        and to operators that bid on it. Otherwise it does not exist.
        """
        job = await self._get(job_id)
        if job.organization_id == self.tenant.organization_id:
            return job
        if job.status == JobStatus.OPEN.value or await self._has_offer(job_id):
            return job
        raise NotFoundError("Job", job_id)

    async def get_own(self, job_id: UUID) -> Job:
        """The job, if the active organization is its buyer."""
        job = await self.get_visible(job_id)
        if job.organization_id != self.tenant.organization_id:
            raise ForbiddenError("Only the buyer organization can manage this job")
        return job

    async def list_own(
        self,
        status: JobStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Job], int]:
        """Jobs posted by the active organization."""
        query = select(Job).where(Job.organization_id == self.tenant.organization_id)
        count_query = select(func.count(Job.id)).where(
            Job.organization_id == self.tenant.organization_id
        )

        if status:
            query = query.where(Job.status == status.value)
            count_query = count_query.where(Job.status == status.value)

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(Job.created_at.desc())
        query = query.offset((page - 1) * page_size).limit(page_size)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def list_open(
        self,
        service_type: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Job], int]:
        """Open jobs of other organizations (the operator feed)."""
        conditions = [
            Job.status == JobStatus.OPEN.value,
            Job.organization_id != self.tenant.organization_id,
        ]
        if service_type:
            conditions.append(Job.service_type == service_type)

        total_result = await self.db.execute(select(func.count(Job.id)).where(*conditions))
        total = total_result.scalar() or 0

        query = (
            select(Job)
            .where(*conditions)
            .order_by(Job.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def cancel(self, job_id: UUID) -> Job:
        """Cancel an open job; pending offers are declined."""
        job = await self.get_own(job_id)
        if job.status != JobStatus.OPEN.value:
            raise InvalidStateError("Job", job.status, "cancel")

        job.status = JobStatus.CANCELLED.value
        await self.db.execute(
            update(JobOffer)
            .where(
                JobOffer.job_id == job.id,
                JobOffer.status == JobOfferStatus.SUBMITTED.value,
            )
            .values(status=JobOfferStatus.DECLINED.value)
        )
        await self.db.commit()
        await self.db.refresh(job)

        logger.info("Job cancelled", job_id=str(job.id))
        return job


class JobOfferService:
    """Service for offers and their message threads."""

    def __init__(self, db: AsyncSession, tenant: TenantContext):
        self.db = db
        self.tenant = tenant

    async def _get_offer(self, offer_id: UUID) -> JobOffer:
        result = await self.db.execute(select(JobOffer).where(JobOffer.id == offer_id))
        offer = result.unique().scalar_one_or_none()
        if not offer:
            raise NotFoundError("JobOffer", offer_id)
        return offer

    def _is_operator(self, offer: JobOffer) -> bool:
        return offer.operator_org_id == self.tenant.organization_id

    def _is_buyer(self, offer: JobOffer) -> bool:
        return offer.job.organization_id == self.tenant.organization_id

    async def _price_from_rate_card(self, job: Job, data: JobOfferCreate) -> tuple[int, dict]:
        result = await self.db.execute(
            select(RateCard).where(
                RateCard.organization_id == self.tenant.organization_id,
                RateCard.service_type == job.service_type,
                RateCard.is_active.is_(True),
            )
        )
        card = result.scalar_one_or_none()
        if not card:
            raise ValidationError(
                f"total_cents is required: no active {job.service_type} rate card",
                details={"field": "total_cents"},
            )

        distance_km = travel_distance_km(
            self.tenant.organization.base_location,
            job.location,
            settings.default_distance_km,
        )
        breakdown = estimate_quote(
            PricingTerms.from_rate_card(card),
            area_ha=job.area_ha,
            distance_km=distance_km,
            month=data.month,
            risk_key=data.risk_key,
            terrain=job.terrain,
            has_obstacles=data.has_obstacles,
        )
        snapshot = build_snapshot(
            card,
            breakdown,
            inputs={
                "job_id": str(job.id),
                "area_ha": job.area_ha,
                "distance_km": distance_km,
                "month": data.month,
                "risk_key": data.risk_key,
                "terrain": job.terrain,
                "has_obstacles": data.has_obstacles,
            },
        )
        return breakdown.total_cents, snapshot.model_dump(mode="json")

    async def create(self, job_id: UUID, data: JobOfferCreate) -> JobOffer:
        """Place a bid on an open job."""
        job = await self.db.get(Job, job_id)
        if not job:
            raise NotFoundError("Job", job_id)

        if self.tenant.org_type == OrganizationType.BUYER:
            raise ForbiddenError("Buyer organizations cannot submit offers")
        if job.organization_id == self.tenant.organization_id:
            raise ForbiddenError("Cannot bid on your own job")
        if job.status != JobStatus.OPEN.value:
            raise InvalidStateError("Job", job.status, "bid on")

        existing = await self.db.execute(
            select(func.count(JobOffer.id)).where(
                JobOffer.job_id == job_id,
                JobOffer.operator_org_id == self.tenant.organization_id,
                JobOffer.status.in_(ACTIVE_OFFER_STATUSES),
            )
        )
        if (existing.scalar() or 0) > 0:
            raise ConflictError("An active offer for this job already exists")

        if data.total_cents is not None:
            total_cents, snapshot = data.total_cents, None
        else:
            total_cents, snapshot = await self._price_from_rate_card(job, data)

        offer = JobOffer(
            job_id=job.id,
            operator_org_id=self.tenant.organization_id,
            created_by_user_id=self.tenant.user_id,
            status=JobOfferStatus.SUBMITTED.value,
            total_cents=total_cents,
            currency=data.currency,
            pricing_snapshot=snapshot,
            provider_note=data.provider_note,
            proposed_start=data.proposed_start,
            proposed_end=data.proposed_end,
        )
        self.db.add(offer)
        await self.db.commit()
        await self.db.refresh(offer)

        record_offer_submitted(job.service_type)
        logger.info(
            "Offer submitted",
            offer_id=str(offer.id),
            job_id=str(job.id),
            total_cents=offer.total_cents,
        )
        return offer

    async def list_for_job(self, job_id: UUID) -> list[JobOffer]:
        """The buyer sees every offer; an operator only its own."""
        job = await JobService(self.db, self.tenant).get_visible(job_id)

        query = select(JobOffer).where(JobOffer.job_id == job_id)
        if job.organization_id != self.tenant.organization_id:
            query = query.where(JobOffer.operator_org_id == self.tenant.organization_id)

        result = await self.db.execute(query.order_by(JobOffer.created_at))
        return list(result.unique().scalars().all())

    async def list_mine(self, status: JobOfferStatus | None = None) -> list[JobOffer]:
        """Offers placed by the active organization."""
        query = select(JobOffer).where(JobOffer.operator_org_id == self.tenant.organization_id)
        if status:
            query = query.where(JobOffer.status == status.value)
        result = await self.db.execute(query.order_by(JobOffer.created_at.desc()))
        return list(result.unique().scalars().all())

    async def _get_own_submitted(self, offer_id: UUID, action: str) -> JobOffer:
        offer = await self._get_offer(offer_id)
        if not self._is_operator(offer):
            raise ForbiddenError("Only the operator that placed the offer can change it")
        if offer.status != JobOfferStatus.SUBMITTED.value:
            raise InvalidStateError("Offer", offer.status, action)
        return offer

    async def update(self, offer_id: UUID, data: JobOfferUpdate) -> JobOffer:
        offer = await self._get_own_submitted(offer_id, "update")

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("total_cents") is None:
            update_data.pop("total_cents", None)

        start = update_data.get("proposed_start", offer.proposed_start)
        end = update_data.get("proposed_end", offer.proposed_end)
        if start and end and end < start:
            raise ValidationError(
                "Proposed end must not be before start",
                details={"proposed_start": str(start), "proposed_end": str(end)},
            )

        for field, value in update_data.items():
            setattr(offer, field, value)
        if "total_cents" in update_data:
            # Manual price replaces any computed breakdown
            offer.pricing_snapshot = None

        await self.db.commit()
        await self.db.refresh(offer)
        logger.info("Offer updated", offer_id=str(offer.id))
        return offer

    async def withdraw(self, offer_id: UUID) -> JobOffer:
        offer = await self._get_own_submitted(offer_id, "withdraw")
        offer.status = JobOfferStatus.WITHDRAWN.value
        await self.db.commit()
        await self.db.refresh(offer)
        logger.info("Offer withdrawn", offer_id=str(offer.id))
        return offer

    async def accept(self, job_id: UUID, offer_id: UUID) -> JobOffer:
        """Award the job to one offer and decline the rest."""
        offer = await self._get_offer(offer_id)
        if offer.job_id != job_id:
            raise NotFoundError("JobOffer", offer_id)
        if not self._is_buyer(offer):
            raise ForbiddenError("Only the buyer organization can accept offers")

        job = offer.job
        if job.status != JobStatus.OPEN.value:
            raise InvalidStateError("Job", job.status, "accept offers on")
        if offer.status != JobOfferStatus.SUBMITTED.value:
            raise InvalidStateError("Offer", offer.status, "accept")

        offer.status = JobOfferStatus.ACCEPTED.value
        job.status = JobStatus.AWARDED.value
        job.accepted_offer_id = offer.id

        await self.db.execute(
            update(JobOffer)
            .where(
                JobOffer.job_id == job.id,
                JobOffer.id != offer.id,
                JobOffer.status == JobOfferStatus.SUBMITTED.value,
            )
            .values(status=JobOfferStatus.DECLINED.value)
        )
        await self.db.commit()
        await self.db.refresh(offer)

        record_offer_accepted(job.service_type)
        logger.info(
            "Offer accepted",
            offer_id=str(offer.id),
            job_id=str(job.id),
            operator_org_id=str(offer.operator_org_id),
        )
        return offer

    async def complete(self, offer_id: UUID) -> JobOffer:
        """Mark the awarded work as done. Either party may do this."""
        offer = await self._get_offer(offer_id)
        if not (self._is_operator(offer) or self._is_buyer(offer)):
            raise ForbiddenError("Only the buyer or the operator can complete this offer")
        if offer.status != JobOfferStatus.ACCEPTED.value:
            raise InvalidStateError("Offer", offer.status, "complete")

        offer.status = JobOfferStatus.COMPLETED.value
        offer.job.status = JobStatus.COMPLETED.value
        await self.db.commit()
        await self.db.refresh(offer)

        logger.info("Offer completed", offer_id=str(offer.id), job_id=str(offer.job_id))
        return offer

    # === Messages ===

    async def _get_thread_offer(self, offer_id: UUID) -> JobOffer:
        offer = await self._get_offer(offer_id)
        if not (self._is_operator(offer) or self._is_buyer(offer)):
            raise ForbiddenError("Not a participant of this offer")
        if offer.status not in (JobOfferStatus.ACCEPTED.value, JobOfferStatus.COMPLETED.value):
            raise ForbiddenError("Messaging opens once the offer is accepted")
        return offer

    async def list_messages(self, offer_id: UUID) -> list[OfferMessage]:
        await self._get_thread_offer(offer_id)
        result = await self.db.execute(
            select(OfferMessage)
            .where(OfferMessage.offer_id == offer_id)
            .order_by(OfferMessage.created_at)
        )
        return list(result.scalars().all())

    async def mark_messages_read(self, offer_id: UUID) -> int:
        """Mark the other party's messages as read. Own messages are left alone."""
        offer = await self._get_thread_offer(offer_id)
        result = await self.db.execute(
            update(OfferMessage)
            .where(
                OfferMessage.offer_id == offer.id,
                OfferMessage.sender_org_id != self.tenant.organization_id,
                OfferMessage.is_read.is_(False),
            )
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount

    async def post_message(self, offer_id: UUID, data: OfferMessageCreate) -> OfferMessage:
        offer = await self._get_thread_offer(offer_id)
        message = OfferMessage(
            offer_id=offer.id,
            sender_user_id=self.tenant.user_id,
            sender_org_id=self.tenant.organization_id,
            body=data.body,
        )
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        logger.info("Offer message posted", offer_id=str(offer.id), message_id=str(message.id))
        return message
