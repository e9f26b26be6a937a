"""
Fields Module - Business Logic Service
"""
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import NotFoundError, ValidationError
from src.core.logging import get_logger
from src.modules.fields.geometry import (
    GeometryError,
    centroid,
    polygon_area_ha,
    polygon_area_m2,
    polygon_perimeter_m,
)
from src.modules.fields.models import SavedField
from src.modules.fields.schemas import AreaResponse, GeoPoint, SavedFieldCreate

logger = get_logger(__name__)


def measure_polygon(polygon: list[GeoPoint]) -> AreaResponse:
    """Area, perimeter and centroid of a validated polygon."""
    points = [p.as_tuple() for p in polygon]
    try:
        area_ha = polygon_area_ha(points)
        lat, lng = centroid(points)
        return AreaResponse(
            area_ha=area_ha,
            area_m2=round(polygon_area_m2(points), 2),
            perimeter_m=round(polygon_perimeter_m(points), 2),
            centroid=GeoPoint(lat=lat, lng=lng),
        )
    except GeometryError as exc:
        raise ValidationError(str(exc), details={"field": "polygon"})


class SavedFieldService:
    """Saved fields of one organization."""

    def __init__(self, db: AsyncSession, organization_id: uuid.UUID):
        self.db = db
        self.organization_id = organization_id

    async def list_fields(self) -> list[SavedField]:
        result = await self.db.execute(
            select(SavedField)
            .where(SavedField.organization_id == self.organization_id)
            .order_by(SavedField.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_field(self, field_id: uuid.UUID) -> SavedField:
        """Fields of other organizations are reported as missing."""
        result = await self.db.execute(
            select(SavedField).where(
                SavedField.id == field_id,
                SavedField.organization_id == self.organization_id,
            )
        )
        field = result.scalar_one_or_none()
        if not field:
            raise NotFoundError("SavedField", field_id)
        return field

    async def create_field(self, data: SavedFieldCreate) -> SavedField:
        measured = measure_polygon(data.polygon)
        location = data.location_json or {
            "centroid": measured.centroid.model_dump(),
        }

        field = SavedField(
            organization_id=self.organization_id,
            name=data.name,
            polygon=[p.model_dump() for p in data.polygon],
            area_ha=measured.area_ha,
            location_json=location,
            notes=data.notes,
        )
        self.db.add(field)
        await self.db.commit()
        await self.db.refresh(field)

        logger.info(
            "Saved field created",
            field_id=str(field.id),
            area_ha=field.area_ha,
        )
        return field

    async def delete_field(self, field_id: uuid.UUID) -> None:
        field = await self.get_field(field_id)
        await self.db.delete(field)
        await self.db.commit()
        logger.info("Saved field deleted", field_id=str(field_id))
