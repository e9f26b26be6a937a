"""
Fields Module - Pydantic Schemas (DTOs)
"""
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.modules.fields.geometry import GeometryError, normalize_ring


class GeoPoint(BaseModel):
    """A WGS84 coordinate. Accepts {"lat", "lng"} or a [lat, lng] pair."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    @model_validator(mode="before")
    @classmethod
    def from_pair(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            if len(value) != 2:
                raise ValueError("Coordinate pair must be [lat, lng]")
            return {"lat": value[0], "lng": value[1]}
        return value

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)


def validate_polygon(points: list[GeoPoint]) -> list[GeoPoint]:
    """Reject rings with fewer than 3 distinct vertices; drop the closing vertex."""
    try:
        ring = normalize_ring([p.as_tuple() for p in points])
    except GeometryError as exc:
        raise ValueError(str(exc)) from exc
    return [GeoPoint(lat=lat, lng=lng) for lat, lng in ring]


class PolygonIn(BaseModel):
    """A field boundary."""
    polygon: list[GeoPoint] = Field(..., min_length=3)

    @field_validator("polygon")
    @classmethod
    def check_polygon(cls, value: list[GeoPoint]) -> list[GeoPoint]:
        return validate_polygon(value)


class AreaResponse(BaseModel):
    area_ha: float
    area_m2: float
    perimeter_m: float
    centroid: GeoPoint


# ============== Saved Field Schemas ==============

class SavedFieldCreate(PolygonIn):
    """Area is always computed server-side from the polygon."""
    name: str = Field(..., min_length=1, max_length=255)
    location_json: dict | None = None
    notes: str | None = Field(None, max_length=2000)


class SavedFieldResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    polygon: list[GeoPoint]
    area_ha: float
    location_json: dict | None = None
    notes: str | None = None
    created_at: datetime
