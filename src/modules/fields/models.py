"""
Fields Module - Database Models
Saved field polygons a buyer can reuse when posting jobs.
"""
from sqlalchemy import Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.models import Base, JSONType, TenantMixin


class SavedField(Base, TenantMixin):
    """A named field boundary owned by an organization."""
    __tablename__ = "saved_field"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # [{"lat": .., "lng": ..}, ...] open ring
    polygon: Mapped[list[dict]] = mapped_column(JSONType, nullable=False)
    area_ha: Mapped[float] = mapped_column(Float, nullable=False)
    location_json: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def points(self) -> list[tuple[float, float]]:
        return [(p["lat"], p["lng"]) for p in self.polygon]
