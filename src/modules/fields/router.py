"""
Fields Module - API Router
"""
import uuid

from fastapi import APIRouter, Response, status

from src.modules.fields.dependencies import SavedFieldServiceDep
from src.modules.fields.schemas import AreaResponse, PolygonIn, SavedFieldCreate, SavedFieldResponse
from src.modules.fields.service import measure_polygon

router = APIRouter(prefix="/fields", tags=["fields"])


@router.post("/area", response_model=AreaResponse)
async def compute_area(data: PolygonIn) -> AreaResponse:
    """Geodesic area of a polygon. Public, nothing is stored."""
    return measure_polygon(data.polygon)


@router.get("", response_model=list[SavedFieldResponse])
async def list_fields(service: SavedFieldServiceDep) -> list[SavedFieldResponse]:
    """List the organization's saved fields, newest first."""
    fields = await service.list_fields()
    return [SavedFieldResponse.model_validate(f) for f in fields]


@router.post(
    "",
    response_model=SavedFieldResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_field(
    data: SavedFieldCreate,
    service: SavedFieldServiceDep,
) -> SavedFieldResponse:
    """Save a field. The area is computed from the polygon."""
    field = await service.create_field(data)
    return SavedFieldResponse.model_validate(field)


@router.get("/{field_id}", response_model=SavedFieldResponse)
async def get_field(
    field_id: uuid.UUID,
    service: SavedFieldServiceDep,
) -> SavedFieldResponse:
    field = await service.get_field(field_id)
    return SavedFieldResponse.model_validate(field)


@router.delete("/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_field(
    field_id: uuid.UUID,
    service: SavedFieldServiceDep,
) -> Response:
    await service.delete_field(field_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
