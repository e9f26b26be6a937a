"""
Fields Module - FastAPI Dependencies
"""
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.modules.auth.dependencies import TenantContext, get_tenant_context
from src.modules.fields.service import SavedFieldService


async def get_saved_field_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_context: Annotated[TenantContext, Depends(get_tenant_context)],
) -> SavedFieldService:
    """Get SavedFieldService instance with tenant context."""
    return SavedFieldService(db, tenant_context.organization_id)


SavedFieldServiceDep = Annotated[SavedFieldService, Depends(get_saved_field_service)]
