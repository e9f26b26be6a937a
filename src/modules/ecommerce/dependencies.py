"""
E-commerce Module - FastAPI Dependencies
"""
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.modules.auth.dependencies import TenantContext, get_tenant_context
from src.modules.ecommerce.service import (
    AddressService,
    CartService,
    CatalogService,
    OrderService,
    WishlistService,
)


async def get_catalog_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CatalogService:
    return CatalogService(db)


async def get_cart_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_context: Annotated[TenantContext, Depends(get_tenant_context)],
) -> CartService:
    """Cart of the active organization."""
    return CartService(db, tenant_context.organization_id, tenant_context.user_id)


async def get_order_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_context: Annotated[TenantContext, Depends(get_tenant_context)],
) -> OrderService:
    return OrderService(db, tenant_context.organization_id, tenant_context.user_id)


async def get_wishlist_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_context: Annotated[TenantContext, Depends(get_tenant_context)],
) -> WishlistService:
    return WishlistService(db, tenant_context.organization_id)


async def get_address_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_context: Annotated[TenantContext, Depends(get_tenant_context)],
) -> AddressService:
    return AddressService(db, tenant_context.organization_id)


CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
CartServiceDep = Annotated[CartService, Depends(get_cart_service)]
OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
WishlistServiceDep = Annotated[WishlistService, Depends(get_wishlist_service)]
AddressServiceDep = Annotated[AddressService, Depends(get_address_service)]
