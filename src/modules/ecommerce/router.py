"""
E-commerce Module - API Router
"""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from src.core.database import AsyncSessionDep
from src.core.exceptions import ForbiddenError
from src.modules.auth.dependencies import TenantContext, TenantContextDep, require_org_type
from src.modules.auth.models import OrganizationType
from src.modules.ecommerce.dependencies import (
    AddressServiceDep,
    CartServiceDep,
    CatalogServiceDep,
    OrderServiceDep,
    WishlistServiceDep,
)
from src.modules.ecommerce.models import AddressType, OrderStatus
from src.modules.ecommerce.schemas import (
    AddressCreate,
    AddressResponse,
    AddressUpdate,
    CartItemAdd,
    CartItemUpdate,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    MessagesReadResponse,
    OrderMessageCreate,
    OrderMessageResponse,
    OrderResponse,
    OrderRole,
    OrderStatusUpdate,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    WishlistItemAdd,
    WishlistItemResponse,
)
from src.modules.ecommerce.service import CartService

catalog_router = APIRouter(prefix="/catalog", tags=["ecommerce"])
router = APIRouter(prefix="/ecommerce", tags=["ecommerce"])
orders_router = APIRouter(prefix="/orders", tags=["ecommerce"])


# ============== Catalog ==============

@catalog_router.get("/products", response_model=ProductListResponse)
async def list_products(
    service: CatalogServiceDep,
    category: str | None = None,
    vendor_id: uuid.UUID | None = None,
    q: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> ProductListResponse:
    """Active products. Public."""
    products, total = await service.list_products(
        category=category,
        vendor_id=vendor_id,
        search=q,
        page=page,
        page_size=page_size,
    )
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=page,
        page_size=page_size,
    )


@catalog_router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    service: CatalogServiceDep,
) -> ProductResponse:
    product = await service.get_product(product_id)
    return ProductResponse.model_validate(product)


@catalog_router.post(
    "/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    data: ProductCreate,
    service: CatalogServiceDep,
    tenant: Annotated[TenantContext, Depends(require_org_type([OrganizationType.VENDOR]))],
) -> ProductResponse:
    """List a new product. Vendor organizations only."""
    product = await service.create_product(tenant.organization_id, data)
    return ProductResponse.model_validate(product)


# ============== Cart ==============

@router.get("/cart", response_model=CartResponse)
async def get_cart(
    tenant: TenantContextDep,
    db: AsyncSessionDep,
    org_id: uuid.UUID | None = Query(None, alias="orgId"),
) -> CartResponse:
    """
    Cart of `orgId` (defaults to the active organization).
    The caller must be a member of that organization.
    """
    organization_id = org_id or tenant.organization_id
    if not tenant.user.membership_for(organization_id):
        raise ForbiddenError("You don't have access to this organization's cart")

    cart = await CartService(db, organization_id, tenant.user_id).get_or_create()
    return CartResponse.model_validate(cart)


@router.post("/cart/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_cart_item(
    data: CartItemAdd,
    service: CartServiceDep,
) -> CartResponse:
    """Add a product. Adding the same product again increases the quantity."""
    cart = await service.add_item(data)
    return CartResponse.model_validate(cart)


@router.put("/cart/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: uuid.UUID,
    data: CartItemUpdate,
    service: CartServiceDep,
) -> CartResponse:
    """Set the quantity of a cart line; 0 removes it."""
    cart = await service.update_item(item_id, data)
    return CartResponse.model_validate(cart)


@router.delete("/cart/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    item_id: uuid.UUID,
    service: CartServiceDep,
) -> CartResponse:
    cart = await service.remove_item(item_id)
    return CartResponse.model_validate(cart)


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    service: CartServiceDep,
    data: CheckoutRequest | None = None,
) -> CheckoutResponse:
    """Create one order per seller from the cart and empty it."""
    orders = await service.checkout(data or CheckoutRequest())
    return CheckoutResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        total_cents=sum(o.total_cents for o in orders),
    )


# ============== Wishlist ==============

@router.get("/wishlist", response_model=list[WishlistItemResponse])
async def list_wishlist(service: WishlistServiceDep) -> list[WishlistItemResponse]:
    items = await service.list_items()
    return [WishlistItemResponse.model_validate(i) for i in items]


@router.post(
    "/wishlist",
    response_model=WishlistItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_wishlist_item(
    data: WishlistItemAdd,
    service: WishlistServiceDep,
) -> WishlistItemResponse:
    """Save an active product. Each product appears once."""
    item = await service.add_item(data)
    return WishlistItemResponse.model_validate(item)


@router.delete("/wishlist/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_wishlist_item(
    item_id: uuid.UUID,
    service: WishlistServiceDep,
) -> Response:
    await service.remove_item(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============== Addresses ==============

@router.get("/addresses", response_model=list[AddressResponse])
async def list_addresses(
    service: AddressServiceDep,
    address_type: AddressType | None = Query(None, alias="type"),
) -> list[AddressResponse]:
    """Saved addresses, defaults first."""
    addresses = await service.list_addresses(address_type)
    return [AddressResponse.model_validate(a) for a in addresses]


@router.post(
    "/addresses",
    response_model=AddressResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_address(
    data: AddressCreate,
    service: AddressServiceDep,
) -> AddressResponse:
    """A new default address replaces the previous default of the same type."""
    address = await service.create_address(data)
    return AddressResponse.model_validate(address)


@router.patch("/addresses/{address_id}", response_model=AddressResponse)
async def update_address(
    address_id: uuid.UUID,
    data: AddressUpdate,
    service: AddressServiceDep,
) -> AddressResponse:
    address = await service.update_address(address_id, data)
    return AddressResponse.model_validate(address)


@router.delete("/addresses/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_address(
    address_id: uuid.UUID,
    service: AddressServiceDep,
) -> Response:
    await service.delete_address(address_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============== Orders ==============

@orders_router.get("", response_model=list[OrderResponse])
async def list_orders(
    service: OrderServiceDep,
    role: OrderRole = "buyer",
    order_status: OrderStatus | None = Query(None, alias="status"),
) -> list[OrderResponse]:
    """Orders placed (role=buyer) or received (role=seller) by the active organization."""
    orders = await service.list_orders(role=role, status=order_status)
    return [OrderResponse.model_validate(o) for o in orders]


@orders_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    service: OrderServiceDep,
) -> OrderResponse:
    order = await service.get_order(order_id)
    return OrderResponse.model_validate(order)


@orders_router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    data: OrderStatusUpdate,
    service: OrderServiceDep,
) -> OrderResponse:
    order = await service.update_status(order_id, data.status)
    return OrderResponse.model_validate(order)


@orders_router.get("/{order_id}/messages", response_model=list[OrderMessageResponse])
async def list_order_messages(
    order_id: uuid.UUID,
    service: OrderServiceDep,
) -> list[OrderMessageResponse]:
    """Conversation between the buyer and the seller, oldest first."""
    messages = await service.list_messages(order_id)
    return [OrderMessageResponse.model_validate(m) for m in messages]


@orders_router.post(
    "/{order_id}/messages",
    response_model=OrderMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_order_message(
    order_id: uuid.UUID,
    data: OrderMessageCreate,
    service: OrderServiceDep,
) -> OrderMessageResponse:
    message = await service.post_message(order_id, data)
    return OrderMessageResponse.model_validate(message)


@orders_router.put("/{order_id}/messages/read", response_model=MessagesReadResponse)
async def mark_order_messages_read(
    order_id: uuid.UUID,
    service: OrderServiceDep,
) -> MessagesReadResponse:
    marked = await service.mark_messages_read(order_id)
    return MessagesReadResponse(marked_read=marked)
