"""
E-commerce Module - Pydantic Schemas (DTOs)
"""
import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.modules.ecommerce.models import AddressType, OrderStatus
from src.modules.pricing.money import parse_price_cents


# ============== Catalog Schemas ==============

class ProductCreate(BaseModel):
    """price_cents accepts integer cents or a euro string such as "4.869,57"."""
    sku_code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    brand: str | None = Field(None, max_length=100)
    model: str | None = Field(None, max_length=100)
    category: str | None = Field(None, max_length=50)
    description: str | None = None
    specs: dict | None = None
    price_cents: int | str
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    is_active: bool = True

    @field_validator("price_cents")
    @classmethod
    def normalize_price(cls, value: int | str) -> int:
        return parse_price_cents(value)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    sku_code: str
    name: str
    brand: str | None = None
    model: str | None = None
    category: str | None = None
    description: str | None = None
    specs: dict | None = None
    price_cents: int
    currency: str
    is_active: bool
    created_at: datetime


class ProductListResponse(BaseModel):
    products: list[ProductResponse]
    total: int
    page: int
    page_size: int


# ============== Cart Schemas ==============

class CartItemAdd(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(default=1, ge=1, le=10_000)


class CartItemUpdate(BaseModel):
    """Quantity 0 removes the item."""
    quantity: int = Field(..., ge=0, le=10_000)


class CartItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    unit_price_snapshot_cents: int
    line_total_cents: int
    product: ProductResponse


class CartResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    items: list[CartItemResponse]
    item_count: int
    subtotal_cents: int


# ============== Order Schemas ==============

class CheckoutRequest(BaseModel):
    """A saved address (shipping_address_id) takes precedence over an inline one."""
    shipping_address_id: uuid.UUID | None = None
    shipping_address: dict | None = None
    notes: str | None = Field(None, max_length=2000)


class OrderLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID | None
    sku_code: str
    name: str
    quantity: int
    unit_price_snapshot_cents: int
    line_total_cents: int


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    buyer_org_id: uuid.UUID
    seller_org_id: uuid.UUID
    created_by_user_id: uuid.UUID | None
    status: OrderStatus
    currency: str
    subtotal_cents: int
    total_cents: int
    shipping_address: dict | None = None
    notes: str | None = None
    lines: list[OrderLineResponse]
    created_at: datetime
    updated_at: datetime


class CheckoutResponse(BaseModel):
    orders: list[OrderResponse]
    total_cents: int


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


OrderRole = Literal["buyer", "seller"]


# ============== Order Message Schemas ==============

class OrderMessageCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)


class OrderMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    sender_user_id: uuid.UUID | None
    sender_org_id: uuid.UUID
    body: str
    is_read: bool
    created_at: datetime


class MessagesReadResponse(BaseModel):
    marked_read: int


# ============== Wishlist Schemas ==============

class WishlistItemAdd(BaseModel):
    product_id: uuid.UUID
    note: str | None = Field(None, max_length=1000)


class WishlistItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    note: str | None = None
    product: ProductResponse
    created_at: datetime


# ============== Address Schemas ==============

ADDRESS_NULLABLE_FIELDS = frozenset({"company", "phone"})


class AddressBase(BaseModel):
    type: AddressType
    name: str = Field(..., min_length=1, max_length=255)
    company: str | None = Field(None, max_length=255)
    address_line: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    province: str = Field(..., min_length=1, max_length=50)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(default="IT", min_length=2, max_length=2)
    phone: str | None = Field(None, max_length=50)
    is_default: bool = False


class AddressCreate(AddressBase):
    pass


class AddressUpdate(BaseModel):
    """Partial update. type is immutable."""
    name: str | None = Field(None, min_length=1, max_length=255)
    company: str | None = Field(None, max_length=255)
    address_line: str | None = Field(None, min_length=1, max_length=500)
    city: str | None = Field(None, min_length=1, max_length=100)
    province: str | None = Field(None, min_length=1, max_length=50)
    postal_code: str | None = Field(None, min_length=1, max_length=20)
    country: str | None = Field(None, min_length=2, max_length=2)
    phone: str | None = Field(None, max_length=50)
    is_default: bool | None = None

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data):
        if isinstance(data, dict):
            nulls = sorted(
                key for key, value in data.items()
                if value is None and key not in ADDRESS_NULLABLE_FIELDS
            )
            if nulls:
                raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return data


class AddressResponse(AddressBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    created_at: datetime
