"""
E-commerce Module - Database Models
Vendor catalog, per-organization carts and orders split by seller.
"""
import uuid
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.models import Base, JSONType, TenantMixin


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    FULFILLED = "FULFILLED"
    CANCELLED = "CANCELLED"
    PROBLEMATIC = "PROBLEMATIC"


ORDER_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING.value: frozenset({OrderStatus.PAID.value, OrderStatus.CANCELLED.value}),
    OrderStatus.PAID.value: frozenset({
        OrderStatus.SHIPPED.value,
        OrderStatus.CANCELLED.value,
        OrderStatus.PROBLEMATIC.value,
    }),
    OrderStatus.SHIPPED.value: frozenset({OrderStatus.FULFILLED.value, OrderStatus.PROBLEMATIC.value}),
    OrderStatus.PROBLEMATIC.value: frozenset({
        OrderStatus.SHIPPED.value,
        OrderStatus.FULFILLED.value,
        OrderStatus.CANCELLED.value,
    }),
    OrderStatus.FULFILLED.value: frozenset(),
    OrderStatus.CANCELLED.value: frozenset(),
}


class AddressType(str, Enum):
    SHIPPING = "SHIPPING"
    BILLING = "BILLING"


class Product(Base, TenantMixin):
    """A catalog item sold by a vendor organization (organization_id)."""
    __tablename__ = "product"

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="price_non_negative"),
    )

    sku_code: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)
    model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    specs: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Cart(Base, TenantMixin):
    """One open cart per organization."""
    __tablename__ = "cart"

    __table_args__ = (
        UniqueConstraint("organization_id", name="uq_cart_organization"),
    )

    items: Mapped[list["CartItem"]] = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartItem.created_at",
    )

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def subtotal_cents(self) -> int:
        return sum(item.line_total_cents for item in self.items)


class CartItem(Base):
    __tablename__ = "cart_item"

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_item_product"),
        CheckConstraint("quantity > 0", name="quantity_positive"),
    )

    cart_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("cart.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("product.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # Price at the time the item was added
    unit_price_snapshot_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    cart: Mapped["Cart"] = relationship("Cart", back_populates="items")
    product: Mapped["Product"] = relationship("Product", lazy="joined")

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_price_snapshot_cents


class Order(Base):
    """An order from one buyer organization to one seller organization."""
    __tablename__ = "order"

    order_number: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    buyer_org_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    seller_org_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=OrderStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    shipping_address: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    lines: Mapped[list["OrderLine"]] = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderLine.created_at",
    )


class OrderLine(Base):
    __tablename__ = "order_line"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive"),
    )

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("order.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("product.id", ondelete="SET NULL"),
        nullable=True,
    )
    sku_code: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_snapshot_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    line_total_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped["Order"] = relationship("Order", back_populates="lines")


class OrderMessage(Base):
    """Chat message between the buyer and the seller of an order."""
    __tablename__ = "order_message"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("order.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True,
    )
    sender_org_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organization.id", ondelete="CASCADE"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class WishlistItem(Base, TenantMixin):
    """A product an organization keeps an eye on."""
    __tablename__ = "wishlist_item"

    __table_args__ = (
        UniqueConstraint("organization_id", "product_id", name="uq_wishlist_item_product"),
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("product.id", ondelete="CASCADE"),
        nullable=False,
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    product: Mapped["Product"] = relationship("Product", lazy="joined")


class Address(Base, TenantMixin):
    """Saved shipping or billing address. At most one default per type."""
    __tablename__ = "address"

    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address_line: Mapped[str] = mapped_column(String(500), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    province: Mapped[str] = mapped_column(String(50), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(2), default="IT", nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def as_shipping_address(self) -> dict:
        """Snapshot copied onto orders at checkout."""
        return {
            "name": self.name,
            "company": self.company,
            "address_line": self.address_line,
            "city": self.city,
            "province": self.province,
            "postal_code": self.postal_code,
            "country": self.country,
            "phone": self.phone,
        }
