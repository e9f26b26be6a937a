"""
E-commerce Module - Business Logic Service
"""
import uuid
from collections import defaultdict

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from src.core.logging import get_logger
from src.core.metrics import record_orders_created
from src.core.models import utc_now
from src.modules.ecommerce.models import (
    ORDER_TRANSITIONS,
    Address,
    AddressType,
    Cart,
    CartItem,
    Order,
    OrderLine,
    OrderMessage,
    OrderStatus,
    Product,
    WishlistItem,
)
from src.modules.ecommerce.schemas import (
    AddressCreate,
    AddressUpdate,
    CartItemAdd,
    CartItemUpdate,
    CheckoutRequest,
    OrderMessageCreate,
    OrderRole,
    ProductCreate,
    WishlistItemAdd,
)

logger = get_logger(__name__)


def generate_order_number() -> str:
    return f"ORD-{utc_now():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


class CatalogService:
    """Public product catalog and vendor product management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_products(
        self,
        category: str | None = None,
        vendor_id: uuid.UUID | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Product], int]:
        conditions = [Product.is_active.is_(True)]
        if category:
            conditions.append(Product.category == category)
        if vendor_id:
            conditions.append(Product.organization_id == vendor_id)
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(Product.name).like(pattern),
                    func.lower(Product.brand).like(pattern),
                    func.lower(Product.sku_code).like(pattern),
                )
            )

        total_result = await self.db.execute(select(func.count(Product.id)).where(*conditions))
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(Product)
            .where(*conditions)
            .order_by(Product.name)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total

    async def get_product(self, product_id: uuid.UUID) -> Product:
        product = await self.db.get(Product, product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product", product_id)
        return product

    async def create_product(self, organization_id: uuid.UUID, data: ProductCreate) -> Product:
        existing = await self.db.execute(
            select(Product.id).where(Product.sku_code == data.sku_code)
        )
        if existing.scalar_one_or_none():
            raise ConflictError(f"Product with SKU {data.sku_code} already exists")

        product = Product(organization_id=organization_id, **data.model_dump())
        self.db.add(product)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Product with SKU {data.sku_code} already exists")
        await self.db.refresh(product)

        logger.info("Product created", product_id=str(product.id), sku_code=product.sku_code)
        return product


class CartService:
    """The cart of one organization. Created on first access."""

    def __init__(self, db: AsyncSession, organization_id: uuid.UUID, user_id: uuid.UUID):
        self.db = db
        self.organization_id = organization_id
        self.user_id = user_id

    async def _load(self) -> Cart | None:
        result = await self.db.execute(
            select(Cart)
            .where(Cart.organization_id == self.organization_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self) -> Cart:
        cart = await self._load()
        if cart:
            return cart

        self.db.add(Cart(organization_id=self.organization_id))
        try:
            await self.db.commit()
        except IntegrityError:
            # Created concurrently by another request
            await self.db.rollback()
        cart = await self._load()
        logger.info("Cart created", cart_id=str(cart.id), org_id=str(self.organization_id))
        return cart

    async def add_item(self, data: CartItemAdd) -> Cart:
        """Add a product; an existing line for the same product is merged."""
        product = await CatalogService(self.db).get_product(data.product_id)
        if product.organization_id == self.organization_id:
            raise ValidationError("Cannot buy your own products")

        cart = await self.get_or_create()
        item = next((i for i in cart.items if i.product_id == product.id), None)
        if item:
            item.quantity += data.quantity
        else:
            cart.items.append(
                CartItem(
                    product_id=product.id,
                    product=product,
                    quantity=data.quantity,
                    unit_price_snapshot_cents=product.price_cents,
                )
            )
        await self.db.commit()

        logger.info(
            "Cart item added",
            cart_id=str(cart.id),
            product_id=str(product.id),
            quantity=data.quantity,
        )
        return await self._load()

    async def _get_item(self, cart: Cart, item_id: uuid.UUID) -> CartItem:
        item = next((i for i in cart.items if i.id == item_id), None)
        if not item:
            raise NotFoundError("CartItem", item_id)
        return item

    async def update_item(self, item_id: uuid.UUID, data: CartItemUpdate) -> Cart:
        cart = await self.get_or_create()
        item = await self._get_item(cart, item_id)
        if data.quantity == 0:
            cart.items.remove(item)
        else:
            item.quantity = data.quantity
        await self.db.commit()
        return await self._load()

    async def remove_item(self, item_id: uuid.UUID) -> Cart:
        cart = await self.get_or_create()
        item = await self._get_item(cart, item_id)
        cart.items.remove(item)
        await self.db.commit()
        return await self._load()

    async def checkout(self, data: CheckoutRequest) -> list[Order]:
        """Turn the cart into one PENDING order per seller and empty it."""
        cart = await self.get_or_create()
        if not cart.items:
            raise ValidationError("Cart is empty")

        inactive = [i.product.sku_code for i in cart.items if not i.product.is_active]
        if inactive:
            raise ValidationError(
                "Some products are no longer available",
                details={"sku_codes": inactive},
            )

        shipping_address = data.shipping_address
        if data.shipping_address_id is not None:
            address = await AddressService(self.db, self.organization_id).get_address(
                data.shipping_address_id
            )
            if address.type != AddressType.SHIPPING.value:
                raise ValidationError(
                    "Checkout needs a shipping address",
                    details={"shipping_address_id": str(address.id)},
                )
            shipping_address = address.as_shipping_address()

        by_seller: dict[uuid.UUID, list[CartItem]] = defaultdict(list)
        for item in cart.items:
            by_seller[item.product.organization_id].append(item)

        orders: list[Order] = []
        for seller_org_id, items in by_seller.items():
            lines = [
                OrderLine(
                    product_id=item.product_id,
                    sku_code=item.product.sku_code,
                    name=item.product.name,
                    quantity=item.quantity,
                    unit_price_snapshot_cents=item.unit_price_snapshot_cents,
                    line_total_cents=item.line_total_cents,
                )
                for item in items
            ]
            subtotal = sum(line.line_total_cents for line in lines)
            order = Order(
                order_number=generate_order_number(),
                buyer_org_id=self.organization_id,
                seller_org_id=seller_org_id,
                created_by_user_id=self.user_id,
                status=OrderStatus.PENDING.value,
                currency=items[0].product.currency,
                subtotal_cents=subtotal,
                total_cents=subtotal,
                shipping_address=shipping_address,
                notes=data.notes,
                lines=lines,
            )
            self.db.add(order)
            orders.append(order)

        cart.items.clear()
        await self.db.commit()

        record_orders_created(len(orders))
        logger.info(
            "Checkout completed",
            cart_id=str(cart.id),
            orders=[o.order_number for o in orders],
        )
        return orders


class OrderService:
    """Orders seen from the active organization, as buyer or seller."""

    def __init__(
        self,
        db: AsyncSession,
        organization_id: uuid.UUID,
        user_id: uuid.UUID | None = None,
    ):
        self.db = db
        self.organization_id = organization_id
        self.user_id = user_id

    async def list_orders(
        self,
        role: OrderRole = "buyer",
        status: OrderStatus | None = None,
    ) -> list[Order]:
        column = Order.buyer_org_id if role == "buyer" else Order.seller_org_id
        query = select(Order).where(column == self.organization_id)
        if status:
            query = query.where(Order.status == status.value)
        result = await self.db.execute(query.order_by(Order.created_at.desc()))
        return list(result.scalars().all())

    async def get_order(self, order_id: uuid.UUID) -> Order:
        """Orders of other organizations are reported as missing."""
        result = await self.db.execute(
            select(Order).where(
                Order.id == order_id,
                or_(
                    Order.buyer_org_id == self.organization_id,
                    Order.seller_org_id == self.organization_id,
                ),
            )
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order", order_id)
        return order

    async def update_status(self, order_id: uuid.UUID, new_status: OrderStatus) -> Order:
        """
        The seller moves the order along; the buyer may only cancel
        while it is still PENDING.
        """
        order = await self.get_order(order_id)
        is_seller = order.seller_org_id == self.organization_id

        if not is_seller:
            buyer_cancel = (
                new_status == OrderStatus.CANCELLED
                and order.status == OrderStatus.PENDING.value
            )
            if not buyer_cancel:
                raise ForbiddenError("Only the seller can change this order's status")

        if new_status.value not in ORDER_TRANSITIONS.get(order.status, frozenset()):
            raise InvalidStateError("Order", order.status, f"move to {new_status.value}")

        previous = order.status
        order.status = new_status.value
        await self.db.commit()

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            from_status=previous,
            to_status=order.status,
        )
        return order

    # ============== Messages ==============

    async def list_messages(self, order_id: uuid.UUID) -> list[OrderMessage]:
        order = await self.get_order(order_id)
        result = await self.db.execute(
            select(OrderMessage)
            .where(OrderMessage.order_id == order.id)
            .order_by(OrderMessage.created_at)
        )
        return list(result.scalars().all())

    async def post_message(self, order_id: uuid.UUID, data: OrderMessageCreate) -> OrderMessage:
        order = await self.get_order(order_id)
        message = OrderMessage(
            order_id=order.id,
            sender_user_id=self.user_id,
            sender_org_id=self.organization_id,
            body=data.body,
        )
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        logger.info("Order message posted", order_id=str(order.id), message_id=str(message.id))
        return message

    async def mark_messages_read(self, order_id: uuid.UUID) -> int:
        """Mark the counterpart's messages as read; returns how many changed."""
        order = await self.get_order(order_id)
        result = await self.db.execute(
            update(OrderMessage)
            .where(
                OrderMessage.order_id == order.id,
                OrderMessage.sender_org_id != self.organization_id,
                OrderMessage.is_read.is_(False),
            )
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount


class WishlistService:
    def __init__(self, db: AsyncSession, organization_id: uuid.UUID):
        self.db = db
        self.organization_id = organization_id

    async def list_items(self) -> list[WishlistItem]:
        result = await self.db.execute(
            select(WishlistItem)
            .where(WishlistItem.organization_id == self.organization_id)
            .order_by(WishlistItem.created_at.desc())
        )
        return list(result.scalars().all())

    async def add_item(self, data: WishlistItemAdd) -> WishlistItem:
        product = await CatalogService(self.db).get_product(data.product_id)

        existing = await self.db.execute(
            select(WishlistItem.id).where(
                WishlistItem.organization_id == self.organization_id,
                WishlistItem.product_id == product.id,
            )
        )
        if existing.scalar_one_or_none():
            raise ConflictError("Product is already in the wishlist")

        item = WishlistItem(
            organization_id=self.organization_id,
            product_id=product.id,
            product=product,
            note=data.note,
        )
        self.db.add(item)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Product is already in the wishlist")
        logger.info("Wishlist item added", product_id=str(product.id))
        return item

    async def remove_item(self, item_id: uuid.UUID) -> None:
        result = await self.db.execute(
            select(WishlistItem).where(
                WishlistItem.id == item_id,
                WishlistItem.organization_id == self.organization_id,
            )
        )
        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundError("WishlistItem", item_id)
        await self.db.delete(item)
        await self.db.commit()


class AddressService:
    """Saved addresses of one organization."""

    def __init__(self, db: AsyncSession, organization_id: uuid.UUID):
        self.db = db
        self.organization_id = organization_id

    async def list_addresses(self, address_type: AddressType | None = None) -> list[Address]:
        query = select(Address).where(Address.organization_id == self.organization_id)
        if address_type:
            query = query.where(Address.type == address_type.value)
        result = await self.db.execute(
            query.order_by(Address.is_default.desc(), Address.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_address(self, address_id: uuid.UUID) -> Address:
        result = await self.db.execute(
            select(Address).where(
                Address.id == address_id,
                Address.organization_id == self.organization_id,
            )
        )
        address = result.scalar_one_or_none()
        if not address:
            raise NotFoundError("Address", address_id)
        return address

    async def _clear_default(self, address_type: str, keep_id: uuid.UUID | None = None) -> None:
        query = update(Address).where(
            Address.organization_id == self.organization_id,
            Address.type == address_type,
            Address.is_default.is_(True),
        )
        if keep_id is not None:
            query = query.where(Address.id != keep_id)
        await self.db.execute(query.values(is_default=False))

    async def create_address(self, data: AddressCreate) -> Address:
        if data.is_default:
            await self._clear_default(data.type.value)

        address = Address(organization_id=self.organization_id, **data.model_dump(mode="json"))
        self.db.add(address)
        await self.db.commit()
        await self.db.refresh(address)
        logger.info("Address created", address_id=str(address.id), type=address.type)
        return address

    async def update_address(self, address_id: uuid.UUID, data: AddressUpdate) -> Address:
        address = await self.get_address(address_id)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("is_default"):
            await self._clear_default(address.type, keep_id=address.id)

        for field, value in update_data.items():
            setattr(address, field, value)
        await self.db.commit()
        await self.db.refresh(address)
        return address

    async def delete_address(self, address_id: uuid.UUID) -> None:
        address = await self.get_address(address_id)
        await self.db.delete(address)
        await self.db.commit()
        logger.info("Address deleted", address_id=str(address_id))
