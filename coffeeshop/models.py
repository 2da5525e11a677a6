"""
SQLAlchemy Database Models

Users, catalog (categories, products, sizes), cart items, orders and
order items.

Order status and payment method are stored as small integer codes that are
translated through fixed lookup tables (see ``STATUS_CODES`` and
``PAYMENT_METHOD_CODES`` in ``coffeeshop.core.enums``).
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from coffeeshop.core.enums import (  # noqa: F401 (re-exported)
    DEFAULT_PAYMENT_METHOD,
    DEFAULT_STATUS,
    PAYMENT_METHOD_CODES,
    STATUS_CODES,
    DeliveryMethod,
    OrderStatus,
    PaymentMethod,
    parse_payment_method,
    parse_status,
    payment_method_from_code,
    payment_method_to_code,
    status_from_code,
    status_to_code,
)
from coffeeshop.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# =============================================================================
# USERS
# =============================================================================

class User(Base):
    """Registered customer account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    address = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)

    # Password reset
    reset_otp = Column(String(6), nullable=True)
    reset_otp_expires = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<User #{self.id} - {self.email}>"


# =============================================================================
# CATALOG
# =============================================================================

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category #{self.id} - {self.name}>"


class Product(Base):
    """Catalog entry. There is no stock tracking."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    description = Column(String(500), nullable=True)
    full_description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    image = Column(String(500), nullable=True)
    rating = Column(Float, nullable=False, default=0.0)
    reviews_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    category = relationship("Category", back_populates="products")
    sizes = relationship(
        "ProductSize",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductSize.price_modifier",
    )

    def __repr__(self):
        return f"<Product #{self.id} - {self.name}>"


class ProductSize(Base):
    """Size option; ``price_modifier`` is added to the base price."""
    __tablename__ = "product_sizes"
    __table_args__ = (
        UniqueConstraint("product_id", "size", name="uq_product_sizes_product_size"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    size = Column(String(10), nullable=False)
    price_modifier = Column(Float, nullable=False, default=0.0)

    product = relationship("Product", back_populates="sizes")


# =============================================================================
# CART
# =============================================================================

class CartItem(Base):
    """
    Cart line owned by one user.

    At most one row per (user, product, size); adding again increments
    ``quantity``.
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", "size", name="uq_cart_items_user_product_size"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    size = Column(String(10), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    product = relationship("Product")

    def __repr__(self):
        return f"<CartItem {self.id} - product #{self.product_id} {self.size} x{self.quantity}>"


# =============================================================================
# ORDERS
# =============================================================================

class Order(Base):
    """
    Customer order.

    ``status_id`` and ``payment_method_id`` hold lookup codes; use the
    ``status`` and ``payment_method`` properties for the enum values.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # =========================================================================
    # PRICING & STATUS
    # =========================================================================
    total_amount = Column(Float, nullable=False)
    status_id = Column(
        SmallInteger,
        nullable=False,
        default=STATUS_CODES[DEFAULT_STATUS],
        index=True,
    )

    # =========================================================================
    # DELIVERY
    # =========================================================================
    delivery_method = Column(String(20), nullable=False, default=DeliveryMethod.DELIVER.value)
    delivery_address = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    customer_name = Column(String(200), nullable=True)
    customer_phone = Column(String(20), nullable=True)

    # =========================================================================
    # PAYMENT (user-asserted transfer, never verified)
    # =========================================================================
    payment_method_id = Column(
        SmallInteger,
        nullable=False,
        default=PAYMENT_METHOD_CODES[DEFAULT_PAYMENT_METHOD],
    )
    user_confirmed_transfer = Column(Boolean, nullable=False, default=False)
    user_confirmed_transfer_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
    )

    @property
    def status(self) -> OrderStatus:
        return status_from_code(self.status_id)

    @property
    def payment_method(self) -> PaymentMethod:
        return payment_method_from_code(self.payment_method_id)

    def __repr__(self):
        return f"<Order {self.id} - user #{self.user_id} - {self.status.value}>"


class OrderItem(Base):
    """Order line. ``price`` is the unit price captured when ordering."""
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    size = Column(String(10), nullable=True)
    price = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
