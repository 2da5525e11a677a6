"""
Cart Service

Per-user cart lines keyed by (product, size).

Adding a line that already exists increments its quantity in a single
INSERT ... ON CONFLICT DO UPDATE statement against the
``uq_cart_items_user_product_size`` constraint, so two concurrent adds can
never create two rows. Dialects without ON CONFLICT support fall back to a
``SELECT ... FOR UPDATE`` read-then-write.
"""

import logging
import uuid
from typing import Any, Optional

from sqlalchemy import and_, delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from coffeeshop.core import pricing
from coffeeshop.core.exceptions import NotFoundError, ValidationError
from coffeeshop.models import CartItem, Product, ProductSize

logger = logging.getLogger(__name__)

UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class CartService:
    """
    Cart operations for one database session.

    ``update_item`` and ``remove_item`` do not check ownership; callers
    resolve the item with ``get_owned_item`` first.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_cart(self, user_id: int) -> list[dict[str, Any]]:
        """Cart lines joined with product and size details, newest first."""
        stmt = (
            select(
                CartItem.id,
                CartItem.product_id,
                CartItem.quantity,
                CartItem.size,
                CartItem.created_at,
                Product.name,
                Product.description,
                Product.full_description,
                Product.price,
                Product.image,
                Product.category_id,
                Product.rating,
                Product.reviews_count,
                ProductSize.price_modifier,
            )
            .join(Product, CartItem.product_id == Product.id)
            .outerjoin(
                ProductSize,
                and_(
                    ProductSize.product_id == CartItem.product_id,
                    ProductSize.size == CartItem.size,
                ),
            )
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.created_at.desc(), CartItem.id)
        )
        result = await self.db.execute(stmt)

        lines = []
        for row in result.all():
            modifier = row.price_modifier or 0.0
            lines.append({
                "id": row.id,
                "product_id": row.product_id,
                "quantity": row.quantity,
                "size": row.size,
                "created_at": row.created_at,
                "product_name": row.name,
                "product_description": row.description,
                "product_full_description": row.full_description,
                "product_price": row.price,
                "product_image": row.image,
                "product_category_id": row.category_id,
                "product_rating": row.rating or 0.0,
                "product_reviews": row.reviews_count or 0,
                "size_price_modifier": modifier,
                "unit_price": pricing.unit_price(row.price, modifier),
                "line_total": pricing.line_total(row.price, row.quantity, modifier),
            })
        return lines

    async def get_owned_item(self, item_id: str, user_id: int) -> CartItem:
        """
        Resolve a cart line belonging to ``user_id``.

        Raises:
            NotFoundError: If the line does not exist or belongs to someone else
        """
        result = await self.db.execute(
            select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError("Cart item not found")
        return item

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def add_to_cart(
        self,
        user_id: int,
        product_id: Optional[int],
        quantity: Optional[int],
        size: Optional[str],
    ) -> str:
        """
        Add ``quantity`` of a product in a size, merging with an existing line.

        Returns:
            Id of the inserted or incremented cart line

        Raises:
            ValidationError: If product, quantity or size is missing
            NotFoundError: If the product does not exist
        """
        if not product_id or not quantity or not size:
            raise ValidationError("Missing required fields")
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        product = await self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found")

        dialect = self.db.get_bind().dialect.name
        insert = UPSERT_DIALECTS.get(dialect)
        if insert is not None:
            item_id = await self._upsert(insert, user_id, product_id, quantity, size)
        else:
            item_id = await self._locked_increment(user_id, product_id, quantity, size)

        await self.db.commit()
        logger.info(f"Cart {user_id}: +{quantity} x product #{product_id} ({size}) -> line {item_id}")
        return item_id

    async def _upsert(self, insert, user_id: int, product_id: int, quantity: int, size: str) -> str:
        stmt = insert(CartItem).values(
            id=str(uuid.uuid4()),
            user_id=user_id,
            product_id=product_id,
            size=size,
            quantity=quantity,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "product_id", "size"],
            set_={"quantity": CartItem.quantity + stmt.excluded.quantity},
        ).returning(CartItem.id)

        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def _locked_increment(self, user_id: int, product_id: int, quantity: int, size: str) -> str:
        result = await self.db.execute(
            select(CartItem)
            .where(
                CartItem.user_id == user_id,
                CartItem.product_id == product_id,
                CartItem.size == size,
            )
            .with_for_update()
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            existing.quantity += quantity
            return existing.id

        item = CartItem(user_id=user_id, product_id=product_id, size=size, quantity=quantity)
        self.db.add(item)
        await self.db.flush()
        return item.id

    async def update_item(self, item_id: str, quantity: Optional[int]) -> None:
        """Overwrite the quantity of a cart line."""
        if not quantity:
            raise ValidationError("Missing quantity")
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        await self.db.execute(
            update(CartItem).where(CartItem.id == item_id).values(quantity=quantity)
        )
        await self.db.commit()

    async def remove_item(self, item_id: str) -> None:
        await self.db.execute(delete(CartItem).where(CartItem.id == item_id))
        await self.db.commit()

    async def clear_cart(self, user_id: int) -> None:
        result = await self.db.execute(delete(CartItem).where(CartItem.user_id == user_id))
        await self.db.commit()
        logger.info(f"Cart {user_id}: cleared {result.rowcount} line(s)")
