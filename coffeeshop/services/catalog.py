"""
Catalog Service

Read-only product and category queries plus substring search.
"""

import logging
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coffeeshop.core.exceptions import NotFoundError, ValidationError
from coffeeshop.models import Category, Product

logger = logging.getLogger(__name__)

SEARCH_PRODUCT_LIMIT = 10
SEARCH_CATEGORY_LIMIT = 5


def serialize_category(category: Category) -> dict[str, Any]:
    return {"id": category.id, "name": category.name, "description": category.description}


def serialize_product(product: Product) -> dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "full_description": product.full_description,
        "price": product.price,
        "image": product.image,
        "rating": product.rating or 0.0,
        "reviews_count": product.reviews_count or 0,
        "category_id": product.category_id,
        "category_name": product.category.name if product.category else None,
        "sizes": [
            {"size": s.size, "price_modifier": s.price_modifier}
            for s in product.sizes
        ],
    }


class CatalogService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _products(self):
        return select(Product).options(
            selectinload(Product.category),
            selectinload(Product.sizes),
        )

    async def list_products(self) -> list[dict[str, Any]]:
        result = await self.db.execute(
            self._products().order_by(Product.created_at.desc(), Product.id.desc())
        )
        return [serialize_product(p) for p in result.scalars().all()]

    async def get_product(self, product_id: int) -> dict[str, Any]:
        result = await self.db.execute(self._products().where(Product.id == product_id))
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundError("Product not found")
        return serialize_product(product)

    async def list_products_by_category(self, category_id: int) -> list[dict[str, Any]]:
        result = await self.db.execute(
            self._products()
            .where(Product.category_id == category_id)
            .order_by(Product.created_at.desc(), Product.id.desc())
        )
        return [serialize_product(p) for p in result.scalars().all()]

    async def list_categories(self) -> list[dict[str, Any]]:
        result = await self.db.execute(select(Category).order_by(Category.name))
        return [serialize_category(c) for c in result.scalars().all()]

    async def search(self, query: str) -> dict[str, list]:
        """
        Case-insensitive substring search.

        Products match on name or description, categories on name.

        Raises:
            ValidationError: If the query is empty
        """
        q = (query or "").strip()
        if not q:
            raise ValidationError("Search query is required")

        pattern = f"%{q.lower()}%"
        products = await self.db.execute(
            self._products()
            .where(or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.description).like(pattern),
            ))
            .order_by(Product.id)
            .limit(SEARCH_PRODUCT_LIMIT)
        )
        categories = await self.db.execute(
            select(Category)
            .where(func.lower(Category.name).like(pattern))
            .order_by(Category.name)
            .limit(SEARCH_CATEGORY_LIMIT)
        )

        found_products = [serialize_product(p) for p in products.scalars().all()]
        found_categories = [serialize_category(c) for c in categories.scalars().all()]
        logger.info(
            f"Search {q!r}: {len(found_products)} product(s), {len(found_categories)} categories"
        )
        return {"products": found_products, "categories": found_categories}
