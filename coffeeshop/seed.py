"""
Demo Catalog

Categories, drinks and size modifiers used for local development and the
simulation script. ``seed_catalog`` only writes when no category exists.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coffeeshop.models import Category, Product, ProductSize

logger = logging.getLogger(__name__)

STANDARD_SIZES = {"S": 0, "M": 5000, "L": 10000}

CATALOG = {
    "Coffee": {
        "description": "Espresso-based and Vietnamese drip coffee",
        "products": [
            {"name": "Ca Phe Sua Da", "price": 29000, "description": "Iced coffee with condensed milk", "image": "ca-phe-sua-da.jpg", "rating": 4.8, "reviews_count": 230},
            {"name": "Bac Xiu", "price": 35000, "description": "Milk-forward iced coffee", "image": "bac-xiu.jpg", "rating": 4.6, "reviews_count": 120},
            {"name": "Cappuccino", "price": 50000, "description": "Espresso with steamed milk foam", "image": "cappuccino.jpg", "rating": 4.7, "reviews_count": 310},
            {"name": "Caramel Macchiato", "price": 55000, "description": "Vanilla, milk, espresso and caramel", "image": "caramel-macchiato.jpg", "rating": 4.5, "reviews_count": 98},
        ],
    },
    "Tea": {
        "description": "Fruit teas and milk teas",
        "products": [
            {"name": "Peach Orange Lemongrass Tea", "price": 45000, "description": "Peach tea with orange and lemongrass", "image": "tra-dao.jpg", "rating": 4.7, "reviews_count": 205},
            {"name": "Matcha Latte", "price": 55000, "description": "Japanese matcha with milk", "image": "matcha-latte.jpg", "rating": 4.4, "reviews_count": 76},
        ],
    },
    "Freeze": {
        "description": "Blended ice drinks",
        "products": [
            {"name": "Cookies & Cream Freeze", "price": 60000, "description": "Blended cookies with cream", "image": "cookies-freeze.jpg", "rating": 4.6, "reviews_count": 88},
            {"name": "Chocolate Freeze", "price": 70000, "description": "Blended chocolate with whipped cream", "image": "choco-freeze.jpg", "rating": 4.3, "reviews_count": 54},
        ],
    },
}


async def seed_catalog(db: AsyncSession) -> int:
    """
    Insert the demo catalog into an empty database.

    Returns:
        Number of products created (0 if the catalog already had data)
    """
    existing = await db.execute(select(func.count(Category.id)))
    if existing.scalar():
        logger.info("Catalog already seeded")
        return 0

    created = 0
    for category_name, data in CATALOG.items():
        category = Category(name=category_name, description=data["description"])
        db.add(category)
        for entry in data["products"]:
            product = Product(
                category=category,
                full_description=entry["description"],
                **entry,
            )
            product.sizes = [
                ProductSize(size=size, price_modifier=modifier)
                for size, modifier in STANDARD_SIZES.items()
            ]
            db.add(product)
            created += 1

    await db.commit()
    logger.info(f"Seeded {len(CATALOG)} categories and {created} products")
    return created
