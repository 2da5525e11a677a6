"""
Catalog Routes (public)
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from coffeeshop.database import get_db
from coffeeshop.schemas import CategoryResponse, ProductResponse, SearchResponse
from coffeeshop.services import CatalogService

router = APIRouter(prefix="/products", tags=["Products"])
search_router = APIRouter(prefix="/search", tags=["Search"])


@router.get("", response_model=list[ProductResponse], summary="List Products")
async def list_products(db: AsyncSession = Depends(get_db)) -> list[dict]:
    return await CatalogService(db).list_products()


# Static paths are declared before /{product_id}
@router.get("/categories", response_model=list[CategoryResponse], summary="List Categories")
async def list_categories(db: AsyncSession = Depends(get_db)) -> list[dict]:
    return await CatalogService(db).list_categories()


@router.get(
    "/category/{category_id}",
    response_model=list[ProductResponse],
    summary="List Products In Category",
)
async def list_products_by_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    return await CatalogService(db).list_products_by_category(category_id)


@router.get("/{product_id}", response_model=ProductResponse, summary="Get Product")
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)) -> dict:
    return await CatalogService(db).get_product(product_id)


@search_router.get("", response_model=SearchResponse, summary="Search Catalog")
async def search(
    q: str = Query("", description="Text to look for in product and category names"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await CatalogService(db).search(q)
