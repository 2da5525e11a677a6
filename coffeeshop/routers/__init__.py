"""
HTTP routers, mounted under ``/api`` by ``coffeeshop.main``.
"""

from fastapi import APIRouter

from coffeeshop.routers import auth, cart, orders, products

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(products.router)
api_router.include_router(products.search_router)
api_router.include_router(cart.router)
api_router.include_router(orders.router)

__all__ = ["api_router"]
