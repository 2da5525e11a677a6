"""
                        Services Module

Business logic behind the HTTP routers. Each service wraps one
AsyncSession.

Services:
    - cart: per-user cart lines with atomic add-or-increment
    - orders: order creation, history, status transitions, transfer confirmation
    - catalog: products, categories, search
    - users: accounts and password reset
    - lifecycle: order status transition rules
    - notifications: email delivery (mock or SendGrid)
"""

from coffeeshop.services.cart import CartService
from coffeeshop.services.catalog import CatalogService
from coffeeshop.services.orders import OrderService
from coffeeshop.services.users import UserService

__all__ = ["CartService", "CatalogService", "OrderService", "UserService"]
