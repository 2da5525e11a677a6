"""
Python client for the coffee shop API.
"""

from coffeeshop.client.api import ApiError, CoffeeShopClient, SessionExpiredError
from coffeeshop.client.state import ClientState, LoginRequiredError
from coffeeshop.client.storage import LocalStore

__all__ = [
    "ApiError",
    "ClientState",
    "CoffeeShopClient",
    "LocalStore",
    "LoginRequiredError",
    "SessionExpiredError",
]
