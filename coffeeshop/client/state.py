"""
Client State

Mirrors the remote cart, orders and catalog for one signed-in user, plus the
locally kept favorites. Every change of authentication (login, registration,
restored session) re-synchronizes the remote state; logout drops it.

Cart mutations always go through the API and then refetch the cart, so the
local copy never diverges from the server's merge rules.
"""

import logging
from typing import Optional

from coffeeshop.client.api import CoffeeShopClient, SessionExpiredError
from coffeeshop.client.storage import LocalStore
from coffeeshop.core import pricing
from coffeeshop.core.enums import DeliveryMethod, OrderStatus

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"
FAVORITES_KEY = "favorites"


class LoginRequiredError(Exception):
    """Raised for cart and order actions without a signed-in user."""


class ClientState:
    """
    Local mirror of the shop for one user.

    Attributes:
        user: Signed-in user, or None
        products: Catalog products
        categories: Catalog categories
        cart: Cart lines as returned by the backend
        orders: Order history, newest first
    """

    def __init__(self, client: CoffeeShopClient, store: LocalStore):
        self.client = client
        self.store = store
        self.client.on_session_expired = self._on_session_expired

        self.user: Optional[dict] = None
        self.products: list[dict] = []
        self.categories: list[dict] = []
        self.cart: list[dict] = []
        self.orders: list[dict] = []

    @property
    def is_logged_in(self) -> bool:
        return self.user is not None and self.client.token is not None

    def _require_login(self) -> None:
        if not self.is_logged_in:
            raise LoginRequiredError("Please log in first")

    # =========================================================================
    # SESSION
    # =========================================================================

    async def login(self, email: str, password: str) -> dict:
        data = await self.client.login(email, password)
        await self._start_session(data)
        return self.user

    async def register(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> dict:
        data = await self.client.register(first_name, last_name, email, password, phone, address)
        await self._start_session(data)
        return self.user

    async def restore_session(self) -> bool:
        """
        Resume with the stored token.

        Returns:
            True if the token is still accepted and state was re-synced
        """
        token = self.store.get(TOKEN_KEY)
        if not token:
            return False

        self.client.token = token
        try:
            self.user = await self.client.get_profile()
        except SessionExpiredError:
            logger.info("Stored session expired")
            return False

        self.store.set(USER_KEY, self.user)
        await self.sync()
        return True

    def logout(self) -> None:
        """Forget the session and the remote state. Favorites are kept."""
        self.client.token = None
        self.store.remove(TOKEN_KEY, USER_KEY)
        self._reset()
        logger.info("Logged out")

    async def _start_session(self, data: dict) -> None:
        self.user = data["user"]
        self.store.set(TOKEN_KEY, data["token"])
        self.store.set(USER_KEY, self.user)
        await self.sync()

    def _on_session_expired(self) -> None:
        self.store.remove(TOKEN_KEY, USER_KEY)
        self._reset()

    def _reset(self) -> None:
        self.user = None
        self.cart = []
        self.orders = []

    async def sync(self) -> None:
        """Reload catalog, cart and orders."""
        await self.load_catalog()
        if self.is_logged_in:
            await self.refresh_cart()
            await self.refresh_orders()

    # =========================================================================
    # CATALOG
    # =========================================================================

    async def load_catalog(self) -> None:
        self.products = await self.client.list_products()
        self.categories = await self.client.list_categories()

    def find_product(self, product_id: int) -> Optional[dict]:
        for product in self.products:
            if product["id"] == product_id:
                return product
        return None

    # =========================================================================
    # CART
    # =========================================================================

    async def refresh_cart(self) -> list[dict]:
        self._require_login()
        self.cart = await self.client.get_cart()
        return self.cart

    async def add_to_cart(self, product_id: int, quantity: int, size: str) -> list[dict]:
        self._require_login()
        await self.client.add_to_cart(product_id, quantity, size)
        return await self.refresh_cart()

    async def update_cart_item(self, item_id: str, quantity: int) -> list[dict]:
        self._require_login()
        await self.client.update_cart_item(item_id, quantity)
        return await self.refresh_cart()

    async def remove_from_cart(self, item_id: str) -> list[dict]:
        self._require_login()
        await self.client.remove_cart_item(item_id)
        return await self.refresh_cart()

    async def clear_cart(self) -> None:
        self._require_login()
        await self.client.clear_cart()
        await self.refresh_cart()

    @property
    def cart_total(self) -> float:
        """Subtotal including size modifiers."""
        return pricing.subtotal(
            (line["product_price"], line["quantity"], line.get("size_price_modifier"))
            for line in self.cart
        )

    @property
    def cart_item_count(self) -> int:
        return sum(line["quantity"] for line in self.cart)

    def checkout_summary(
        self,
        delivery_method: str = DeliveryMethod.DELIVER.value,
        discount_applied: bool = False,
    ) -> pricing.PriceBreakdown:
        return pricing.calculate_totals(self.cart_total, delivery_method, discount_applied)

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def refresh_orders(self) -> list[dict]:
        self._require_login()
        self.orders = await self.client.get_orders()
        return self.orders

    def get_order(self, order_id: str) -> Optional[dict]:
        for order in self.orders:
            if order["id"] == order_id:
                return order
        return None

    async def checkout(
        self,
        delivery_method: str = DeliveryMethod.DELIVER.value,
        payment_method: str = "cash",
        address: Optional[str] = None,
        note: Optional[str] = None,
        discount_applied: bool = False,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
    ) -> str:
        """
        Place an order for the whole cart, then empty the cart.

        Returns:
            Id of the new order

        Raises:
            LoginRequiredError: Without a signed-in user
            ValueError: If the cart is empty
        """
        self._require_login()
        await self.refresh_cart()
        if not self.cart:
            raise ValueError("Cart is empty")

        items = [
            {
                "product_id": line["product_id"],
                "quantity": line["quantity"],
                "size": line["size"],
                "price": pricing.unit_price(line["product_price"], line.get("size_price_modifier")),
            }
            for line in self.cart
        ]
        summary = self.checkout_summary(delivery_method, discount_applied)

        order_id = await self.client.create_order(
            items,
            summary.total,
            delivery_method=delivery_method,
            payment_method=payment_method,
            address=address,
            note=note,
            customer_name=customer_name,
            customer_phone=customer_phone,
        )
        logger.info(f"Checked out {len(items)} line(s) as order {order_id}")

        await self.clear_cart()
        await self.refresh_orders()
        return order_id

    async def buy_now(
        self,
        product_id: int,
        quantity: int,
        size: str,
        delivery_method: str = DeliveryMethod.DELIVER.value,
        payment_method: str = "cash",
        address: Optional[str] = None,
        note: Optional[str] = None,
        discount_applied: bool = False,
    ) -> str:
        """Order a single product without touching the cart."""
        self._require_login()
        product = self.find_product(product_id) or await self.client.get_product(product_id)
        modifier = next(
            (s["price_modifier"] for s in product.get("sizes", []) if s["size"] == size),
            0.0,
        )
        summary = pricing.calculate_totals(
            pricing.line_total(product["price"], quantity, modifier),
            delivery_method,
            discount_applied,
        )

        order_id = await self.client.create_order(
            [{
                "product_id": product_id,
                "quantity": quantity,
                "size": size,
                "price": pricing.unit_price(product["price"], modifier),
            }],
            summary.total,
            delivery_method=delivery_method,
            payment_method=payment_method,
            address=address,
            note=note,
        )
        await self.refresh_orders()
        return order_id

    async def update_order_status(self, order_id: str, status: str) -> list[dict]:
        self._require_login()
        await self.client.update_order_status(order_id, status)
        return await self.refresh_orders()

    async def cancel_order(self, order_id: str) -> list[dict]:
        return await self.update_order_status(order_id, OrderStatus.CANCELLED.value)

    async def confirm_transfer(self, order_id: str) -> list[dict]:
        self._require_login()
        await self.client.confirm_transfer(order_id)
        return await self.refresh_orders()

    # =========================================================================
    # FAVORITES (local only)
    # =========================================================================

    @property
    def favorites(self) -> list[int]:
        return list(self.store.get(FAVORITES_KEY, []))

    def is_favorite(self, product_id: int) -> bool:
        return product_id in self.favorites

    def toggle_favorite(self, product_id: int) -> bool:
        """Flip a product in or out of the favorites; returns the new state."""
        favorites = self.favorites
        if product_id in favorites:
            favorites.remove(product_id)
            added = False
        else:
            favorites.append(product_id)
            added = True
        self.store.set(FAVORITES_KEY, favorites)
        return added

    def favorite_products(self) -> list[dict]:
        favorites = set(self.favorites)
        return [p for p in self.products if p["id"] in favorites]
