"""
REST Client

Async wrapper over the ``/api`` routes using httpx. One method per endpoint;
the bearer token is attached when set.

Errors:
    - Any non-2xx answer raises ``ApiError`` carrying the server message.
    - A 401 on a request that carried a token clears the token, calls
      ``on_session_expired`` and raises ``SessionExpiredError``.
    - Only registration is retried (transport errors and 5xx), up to
      ``REGISTER_ATTEMPTS`` times with a linear backoff.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000/api"
REGISTER_ATTEMPTS = 3


class ApiError(Exception):
    """Non-2xx answer from the backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SessionExpiredError(ApiError):
    """The stored token was rejected; the user must log in again."""


class CoffeeShopClient:
    """
    HTTP client for the coffee shop backend.

    Args:
        base_url: API root, including the ``/api`` prefix
        token: Bearer token from a previous login
        timeout: Request timeout in seconds
        transport: Custom httpx transport (tests mount the ASGI app here)
        retry_delay: Base delay in seconds between registration attempts
        on_session_expired: Called after a 401 cleared the token
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_delay: float = 1.0,
        on_session_expired: Optional[Callable[[], Any]] = None,
    ):
        self.token = token
        self.retry_delay = retry_delay
        self.on_session_expired = on_session_expired
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "CoffeeShopClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def _headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        authenticated: bool = True,
    ) -> Any:
        headers = self._headers() if authenticated else {}
        sent_token = bool(headers)
        response = await self._http.request(
            method, path, json=json, params=params, headers=headers
        )

        if response.status_code == 401 and sent_token:
            logger.info("Session rejected by the server, clearing token")
            self.token = None
            if self.on_session_expired is not None:
                result = self.on_session_expired()
                if asyncio.iscoroutine(result):
                    await result
            raise SessionExpiredError(_error_message(response), 401)

        if response.is_error:
            raise ApiError(_error_message(response), response.status_code)

        if not response.content:
            return None
        return response.json()

    # =========================================================================
    # AUTH
    # =========================================================================

    async def register(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> dict:
        """
        Create an account and keep the returned token.

        Transport failures and 5xx answers are retried; 4xx answers (e.g. a
        duplicate email) fail immediately.
        """
        payload = {
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "password": password,
            "phone": phone,
            "address": address,
        }

        for attempt in range(1, REGISTER_ATTEMPTS + 1):
            try:
                data = await self._request(
                    "POST", "/auth/register", json=payload, authenticated=False
                )
            except httpx.TransportError as e:
                if attempt == REGISTER_ATTEMPTS:
                    raise ApiError(f"Registration failed: {e}") from e
                logger.warning(f"Registration attempt {attempt} failed: {e}")
            except ApiError as e:
                if e.status_code is None or e.status_code < 500 or attempt == REGISTER_ATTEMPTS:
                    raise
                logger.warning(f"Registration attempt {attempt} failed: {e.message}")
            else:
                self.token = data["token"]
                return data

            await asyncio.sleep(self.retry_delay * attempt)

        raise ApiError("Registration failed")  # unreachable

    async def login(self, email: str, password: str) -> dict:
        data = await self._request(
            "POST", "/auth/login", json={"email": email, "password": password}, authenticated=False
        )
        self.token = data["token"]
        return data

    async def request_reset_otp(self, email: str) -> dict:
        return await self._request(
            "POST", "/auth/request-reset-otp", json={"email": email}, authenticated=False
        )

    async def verify_reset_otp(self, email: str, otp: str) -> dict:
        return await self._request(
            "POST", "/auth/verify-reset-otp", json={"email": email, "otp": otp}, authenticated=False
        )

    async def reset_password(self, email: str, otp: str, new_password: str) -> dict:
        return await self._request(
            "POST",
            "/auth/reset-password",
            json={"email": email, "otp": otp, "new_password": new_password},
            authenticated=False,
        )

    async def get_profile(self) -> dict:
        return await self._request("GET", "/auth/profile")

    async def update_profile(
        self,
        first_name: str,
        last_name: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> dict:
        return await self._request(
            "PUT",
            "/auth/profile",
            json={
                "first_name": first_name,
                "last_name": last_name,
                "phone": phone,
                "address": address,
            },
        )

    # =========================================================================
    # CATALOG
    # =========================================================================

    async def list_products(self) -> list[dict]:
        return await self._request("GET", "/products")

    async def get_product(self, product_id: int) -> dict:
        return await self._request("GET", f"/products/{product_id}")

    async def list_products_by_category(self, category_id: int) -> list[dict]:
        return await self._request("GET", f"/products/category/{category_id}")

    async def list_categories(self) -> list[dict]:
        return await self._request("GET", "/products/categories")

    async def search(self, query: str) -> dict:
        return await self._request("GET", "/search", params={"q": query})

    # =========================================================================
    # CART
    # =========================================================================

    async def get_cart(self) -> list[dict]:
        return await self._request("GET", "/cart")

    async def add_to_cart(self, product_id: int, quantity: int, size: str) -> str:
        data = await self._request(
            "POST",
            "/cart",
            json={"product_id": product_id, "quantity": quantity, "size": size},
        )
        return data["id"]

    async def update_cart_item(self, item_id: str, quantity: int) -> dict:
        return await self._request("PUT", f"/cart/{item_id}", json={"quantity": quantity})

    async def remove_cart_item(self, item_id: str) -> dict:
        return await self._request("DELETE", f"/cart/{item_id}")

    async def clear_cart(self) -> dict:
        return await self._request("DELETE", "/cart/clear/all")

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def create_order(
        self,
        items: list[dict],
        total_amount: float,
        delivery_method: str = "deliver",
        payment_method: Optional[str] = None,
        address: Optional[str] = None,
        note: Optional[str] = None,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        status: Optional[str] = None,
    ) -> str:
        """Place an order; returns its id."""
        payload = {
            "items": items,
            "total_amount": total_amount,
            "delivery_method": delivery_method,
            "payment_method": payment_method,
            "address": address,
            "note": note,
            "customer_name": customer_name,
            "customer_phone": customer_phone,
            "status": status,
        }
        data = await self._request(
            "POST", "/orders", json={k: v for k, v in payload.items() if v is not None}
        )
        return data["order_id"]

    async def get_orders(self) -> list[dict]:
        return await self._request("GET", "/orders")

    async def update_order_status(self, order_id: str, status: str) -> dict:
        return await self._request("PUT", f"/orders/{order_id}/status", json={"status": status})

    async def confirm_transfer(self, order_id: str) -> dict:
        return await self._request("PUT", f"/orders/{order_id}/confirm-transfer")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}"
