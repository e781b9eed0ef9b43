"""
Typed client for the shop backend.

Every request carries the session's bearer token when one is present, except
login and register. Any failure (HTTP status >= 400 or a transport error)
surfaces as ``ApiError``; there is no retry and no substituted data.
"""
import logging
from typing import Callable, List, Optional

import httpx

from schemas import (
    AuthResponse,
    Order,
    OrderActionRequest,
    OrderCreate,
    OrderStatus,
    PaymentIntent,
    PaymentVerification,
    Product,
    User,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: Optional[int], detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code or 'network'}: {detail}")

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)


class StoreApi:
    def __init__(
        self,
        base_url: str = "",
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ):
        if client is None:
            kwargs = {"timeout": timeout} if timeout is not None else {}
            client = httpx.Client(base_url=base_url, headers={"Content-Type": "application/json"}, **kwargs)
        self.client = client
        self.token_provider = token_provider

    def with_token(self, token_provider: Callable[[], Optional[str]]) -> "StoreApi":
        return StoreApi(client=self.client, token_provider=token_provider)

    def _request(self, method: str, path: str, auth: bool = True, **kwargs):
        headers = kwargs.pop("headers", {})
        token = self.token_provider() if (auth and self.token_provider) else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            resp = self.client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(None, str(e) or e.__class__.__name__) from e
        if resp.status_code >= 400:
            try:
                data = resp.json()
                detail = data.get("detail", resp.text) if isinstance(data, dict) else data
            except ValueError:
                detail = resp.text
            logger.debug("%s %s -> %s %s", method, path, resp.status_code, detail)
            raise ApiError(resp.status_code, str(detail))
        if not resp.content:
            return None
        return resp.json()

    # ----------------------- Products -----------------------
    def list_products(self) -> List[Product]:
        return [Product.model_validate(p) for p in self._request("GET", "/products")]

    def search_products(self, q: str) -> List[Product]:
        return [Product.model_validate(p) for p in self._request("GET", "/products/search", params={"q": q})]

    def get_product(self, product_id: int) -> Product:
        return Product.model_validate(self._request("GET", f"/products/{product_id}"))

    def list_categories(self) -> List[str]:
        return list(self._request("GET", "/products/categories"))

    # ----------------------- Auth -----------------------
    def login(self, email: str, password: str) -> AuthResponse:
        data = self._request("POST", "/auth/login", auth=False, json={"email": email, "password": password})
        return AuthResponse.model_validate(data)

    def register(self, name: str, email: str, password: str, phone: Optional[str] = None) -> AuthResponse:
        body = {"name": name, "email": email, "password": password, "phone": phone}
        return AuthResponse.model_validate(self._request("POST", "/auth/register", auth=False, json=body))

    def profile(self) -> User:
        return User.model_validate(self._request("GET", "/auth/me"))

    # ----------------------- Orders -----------------------
    def create_order(self, order: OrderCreate) -> Order:
        return Order.model_validate(self._request("POST", "/orders", json=order.model_dump(mode="json")))

    def my_orders(self) -> List[Order]:
        return [Order.model_validate(o) for o in self._request("GET", "/orders")]

    def get_order(self, order_id: str) -> Order:
        return Order.model_validate(self._request("GET", f"/orders/{order_id}"))

    def request_order_action(self, order_id: str, request: OrderActionRequest) -> Order:
        data = self._request("POST", f"/orders/{order_id}/actions", json=request.model_dump(mode="json"))
        return Order.model_validate(data)

    # ----------------------- Payments -----------------------
    def create_payment_intent(self, order_id: str) -> PaymentIntent:
        data = self._request("POST", "/payments/create", params={"order_id": order_id})
        return PaymentIntent.model_validate(data)

    def verify_payment(self, verification: PaymentVerification) -> Order:
        data = self._request("POST", "/payments/verify", json=verification.model_dump())
        return Order.model_validate(data)

    # ----------------------- Admin -----------------------
    def admin_dashboard(self) -> dict:
        return self._request("GET", "/admin/dashboard")

    def admin_orders(self) -> List[Order]:
        return [Order.model_validate(o) for o in self._request("GET", "/admin/orders")]

    def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        data = self._request("PUT", f"/admin/orders/{order_id}/status", params={"status": status.value})
        return Order.model_validate(data)
