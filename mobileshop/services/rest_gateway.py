# mobileshop/services/rest_gateway.py
import copy
from decimal import Decimal
from typing import Any, List, Mapping, Optional

import requests
from requests import RequestException

from mobileshop.domain.errors import NotFound, PersistenceError
from mobileshop.domain.models import CartLine, Order, OrderLine, OrderStatus, Product, User
from mobileshop.services.gateway import DataGateway
from mobileshop.utils.logging import get_logger
from mobileshop.utils.retry import http_retry
from mobileshop.utils.settings import GATEWAY_API_KEY, GATEWAY_TIMEOUT, GATEWAY_URL

logger = get_logger(__name__)

_CART_SELECT = "id,user_id,product_id,quantity,product:products(*)"
_ORDER_SELECT = (
    "id,user_id,total_amount,status,created_at,"
    "order_items(order_id,product_id,quantity,price,product:products(name,brand,category))"
)


def _eq(value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return f"eq.{value}"


def _to_order(row: dict) -> Order:
    row = dict(row)
    items = row.pop("order_items", None) or []
    return Order(**row, items=[OrderLine(**i) for i in items])


class RestGateway(DataGateway):
    """
    Hosted backend reached over HTTP: auth under /auth/v1, tables under
    /rest/v1 with PostgREST filters (col=eq.value) and embedded selects.

    Reads, updates and deletes are retried on transport errors; inserts are
    sent once since a retried insert could write twice.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        http: requests.Session | None = None,
    ):
        super().__init__()
        self.base_url = (base_url or GATEWAY_URL).rstrip("/")
        self.api_key = GATEWAY_API_KEY if api_key is None else api_key
        self.timeout = timeout or GATEWAY_TIMEOUT
        self.http = http or requests.Session()
        self._access_token: str | None = None

    def with_token(self, access_token: Optional[str]) -> "RestGateway":
        # shares the HTTP session and auth listeners with the parent
        view = copy.copy(self)
        view._access_token = access_token
        return view

    # =====================================================
    # HTTP
    # =====================================================
    def _headers(self, prefer: str | None = None, token: str | None = None) -> dict:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self._access_token or self.api_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _send(self, method: str, path: str, *, params=None, json=None, prefer=None, token=None):
        url = f"{self.base_url}{path}"
        logger.info(f"RestGateway {method} {url}")
        resp = self.http.request(
            method,
            url,
            params=params,
            json=json,
            headers=self._headers(prefer, token),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp

    @http_retry()
    def _send_with_retry(self, method: str, path: str, **kwargs):
        return self._send(method, path, **kwargs)

    def _call(self, action: str, method: str, path: str, *, retry: bool = True, **kwargs) -> Any:
        sender = self._send_with_retry if retry else self._send
        try:
            resp = sender(method, path, **kwargs)
        except RequestException as e:
            logger.error(f"RestGateway failed to {action}: {e}")
            raise PersistenceError(f"Failed to {action}", {"path": path}) from e

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # =====================================================
    # AUTH
    # =====================================================
    def get_current_user(self, access_token: Optional[str]) -> Optional[User]:
        if not access_token:
            return None
        try:
            resp = self._send_with_retry("GET", "/auth/v1/user", token=access_token)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code in (401, 403):
                return None
            raise PersistenceError("Failed to load session") from e
        except RequestException as e:
            raise PersistenceError("Failed to load session") from e

        data = resp.json()
        return User(id=str(data["id"]), email=data.get("email"))

    def sign_out(self, access_token: str) -> None:
        self._call("sign out", "POST", "/auth/v1/logout", retry=False, token=access_token)
        self._emit_auth_change(access_token, None)

    # =====================================================
    # TABLES
    # =====================================================
    def query_products(self, filters: Optional[Mapping[str, Any]] = None) -> List[Product]:
        params = {"select": "*"}
        for column, value in (filters or {}).items():
            params[column] = _eq(value)
        rows = self._call("load products", "GET", "/rest/v1/products", params=params) or []
        return [Product(**r) for r in rows]

    def query_cart_lines(self, user_id: str) -> List[CartLine]:
        rows = self._call(
            "load cart",
            "GET",
            "/rest/v1/cart_items",
            params={"select": _CART_SELECT, "user_id": _eq(user_id)},
        ) or []
        return [CartLine(**r) for r in rows]

    def insert_cart_line(self, user_id: str, product_id: str, quantity: int) -> CartLine:
        rows = self._call(
            "add to cart",
            "POST",
            "/rest/v1/cart_items",
            retry=False,
            params={"select": _CART_SELECT},
            json={"user_id": user_id, "product_id": product_id, "quantity": quantity},
            prefer="return=representation",
        )
        if not rows:
            raise PersistenceError("Failed to add to cart", {"product_id": product_id})
        return CartLine(**rows[0])

    def update_cart_line(self, line_id: str, quantity: int) -> CartLine:
        rows = self._call(
            "update quantity",
            "PATCH",
            "/rest/v1/cart_items",
            params={"select": _CART_SELECT, "id": _eq(line_id)},
            json={"quantity": quantity},
            prefer="return=representation",
        )
        if not rows:
            raise NotFound("Cart line", line_id)
        return CartLine(**rows[0])

    def delete_cart_line(self, line_id: str) -> bool:
        rows = self._call(
            "remove item",
            "DELETE",
            "/rest/v1/cart_items",
            params={"select": "id", "id": _eq(line_id)},
            prefer="return=representation",
        )
        return bool(rows)

    def insert_order(self, user_id: str, total: Decimal, status: OrderStatus) -> Order:
        rows = self._call(
            "place order",
            "POST",
            "/rest/v1/orders",
            retry=False,
            params={"select": "*"},
            json={"user_id": user_id, "total_amount": str(total), "status": status.value},
            prefer="return=representation",
        )
        if not rows:
            raise PersistenceError("Failed to place order", {"user_id": user_id})
        return Order(**rows[0])

    def insert_order_lines(self, lines: List[OrderLine]) -> None:
        payload = [
            {
                "order_id": line.order_id,
                "product_id": line.product_id,
                "quantity": line.quantity,
                "price": str(line.price),
            }
            for line in lines
        ]
        self._call(
            "save order items",
            "POST",
            "/rest/v1/order_items",
            retry=False,
            json=payload,
            prefer="return=minimal",
        )

    def delete_cart_lines(self, user_id: str) -> int:
        rows = self._call(
            "clear cart",
            "DELETE",
            "/rest/v1/cart_items",
            params={"select": "id", "user_id": _eq(user_id)},
            prefer="return=representation",
        )
        return len(rows or [])

    def query_orders(self, user_id: str) -> List[Order]:
        rows = self._call(
            "load orders",
            "GET",
            "/rest/v1/orders",
            params={
                "select": _ORDER_SELECT,
                "user_id": _eq(user_id),
                "order": "created_at.desc",
            },
        ) or []
        return [_to_order(r) for r in rows]

    def delete_order(self, order_id: str) -> bool:
        self._call(
            "delete order items",
            "DELETE",
            "/rest/v1/order_items",
            params={"order_id": _eq(order_id)},
        )
        rows = self._call(
            "delete order",
            "DELETE",
            "/rest/v1/orders",
            params={"select": "id", "id": _eq(order_id)},
            prefer="return=representation",
        )
        return bool(rows)
