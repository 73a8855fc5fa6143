# mobileshop/services/gateway.py
from abc import ABC, abstractmethod
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Callable, Iterator, List, Mapping, Optional

from mobileshop.domain.models import CartLine, Order, OrderLine, OrderStatus, Product, User
from mobileshop.utils.logging import get_logger

logger = get_logger(__name__)

AuthCallback = Callable[[str, Optional[User]], None]


class DataGateway(ABC):
    """
    Narrow contract over the backend that owns auth and the tables
    products, cart_items, orders and order_items.

    Every call is an independent request; failures surface as
    PersistenceError. Implementations that can group writes set
    supports_transactions and make transaction() atomic.
    """

    supports_transactions = False

    def __init__(self):
        self._auth_listeners: List[AuthCallback] = []

    # auth
    @abstractmethod
    def get_current_user(self, access_token: Optional[str]) -> Optional[User]:
        ...

    @abstractmethod
    def sign_out(self, access_token: str) -> None:
        ...

    def on_auth_change(self, callback: AuthCallback) -> Callable[[], None]:
        """Registers callback(access_token, user); user is None after sign-out."""
        self._auth_listeners.append(callback)

        def unsubscribe():
            if callback in self._auth_listeners:
                self._auth_listeners.remove(callback)

        return unsubscribe

    def _emit_auth_change(self, access_token: str, user: Optional[User]) -> None:
        for callback in list(self._auth_listeners):
            try:
                callback(access_token, user)
            except Exception as e:
                logger.error(f"Auth change listener {callback!r} failed: {e}")

    def with_token(self, access_token: Optional[str]) -> "DataGateway":
        """Gateway acting on behalf of the holder of access_token."""
        return self

    # tables
    @abstractmethod
    def query_products(self, filters: Optional[Mapping[str, Any]] = None) -> List[Product]:
        ...

    @abstractmethod
    def query_cart_lines(self, user_id: str) -> List[CartLine]:
        ...

    @abstractmethod
    def insert_cart_line(self, user_id: str, product_id: str, quantity: int) -> CartLine:
        ...

    @abstractmethod
    def update_cart_line(self, line_id: str, quantity: int) -> CartLine:
        ...

    @abstractmethod
    def delete_cart_line(self, line_id: str) -> bool:
        ...

    @abstractmethod
    def insert_order(self, user_id: str, total: Decimal, status: OrderStatus) -> Order:
        ...

    @abstractmethod
    def insert_order_lines(self, lines: List[OrderLine]) -> None:
        ...

    @abstractmethod
    def delete_cart_lines(self, user_id: str) -> int:
        ...

    @abstractmethod
    def query_orders(self, user_id: str) -> List[Order]:
        """Orders with their lines, newest first."""

    @abstractmethod
    def delete_order(self, order_id: str) -> bool:
        """Removes an order and its lines; used to undo a partial checkout."""

    @contextmanager
    def transaction(self) -> Iterator[None]:
        # no grouping: every write inside commits on its own
        yield
