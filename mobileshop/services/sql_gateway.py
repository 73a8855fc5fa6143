# mobileshop/services/sql_gateway.py
import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Iterator, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from mobileshop.data.models.cart_item import CartItemModel
from mobileshop.data.models.order import OrderModel
from mobileshop.data.models.order_item import OrderItemModel
from mobileshop.domain.errors import NotFound, PersistenceError
from mobileshop.domain.models import CartLine, Order, OrderLine, OrderStatus, Product, User
from mobileshop.repos.cart_repo import CartRepo
from mobileshop.repos.order_repo import OrderRepo
from mobileshop.repos.product_repo import ProductRepo
from mobileshop.repos.user_repo import UserRepo
from mobileshop.services.gateway import DataGateway
from mobileshop.utils.logging import get_logger

logger = get_logger(__name__)


def _to_order(model: OrderModel) -> Order:
    return Order(
        id=model.id,
        user_id=model.user_id,
        total_amount=model.total_amount,
        status=OrderStatus(model.status),
        created_at=model.created_at,
        items=[OrderLine.model_validate(i) for i in model.items],
    )


class SqlGateway(DataGateway):
    """
    Backend on a database reached through SQLAlchemy.

    Outside transaction() every call runs in its own session and commits;
    inside it all calls of the current thread share one session that commits
    or rolls back once at the end.
    """

    supports_transactions = True

    def __init__(self, session_factory: sessionmaker):
        super().__init__()
        self._session_factory = session_factory
        self._local = threading.local()

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        shared = getattr(self._local, "db", None)
        if shared is not None:
            try:
                yield shared
                shared.flush()
            except SQLAlchemyError as e:
                logger.error(f"SqlGateway failed to {action}: {e}")
                raise PersistenceError(f"Failed to {action}") from e
            return

        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"SqlGateway failed to {action}: {e}")
            raise PersistenceError(f"Failed to {action}") from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if getattr(self._local, "db", None) is not None:
            # nested: the outer transaction decides
            yield
            return

        db = self._session_factory()
        self._local.db = db
        try:
            yield
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"SqlGateway transaction rolled back: {e}")
            raise PersistenceError("Failed to commit") from e
        except Exception:
            db.rollback()
            logger.warning("SqlGateway transaction rolled back")
            raise
        finally:
            self._local.db = None
            db.close()

    # =====================================================
    # AUTH
    # =====================================================
    def get_current_user(self, access_token: Optional[str]) -> Optional[User]:
        if not access_token:
            return None
        with self._session("load session") as db:
            user = UserRepo(db).get_by_token(access_token)
            return User.model_validate(user) if user else None

    def sign_out(self, access_token: str) -> None:
        with self._session("sign out") as db:
            UserRepo(db).clear_token(access_token)
        self._emit_auth_change(access_token, None)

    # =====================================================
    # TABLES
    # =====================================================
    def query_products(self, filters: Optional[Mapping[str, Any]] = None) -> List[Product]:
        with self._session("load products") as db:
            return [Product.model_validate(p) for p in ProductRepo(db).list_products(filters)]

    def query_cart_lines(self, user_id: str) -> List[CartLine]:
        with self._session("load cart") as db:
            return [CartLine.model_validate(i) for i in CartRepo(db).get_cart_items(user_id)]

    def insert_cart_line(self, user_id: str, product_id: str, quantity: int) -> CartLine:
        with self._session("add to cart") as db:
            item = CartRepo(db).add_cart_item(
                CartItemModel(user_id=user_id, product_id=product_id, quantity=quantity)
            )
            return CartLine.model_validate(item)

    def update_cart_line(self, line_id: str, quantity: int) -> CartLine:
        with self._session("update quantity") as db:
            item = CartRepo(db).update_quantity(line_id, quantity)
            if not item:
                raise NotFound("Cart line", line_id)
            return CartLine.model_validate(item)

    def delete_cart_line(self, line_id: str) -> bool:
        with self._session("remove item") as db:
            return CartRepo(db).delete_cart_item(line_id)

    def insert_order(self, user_id: str, total: Decimal, status: OrderStatus) -> Order:
        with self._session("place order") as db:
            order = OrderRepo(db).create_order(
                OrderModel(user_id=user_id, total_amount=total, status=status.value)
            )
            return Order(
                id=order.id,
                user_id=order.user_id,
                total_amount=order.total_amount,
                status=OrderStatus(order.status),
                created_at=order.created_at,
            )

    def insert_order_lines(self, lines: List[OrderLine]) -> None:
        with self._session("save order items") as db:
            OrderRepo(db).add_order_items(
                [
                    OrderItemModel(
                        order_id=line.order_id,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        price=line.price,
                    )
                    for line in lines
                ]
            )

    def delete_cart_lines(self, user_id: str) -> int:
        with self._session("clear cart") as db:
            return CartRepo(db).delete_user_items(user_id)

    def query_orders(self, user_id: str) -> List[Order]:
        with self._session("load orders") as db:
            return [_to_order(o) for o in OrderRepo(db).get_orders_by_user(user_id)]

    def delete_order(self, order_id: str) -> bool:
        with self._session("delete order") as db:
            return OrderRepo(db).delete_order(order_id)
