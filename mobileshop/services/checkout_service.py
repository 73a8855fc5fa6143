# mobileshop/services/checkout_service.py
import uuid
from typing import List, Optional

from redis.exceptions import RedisError

from mobileshop.domain.errors import (
    CheckoutFailed,
    CheckoutInProgress,
    NotFound,
    PersistenceError,
    ValidationError,
)
from mobileshop.domain.models import CartLine, Order, OrderLine, OrderStatus, User
from mobileshop.services.cart_service import cart_total, priced_lines, require_user
from mobileshop.services.gateway import DataGateway
from mobileshop.services.lock_service import LockService
from mobileshop.services.notification_service import NotificationService
from mobileshop.utils.logging import get_logger
from mobileshop.utils.settings import CHECKOUT_LOCK_TTL_SECONDS, CHECKOUT_TOKEN_TTL_SECONDS

logger = get_logger(__name__)


class CheckoutService:
    """
    Turns a user's cart into an order, and reads order history.
    """

    def __init__(
        self,
        gateway: DataGateway,
        lock_service: Optional[LockService] = None,
        notifications: Optional[NotificationService] = None,
    ):
        self.gateway = gateway
        self.lock_service = lock_service
        self.notifications = notifications

    def checkout(
        self,
        user: Optional[User],
        lines: Optional[List[CartLine]] = None,
        checkout_token: Optional[str] = None,
    ) -> Order:
        """
        Use case: checkout.

        1. total = sum(price * quantity) over the cart snapshot
        2. insert the order (status pending)
        3. insert one order line per cart line, price snapshotted
        4. clear the user's cart

        Steps 2-4 run in one gateway transaction; on gateways without
        transactions a failure after step 2 deletes the partial order.
        Replaying a checkout_token returns the order it already created.
        """
        user = require_user(user)
        token = checkout_token or uuid.uuid4().hex

        replayed = self._replayed_order(user, checkout_token)
        if replayed is not None:
            return replayed

        self._acquire_lock(user, token)
        try:
            if lines is None:
                lines = self.gateway.query_cart_lines(user.id)
            lines = priced_lines(lines)
            if not lines:
                raise ValidationError("Cart is empty", {"user_id": user.id})

            order = self._place_order(user, lines)
            self._remember(token, order)
        finally:
            self._release_lock(user, token)

        self._notify(user, order)
        return order

    def list_orders(self, user: Optional[User]) -> List[Order]:
        user = require_user(user)
        return self.gateway.query_orders(user.id)

    def get_order(self, user: Optional[User], order_id: str) -> Order:
        user = require_user(user)
        order = next((o for o in self.gateway.query_orders(user.id) if o.id == order_id), None)
        if order is None:
            raise NotFound("Order", order_id)
        return order

    # =====================================================
    # steps
    # =====================================================
    def _place_order(self, user: User, lines: List[CartLine]) -> Order:
        total = cart_total(lines)
        order: Optional[Order] = None
        order_lines: List[OrderLine] = []
        step = "order"

        try:
            with self.gateway.transaction():
                order = self.gateway.insert_order(user.id, total, OrderStatus.PENDING)
                logger.info(f"Order {order.id} created for user {user.id}, total {total}")

                step = "order_lines"
                order_lines = [
                    OrderLine(
                        order_id=order.id,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        price=line.product.price,
                    )
                    for line in lines
                ]
                self.gateway.insert_order_lines(order_lines)

                step = "cart_clear"
                cleared = self.gateway.delete_cart_lines(user.id)
                logger.info(f"Order {order.id}: {len(order_lines)} lines saved, {cleared} cart lines cleared")

        except PersistenceError as e:
            if order is None:
                logger.error(f"Checkout for user {user.id} failed before the order was created")
                raise
            rolled_back = self.gateway.supports_transactions or self._compensate(order)
            logger.error(f"Checkout of order {order.id} failed at {step}, rolled_back={rolled_back}")
            raise CheckoutFailed(order.id, step, rolled_back) from e

        return order.model_copy(update={"items": order_lines})

    def _compensate(self, order: Order) -> bool:
        try:
            self.gateway.delete_order(order.id)
        except PersistenceError as e:
            logger.error(f"Could not delete partial order {order.id}: {e}")
            return False
        logger.warning(f"Partial order {order.id} deleted")
        return True

    # =====================================================
    # locking / idempotency
    # =====================================================
    def _replayed_order(self, user: User, token: Optional[str]) -> Optional[Order]:
        if not token or self.lock_service is None:
            return None
        try:
            order_id = self.lock_service.recall_order(token)
        except RedisError as e:
            raise PersistenceError("Failed to check checkout token") from e
        if not order_id:
            return None

        logger.info(f"Checkout token {token} already used for order {order_id}")
        try:
            return self.get_order(user, order_id)
        except NotFound:
            # deleted meanwhile (or another user's token): place a new order
            return None

    def _acquire_lock(self, user: User, token: str) -> None:
        if self.lock_service is None:
            return
        try:
            locked = self.lock_service.acquire_checkout_lock(user.id, token, CHECKOUT_LOCK_TTL_SECONDS)
        except RedisError as e:
            raise PersistenceError("Failed to lock checkout") from e
        if not locked:
            raise CheckoutInProgress(user.id)

    def _release_lock(self, user: User, token: str) -> None:
        if self.lock_service is None:
            return
        try:
            self.lock_service.release_checkout_lock(user.id, token)
        except RedisError as e:
            # expires after CHECKOUT_LOCK_TTL_SECONDS anyway
            logger.warning(f"Failed to release checkout lock of user {user.id}: {e}")

    def _remember(self, token: str, order: Order) -> None:
        if self.lock_service is None:
            return
        try:
            self.lock_service.remember_order(token, order.id, CHECKOUT_TOKEN_TTL_SECONDS)
        except RedisError as e:
            logger.warning(f"Failed to remember checkout token {token}: {e}")

    def _notify(self, user: User, order: Order) -> None:
        if self.notifications is None:
            return
        try:
            self.notifications.send_order_placed(user.id, order.id)
        except Exception as e:
            logger.warning(f"Order {order.id} placed but notification was not queued: {e}")
