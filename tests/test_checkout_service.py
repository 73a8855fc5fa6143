"""
CheckoutService:
- the three-step sequence and its results
- rollback (transactional gateway) and compensation (non-transactional)
- checkout token replay and the per-user lock
- order history
"""

from contextlib import nullcontext
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from conftest import make_product
from mobileshop.domain.errors import (
    AuthRequired,
    CheckoutFailed,
    CheckoutInProgress,
    NotFound,
    PersistenceError,
    ValidationError,
)
from mobileshop.domain.models import CartLine, Order, OrderStatus
from mobileshop.services.cart_service import CartService
from mobileshop.services.checkout_service import CheckoutService
from mobileshop.services.gateway import DataGateway


@pytest.fixture
def filled_cart(gateway, user, add_products):
    """Cart of [(price 10, qty 2), (price 5, qty 1)]."""
    add_products(
        make_product(id="a", name="Phone A", price=Decimal("10.00"), stock_count=5),
        make_product(id="b", name="Phone B", brand="Samsung", price=Decimal("5.00"), stock_count=5),
    )
    cart = CartService(gateway)
    cart.add_to_cart(user, "a")
    cart.add_to_cart(user, "a")
    cart.add_to_cart(user, "b")
    return gateway.query_cart_lines(user.id)


@pytest.fixture
def service(gateway, lock_service, notifications):
    return CheckoutService(gateway, lock_service=lock_service, notifications=notifications)


def _order(order_id="o-1", user_id="user-1", total="25.00"):
    return Order(
        id=order_id,
        user_id=user_id,
        total_amount=Decimal(total),
        status=OrderStatus.PENDING,
        created_at=datetime.now(timezone.utc),
    )


def _mock_gateway(lines):
    """Gateway without transactions, every call recorded."""
    gateway = MagicMock(spec=DataGateway)
    gateway.supports_transactions = False
    gateway.transaction.side_effect = lambda: nullcontext()
    gateway.query_cart_lines.return_value = lines
    gateway.insert_order.return_value = _order()
    return gateway


def _lines():
    return [
        CartLine(id="l1", user_id="user-1", product_id="a", quantity=2,
                 product=make_product(id="a", price=Decimal("10"))),
        CartLine(id="l2", user_id="user-1", product_id="b", quantity=1,
                 product=make_product(id="b", price=Decimal("5"))),
    ]


class TestCheckout:
    def test_order_total_lines_and_empty_cart(self, service, gateway, user, filled_cart):
        order = service.checkout(user)

        assert order.total_amount == Decimal("25.00")
        assert order.status is OrderStatus.PENDING
        assert sorted((i.product_id, i.price, i.quantity) for i in order.items) == [
            ("a", Decimal("10.00"), 2),
            ("b", Decimal("5.00"), 1),
        ]
        assert gateway.query_cart_lines(user.id) == []

        stored = gateway.query_orders(user.id)
        assert [o.id for o in stored] == [order.id]
        assert stored[0].total_amount == Decimal("25.00")
        assert len(stored[0].items) == 2

    def test_total_equals_sum_of_lines(self, service, user, filled_cart):
        order = service.checkout(user)
        assert order.total_amount == sum(i.price * i.quantity for i in order.items)

    def test_prices_are_snapshotted(self, service, gateway, user, filled_cart, set_price):
        order = service.checkout(user)
        set_price("a", Decimal("99.00"))

        stored = gateway.query_orders(user.id)[0]
        assert {i.product_id: i.price for i in stored.items}["a"] == Decimal("10.00")
        assert stored.total_amount == order.total_amount

    def test_uses_given_snapshot_not_fresh_prices(self, service, gateway, user, filled_cart, set_price):
        set_price("a", Decimal("99.00"))

        order = service.checkout(user, lines=filled_cart)

        assert order.total_amount == Decimal("25.00")

    def test_empty_cart(self, service, gateway, user):
        with pytest.raises(ValidationError):
            service.checkout(user)
        assert gateway.query_orders(user.id) == []

    def test_requires_user(self, service):
        with pytest.raises(AuthRequired):
            service.checkout(None)

    def test_steps_run_in_order(self):
        gateway = _mock_gateway(_lines())
        user = MagicMock(id="user-1")

        CheckoutService(gateway).checkout(user)

        called = [c[0] for c in gateway.mock_calls
                  if c[0] in ("insert_order", "insert_order_lines", "delete_cart_lines")]
        assert called == ["insert_order", "insert_order_lines", "delete_cart_lines"]
        gateway.insert_order.assert_called_once_with("user-1", Decimal("25"), OrderStatus.PENDING)
        saved = gateway.insert_order_lines.call_args[0][0]
        assert [(l.product_id, l.quantity, l.price) for l in saved] == [("a", 2, Decimal("10")), ("b", 1, Decimal("5"))]

    def test_notification_sent(self, service, notifications, user, filled_cart):
        order = service.checkout(user)
        notifications.send_order_placed.assert_called_once_with(user.id, order.id)

    def test_notification_failure_does_not_fail_checkout(self, service, notifications, gateway, user, filled_cart):
        notifications.send_order_placed.side_effect = ConnectionError("broker down")

        order = service.checkout(user)

        assert gateway.query_orders(user.id)[0].id == order.id


class TestCheckoutFailures:
    def test_transactional_gateway_rolls_back_everything(self, service, gateway, user, filled_cart):
        with patch.object(gateway, "insert_order_lines", side_effect=PersistenceError("boom")):
            with pytest.raises(CheckoutFailed) as exc:
                service.checkout(user)

        assert exc.value.rolled_back is True
        assert exc.value.details["failed_step"] == "order_lines"
        assert gateway.query_orders(user.id) == []
        assert len(gateway.query_cart_lines(user.id)) == 2

    def test_cart_clear_failure_rolls_back_order(self, service, gateway, user, filled_cart):
        with patch.object(gateway, "delete_cart_lines", side_effect=PersistenceError("boom")):
            with pytest.raises(CheckoutFailed) as exc:
                service.checkout(user)

        assert exc.value.details["failed_step"] == "cart_clear"
        assert gateway.query_orders(user.id) == []

    def test_order_insert_failure_is_a_persistence_error(self):
        gateway = _mock_gateway(_lines())
        gateway.insert_order.side_effect = PersistenceError("Failed to place order")

        with pytest.raises(PersistenceError) as exc:
            CheckoutService(gateway).checkout(MagicMock(id="user-1"))

        assert not isinstance(exc.value, CheckoutFailed)
        gateway.insert_order_lines.assert_not_called()
        gateway.delete_order.assert_not_called()

    def test_non_transactional_gateway_is_compensated(self):
        gateway = _mock_gateway(_lines())
        gateway.delete_cart_lines.side_effect = PersistenceError("Failed to clear cart")

        with pytest.raises(CheckoutFailed) as exc:
            CheckoutService(gateway).checkout(MagicMock(id="user-1"))

        gateway.delete_order.assert_called_once_with("o-1")
        assert exc.value.rolled_back is True
        assert exc.value.details["order_id"] == "o-1"

    def test_failed_compensation_is_reported(self):
        gateway = _mock_gateway(_lines())
        gateway.insert_order_lines.side_effect = PersistenceError("Failed to save order items")
        gateway.delete_order.side_effect = PersistenceError("Failed to delete order")

        with pytest.raises(CheckoutFailed) as exc:
            CheckoutService(gateway).checkout(MagicMock(id="user-1"))

        assert exc.value.rolled_back is False
        assert exc.value.details["failed_step"] == "order_lines"

    def test_lock_released_after_failure(self, service, gateway, redis_client, user, filled_cart):
        with patch.object(gateway, "insert_order", side_effect=PersistenceError("boom")):
            with pytest.raises(PersistenceError):
                service.checkout(user)

        assert redis_client.get(f"checkout:user:{user.id}:lock") is None


class TestCheckoutToken:
    def test_replayed_token_returns_first_order(self, service, gateway, user, filled_cart):
        first = service.checkout(user, checkout_token="tok-1")
        second = service.checkout(user, checkout_token="tok-1")

        assert second.id == first.id
        assert len(gateway.query_orders(user.id)) == 1

    def test_new_token_after_checkout_needs_a_cart(self, service, user, filled_cart):
        service.checkout(user, checkout_token="tok-1")

        with pytest.raises(ValidationError):
            service.checkout(user, checkout_token="tok-2")

    def test_concurrent_checkout_is_refused(self, service, gateway, lock_service, user, filled_cart):
        lock_service.acquire_checkout_lock(user.id, "other-tab", 30)

        with pytest.raises(CheckoutInProgress):
            service.checkout(user, checkout_token="this-tab")

        assert gateway.query_orders(user.id) == []
        assert len(gateway.query_cart_lines(user.id)) == 2

    def test_lock_released_after_success(self, service, redis_client, user, filled_cart):
        service.checkout(user, checkout_token="tok-1")

        assert redis_client.get(f"checkout:user:{user.id}:lock") is None
        assert redis_client.get("checkout:token:tok-1") is not None

    def test_without_lock_service(self, gateway, user, filled_cart):
        order = CheckoutService(gateway).checkout(user, checkout_token="ignored")
        assert order.total_amount == Decimal("25.00")


class TestOrderHistory:
    def test_newest_first(self, service, gateway, user, filled_cart):
        first = service.checkout(user)
        CartService(gateway).add_to_cart(user, "b")
        second = service.checkout(user)

        assert [o.id for o in service.list_orders(user)] == [second.id, first.id]

    def test_lines_carry_product_names(self, service, user, filled_cart):
        service.checkout(user)

        order = service.list_orders(user)[0]
        assert sorted(i.product.name for i in order.items) == ["Phone A", "Phone B"]

    def test_get_order(self, service, user, filled_cart):
        order = service.checkout(user)
        assert service.get_order(user, order.id).id == order.id

    def test_get_other_users_order(self, service, user, other_user, filled_cart):
        order = service.checkout(user)

        with pytest.raises(NotFound):
            service.get_order(other_user, order.id)

    def test_history_requires_user(self, service):
        with pytest.raises(AuthRequired):
            service.list_orders(None)
