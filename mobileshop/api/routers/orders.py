# mobileshop/api/routers/orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Header

from mobileshop.api.deps import get_current_user, get_gateway, get_lock_service, get_notifications
from mobileshop.api.errors import to_http
from mobileshop.domain.errors import StorefrontError
from mobileshop.domain.models import Order, User
from mobileshop.services.checkout_service import CheckoutService
from mobileshop.services.gateway import DataGateway
from mobileshop.services.lock_service import LockService
from mobileshop.services.notification_service import NotificationService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    gateway: DataGateway = Depends(get_gateway),
    lock_service: LockService = Depends(get_lock_service),
    notifications: NotificationService = Depends(get_notifications),
):
    return CheckoutService(gateway, lock_service=lock_service, notifications=notifications)


@router.post("/checkout", response_model=Order, status_code=201)
def checkout(
    idempotency_key: Optional[str] = Header(None),
    user: Optional[User] = Depends(get_current_user),
    svc: CheckoutService = Depends(get_service),
):
    """
    Places an order from the current cart and clears it.
    Resending the same Idempotency-Key returns the first order.
    """
    try:
        return svc.checkout(user, checkout_token=idempotency_key)
    except StorefrontError as e:
        raise to_http(e, "Failed to place order")


@router.get("", response_model=List[Order])
def list_orders(
    user: Optional[User] = Depends(get_current_user),
    svc: CheckoutService = Depends(get_service),
):
    """
    Order history, newest first.
    """
    try:
        return svc.list_orders(user)
    except StorefrontError as e:
        raise to_http(e, "Failed to load orders")


@router.get("/{order_id}", response_model=Order)
def get_order(
    order_id: str,
    user: Optional[User] = Depends(get_current_user),
    svc: CheckoutService = Depends(get_service),
):
    try:
        return svc.get_order(user, order_id)
    except StorefrontError as e:
        raise to_http(e, "Failed to load order")
