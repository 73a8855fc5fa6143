# mobileshop/api/routers/cart.py
from typing import Optional

from fastapi import APIRouter, Depends

from mobileshop.api.deps import get_current_user, get_gateway
from mobileshop.api.errors import to_http
from mobileshop.domain.errors import StorefrontError
from mobileshop.domain.models import CartLine, User
from mobileshop.domain.schemas import AddToCartIn, CartOut, QuantityIn, RemovedOut
from mobileshop.services.cart_service import CartService
from mobileshop.services.gateway import DataGateway

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(gateway: DataGateway):
    return CartService(gateway)


@router.get("", response_model=CartOut)
def get_cart(
    user: Optional[User] = Depends(get_current_user),
    gateway: DataGateway = Depends(get_gateway),
):
    svc = get_service(gateway)
    try:
        return svc.get_cart(user)
    except StorefrontError as e:
        raise to_http(e, "Failed to load cart")


@router.post("/items", response_model=CartLine)
def add_to_cart(
    payload: AddToCartIn,
    user: Optional[User] = Depends(get_current_user),
    gateway: DataGateway = Depends(get_gateway),
):
    svc = get_service(gateway)
    try:
        return svc.add_to_cart(user, payload.product_id)
    except StorefrontError as e:
        raise to_http(e, "Failed to add to cart")


@router.patch("/items/{line_id}", response_model=CartLine)
def update_quantity(
    line_id: str,
    payload: QuantityIn,
    user: Optional[User] = Depends(get_current_user),
    gateway: DataGateway = Depends(get_gateway),
):
    svc = get_service(gateway)
    try:
        return svc.update_quantity(user, line_id, payload.quantity)
    except StorefrontError as e:
        raise to_http(e, "Failed to update quantity")


@router.delete("/items/{line_id}", response_model=RemovedOut)
def remove_item(
    line_id: str,
    user: Optional[User] = Depends(get_current_user),
    gateway: DataGateway = Depends(get_gateway),
):
    svc = get_service(gateway)
    try:
        removed = svc.remove_line(user, line_id)
    except StorefrontError as e:
        raise to_http(e, "Failed to remove item")
    return {"line_id": line_id, "removed": removed}
