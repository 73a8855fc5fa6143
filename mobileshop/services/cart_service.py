from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from mobileshop.domain.errors import AuthRequired, NotFound, StockLimitExceeded, ValidationError
from mobileshop.domain.models import CartLine, Product, User
from mobileshop.services.catalog import CatalogService
from mobileshop.services.gateway import DataGateway
from mobileshop.utils.logging import get_logger
from mobileshop.utils.settings import ENFORCE_STOCK_CEILING

logger = get_logger(__name__)


def require_user(user: Optional[User]) -> User:
    if user is None:
        raise AuthRequired()
    return user


def priced_lines(lines: Iterable[CartLine]) -> List[CartLine]:
    """Lines whose product is still in the catalog; the rest cannot be priced."""
    kept = []
    for line in lines:
        if line.product is None:
            logger.warning(f"Cart line {line.id} points at missing product {line.product_id}, skipped")
            continue
        kept.append(line)
    return kept


def cart_total(lines: Iterable[CartLine]) -> Decimal:
    return sum((line.subtotal for line in lines), Decimal("0.00"))


class CartService:
    """
    Cart use cases for the acting user.
    commands (add, update, remove) write through the gateway first and
    return what the gateway confirmed; get_cart only reads
    """

    def __init__(self, gateway: DataGateway, enforce_stock_ceiling: bool = ENFORCE_STOCK_CEILING):
        self.gateway = gateway
        self.enforce_stock_ceiling = enforce_stock_ceiling

    # query
    def get_cart(self, user: Optional[User]) -> Dict[str, Any]:
        user = require_user(user)

        lines = priced_lines(self.gateway.query_cart_lines(user.id))

        return {
            "lines": lines,
            "total": cart_total(lines),
            "item_count": sum(line.quantity for line in lines),
        }

    # commands
    def add_to_cart(self, user: Optional[User], product_id: str) -> CartLine:
        user = require_user(user)

        lines = self.gateway.query_cart_lines(user.id)
        existing = next((line for line in lines if line.product_id == product_id), None)

        if existing:
            product = existing.product or self._load_product(product_id)
            new_quantity = existing.quantity + 1
            self._check_stock(product, new_quantity)

            logger.info(
                f"Product {product_id} already in cart of user {user.id}, "
                f"quantity {existing.quantity} -> {new_quantity}"
            )
            return self.gateway.update_cart_line(existing.id, new_quantity)

        product = self._load_product(product_id)
        self._check_stock(product, 1)

        logger.info(f"Adding product {product_id} to cart of user {user.id}")
        return self.gateway.insert_cart_line(user.id, product_id, 1)

    def update_quantity(self, user: Optional[User], line_id: str, quantity: int) -> CartLine:
        user = require_user(user)

        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", {"line_id": line_id, "quantity": quantity})

        line = self._find_line(user, line_id)
        if line is None:
            raise NotFound("Cart line", line_id)

        # lowering is always allowed, even when stock shrank meanwhile
        if quantity > line.quantity:
            if line.product is None:
                raise NotFound("Product", line.product_id)
            self._check_stock(line.product, quantity)

        logger.info(f"Cart line {line_id}: quantity {line.quantity} -> {quantity}")
        return self.gateway.update_cart_line(line_id, quantity)

    def remove_line(self, user: Optional[User], line_id: str) -> bool:
        user = require_user(user)

        # only the user's own lines; an absent line is already removed
        if self._find_line(user, line_id) is None:
            logger.info(f"Cart line {line_id} not in cart of user {user.id}, nothing to remove")
            return False

        removed = self.gateway.delete_cart_line(line_id)
        logger.info(f"Cart line {line_id} removed={removed}")
        return removed

    # helpers
    def _find_line(self, user: User, line_id: str) -> Optional[CartLine]:
        return next((line for line in self.gateway.query_cart_lines(user.id) if line.id == line_id), None)

    def _load_product(self, product_id: str) -> Product:
        return CatalogService(self.gateway).get_product(product_id)

    def _check_stock(self, product: Product, quantity: int) -> None:
        if not self.enforce_stock_ceiling:
            return
        if not product.in_stock:
            raise StockLimitExceeded(product.id, quantity, 0)
        if quantity > product.stock_count:
            raise StockLimitExceeded(product.id, quantity, product.stock_count)
