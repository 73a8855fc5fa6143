# mobileshop/services/analytics_service.py
from collections import Counter
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from mobileshop.domain.models import OrderStatus, User
from mobileshop.services.gateway import DataGateway
from mobileshop.utils.logging import get_logger

logger = get_logger(__name__)


def chart_points(values: Iterable[str]) -> List[Dict[str, Any]]:
    return [{"name": name, "value": count} for name, count in Counter(values).items()]


class AnalyticsService:
    """
    Dashboard numbers. Signed-in users see their own orders; anonymous
    visitors get the catalog breakdown and zeroed stats.
    """

    def __init__(self, gateway: DataGateway):
        self.gateway = gateway

    def dashboard(self, user: Optional[User]) -> Dict[str, Any]:
        if user is None:
            return self._public_dashboard()

        orders = self.gateway.query_orders(user.id)

        stats = {
            "total_orders": len(orders),
            "total_spent": sum((o.total_amount for o in orders), Decimal("0.00")),
            "pending_orders": sum(1 for o in orders if o.status is OrderStatus.PENDING),
        }

        # one point per order line, not per unit
        products = [i.product for o in orders for i in o.items if i.product is not None]

        logger.info(f"Dashboard for user {user.id}: {stats['total_orders']} orders")

        return {
            "stats": stats,
            "brand_data": chart_points(p.brand for p in products),
            "category_data": chart_points(p.category for p in products if p.category),
        }

    def _public_dashboard(self) -> Dict[str, Any]:
        products = self.gateway.query_products()
        return {
            "stats": {"total_orders": 0, "total_spent": Decimal("0.00"), "pending_orders": 0},
            "brand_data": chart_points(p.brand for p in products),
            "category_data": chart_points(p.category for p in products),
        }
