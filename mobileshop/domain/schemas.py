# mobileshop/domain/schemas.py
from pydantic import BaseModel, Field
from typing import List
from decimal import Decimal

from mobileshop.domain.models import CartLine, Facets, Product


class AddToCartIn(BaseModel):
    """Adds one unit of a product to the cart."""

    product_id: str = Field(..., min_length=1, description="Product id")


class QuantityIn(BaseModel):
    # < 1 is rejected by the cart service, not here, so the rejection is a 400
    quantity: int = Field(..., description="New line quantity")


class CatalogOut(BaseModel):
    products: List[Product]
    facets: Facets
    total: int


class CartOut(BaseModel):
    lines: List[CartLine]
    total: Decimal
    item_count: int


class RemovedOut(BaseModel):
    line_id: str
    removed: bool


class ChartPoint(BaseModel):
    name: str
    value: int


class DashboardStats(BaseModel):
    total_orders: int = 0
    total_spent: Decimal = Decimal("0.00")
    pending_orders: int = 0


class DashboardOut(BaseModel):
    stats: DashboardStats
    brand_data: List[ChartPoint]
    category_data: List[ChartPoint]
