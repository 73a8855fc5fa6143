# mobileshop/domain/models.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SortKey(str, Enum):
    FEATURED = "featured"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"


class User(BaseModel):
    id: str
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class Product(BaseModel):
    """Catalog entry. Read-only for the storefront."""

    id: str
    name: str
    brand: str
    category: str
    condition: str
    storage: Optional[str] = None
    price: Decimal
    original_price: Optional[Decimal] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    in_stock: bool = True
    stock_count: int = Field(0, ge=0)

    model_config = ConfigDict(from_attributes=True, frozen=True)


class CartLine(BaseModel):
    id: str
    user_id: str
    product_id: str
    quantity: int = Field(..., ge=1)
    product: Optional[Product] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.quantity


class ProductRef(BaseModel):
    """The slice of a product shown next to an order line."""

    name: str
    brand: str
    category: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OrderLine(BaseModel):
    order_id: str
    product_id: str
    quantity: int = Field(..., ge=1)
    # snapshot of the catalog price when the order was placed
    price: Decimal
    product: Optional[ProductRef] = None

    model_config = ConfigDict(from_attributes=True)


class Order(BaseModel):
    id: str
    user_id: str
    total_amount: Decimal
    status: OrderStatus
    created_at: datetime
    items: List[OrderLine] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class CatalogFilter(BaseModel):
    """Facet selections plus sort key. An empty facet set means no restriction."""

    brands: Set[str] = Field(default_factory=set)
    conditions: Set[str] = Field(default_factory=set)
    categories: Set[str] = Field(default_factory=set)
    in_stock_only: bool = False
    sort: SortKey = SortKey.FEATURED


class Facets(BaseModel):
    brands: List[str] = Field(default_factory=list)
    conditions: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
