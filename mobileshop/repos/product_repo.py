# mobileshop/repos/product_repo.py
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from mobileshop.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_products(self, filters: Mapping[str, Any] | None = None) -> list[ProductModel]:
        stmt = select(ProductModel)
        for column, value in (filters or {}).items():
            stmt = stmt.where(getattr(ProductModel, column) == value)
        # insertion order is the "featured" order of the catalog
        stmt = stmt.order_by(ProductModel.created_at, ProductModel.id)
        return list(self.db.execute(stmt).scalars().all())

    def add_products(self, products: list[ProductModel]) -> None:
        self.db.add_all(products)
        self.db.flush()
