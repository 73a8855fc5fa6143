import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text

from mobileshop.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    brand = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    condition = Column(String, nullable=False)
    storage = Column(String, nullable=True)

    price = Column(Numeric(10, 2), nullable=False)
    original_price = Column(Numeric(10, 2), nullable=True)

    image_url = Column(String, nullable=True)
    description = Column(Text, nullable=True)

    in_stock = Column(Boolean, nullable=False, default=True)
    stock_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
