# mobileshop/data/seed.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import sessionmaker

from mobileshop.data.models.product import ProductModel
from mobileshop.repos.product_repo import ProductRepo

DEMO_CATALOG = [
    dict(name="iPhone 13", brand="Apple", category="Smartphones", condition="Pristine",
         storage="128GB", price=Decimal("529.00"), original_price=Decimal("729.00"), stock_count=8),
    dict(name="iPhone 12 mini", brand="Apple", category="Smartphones", condition="Satisfactory",
         storage="64GB", price=Decimal("289.00"), original_price=Decimal("499.00"), stock_count=3),
    dict(name="Galaxy S22", brand="Samsung", category="Smartphones", condition="Mint",
         storage="256GB", price=Decimal("449.00"), original_price=Decimal("799.00"), stock_count=5),
    dict(name="Galaxy Tab S8", brand="Samsung", category="Tablets", condition="Pristine",
         storage="128GB", price=Decimal("399.00"), original_price=Decimal("649.00"), stock_count=2),
    dict(name="Pixel 7", brand="Google", category="Smartphones", condition="Mint",
         storage="128GB", price=Decimal("349.00"), original_price=Decimal("599.00"), stock_count=0,
         in_stock=False),
    dict(name="iPad Air", brand="Apple", category="Tablets", condition="Satisfactory",
         storage="64GB", price=Decimal("319.00"), original_price=Decimal("599.00"), stock_count=4),
]


def seed(session_factory: sessionmaker | None = None) -> int:
    """Loads the demo catalog into an empty products table. Returns rows added."""
    if session_factory is None:
        from mobileshop.data.database import get_sessionmaker

        session_factory = get_sessionmaker()

    db = session_factory()
    try:
        repo = ProductRepo(db)
        # not forcing: only seed if empty
        if repo.list_products():
            return 0
        # created_at one second apart keeps the listed order as the featured order
        start = datetime.now(timezone.utc)
        repo.add_products([
            ProductModel(**row, created_at=start + timedelta(seconds=n))
            for n, row in enumerate(DEMO_CATALOG)
        ])
        db.commit()
        return len(DEMO_CATALOG)
    finally:
        db.close()


if __name__ == "__main__":
    print(f"Seeded {seed()} products")
