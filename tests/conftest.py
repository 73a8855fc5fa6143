"""
Shared fixtures: an in-memory SQLite backend behind SqlGateway, fakeredis
behind LockService, and small builders for catalog data.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import fakeredis
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mobileshop.data import models  # noqa: F401  registers all tables
from mobileshop.data.database import Base
from mobileshop.data.models.product import ProductModel
from mobileshop.data.models.user import UserModel
from mobileshop.domain.models import Product, User
from mobileshop.services.lock_service import LockService
from mobileshop.services.sql_gateway import SqlGateway


def make_product(**overrides) -> Product:
    data = dict(
        id="p-1",
        name="iPhone 13",
        brand="Apple",
        category="Smartphones",
        condition="Pristine",
        storage="128GB",
        price=Decimal("529.00"),
        in_stock=True,
        stock_count=10,
    )
    data.update(overrides)
    return Product(**data)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def session_factory():
    """In-memory SQLite shared by every session (and TestClient threads)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    engine.dispose()


@pytest.fixture
def gateway(session_factory):
    return SqlGateway(session_factory)


def _add_user(session_factory, user_id: str, email: str, token: str) -> User:
    db = session_factory()
    try:
        db.add(UserModel(id=user_id, email=email, access_token=token))
        db.commit()
    finally:
        db.close()
    return User(id=user_id, email=email)


@pytest.fixture
def user(session_factory) -> User:
    """Signed-in user; access token "token-1"."""
    return _add_user(session_factory, "user-1", "ala@example.com", "token-1")


@pytest.fixture
def other_user(session_factory) -> User:
    """Second user; access token "token-2"."""
    return _add_user(session_factory, "user-2", "ola@example.com", "token-2")


@pytest.fixture
def add_products(session_factory):
    """Inserts products one commit at a time, so creation order is catalog order."""

    def _add(*products: Product):
        for product in products:
            db = session_factory()
            try:
                db.add(ProductModel(**product.model_dump()))
                db.commit()
            finally:
                db.close()
        return list(products)

    return _add


@pytest.fixture
def set_price(session_factory):
    def _set(product_id: str, price: Decimal):
        db = session_factory()
        try:
            db.get(ProductModel, product_id).price = price
            db.commit()
        finally:
            db.close()

    return _set


# ============================================================================
# Redis / Celery Fixtures
# ============================================================================

@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def lock_service(redis_client):
    return LockService(client=redis_client)


@pytest.fixture
def notifications():
    """Stands in for NotificationService so no Celery broker is needed."""
    return MagicMock()
