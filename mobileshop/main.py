# mobileshop/main.py
import uvicorn
from fastapi import FastAPI

from mobileshop.api import create_app
from mobileshop.services.catalog import use_system_collation
from mobileshop.utils.logging import get_logger
from mobileshop.utils.settings import GATEWAY_BACKEND

logger = get_logger(__name__)


def init_database() -> None:
    """Creates the tables of the SQL backend; the hosted backend owns its own schema."""
    from mobileshop.data import models  # noqa: F401  registers all tables
    from mobileshop.data.database import Base, get_engine

    logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=get_engine())
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info("Database tables created")


def build_app() -> FastAPI:
    use_system_collation()
    if GATEWAY_BACKEND == "sql":
        init_database()
    return create_app()


app = build_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
