# mobileshop/data/database.py
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from mobileshop.utils.settings import DATABASE_URL

Base = declarative_base()


@lru_cache(maxsize=None)
def get_engine(url: str = DATABASE_URL):
    # created on first use so the REST backend never needs a database driver
    return create_engine(url, pool_pre_ping=True)


def get_sessionmaker(url: str = DATABASE_URL) -> sessionmaker:
    return sessionmaker(bind=get_engine(url), autoflush=False, expire_on_commit=False)
