from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from adperf.config import get_settings

settings = get_settings()


def normalize_database_url(database_url: str) -> str:
    """
    Normalize database URL for psycopg3 compatibility.

    Replaces 'postgresql://' with 'postgresql+psycopg://' if psycopg driver
    is not already specified.
    """
    if database_url.startswith('postgresql://') and '+psycopg' not in database_url:
        return database_url.replace('postgresql://', 'postgresql+psycopg://')
    return database_url


def engine_options(database_url: str) -> Dict[str, Any]:
    """Extra create_engine arguments for the target database."""
    if database_url.startswith('sqlite'):
        # store calls run on worker threads
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


database_url = normalize_database_url(settings.get_database_url())

engine = create_engine(database_url, **engine_options(database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
