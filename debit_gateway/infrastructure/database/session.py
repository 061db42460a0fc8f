"""Database session management with connection pooling"""

from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from debit_gateway.config import settings


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite gets a thread-tolerant connection, servers get a pool"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    # Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


@lru_cache
def get_session_factory() -> sessionmaker:
    """Engine and session factory are created on first use, not at import"""
    return sessionmaker(autocommit=False, autoflush=False, bind=build_engine(settings.database_url))


def get_db() -> Iterator[Session]:
    """Dependency injection for database sessions"""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
