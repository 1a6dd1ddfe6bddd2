"""
Engine, session factory and the per-request session dependency.

The engine is built lazily from settings so importing models (tests,
migrations) never opens a connection.
"""
from typing import Iterator

import psycopg
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from app.config import get_settings


class Base(DeclarativeBase):
    """Declarative base shared by every Dandy table"""


_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine(
            settings.get_sqlalchemy_url(),
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=settings.DB_POOL_RECYCLE_SECONDS,
            connect_args={"connect_timeout": settings.DB_CONNECT_TIMEOUT_SECONDS},
        )
    return _engine


def get_session_factory() -> sessionmaker:
    # Use cases flush explicitly before relying on generated values
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=True)
    return _session_factory


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request, closed afterwards."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> None:
    """
    Round trip to PostgreSQL for /ready, bypassing the pool.

    Raises:
        psycopg.OperationalError: database unreachable within DB_CONNECT_TIMEOUT_SECONDS
    """
    settings = get_settings()
    with psycopg.connect(settings.DATABASE_URL, connect_timeout=settings.DB_CONNECT_TIMEOUT_SECONDS) as conn:
        conn.execute("SELECT 1").fetchone()
