"""
db/session.py

Engine and session factory for the supplier configuration store.

Nothing connects at import time; the engine is built on first use.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.config import _get_bool_env, _get_int_env
from db.config import resolve_database_url


def create_db_engine(database_url: str | None = None) -> Engine:
    """
    Build a pooled PostgreSQL engine; pool sizing comes from ``DB_POOL_*``.
    """

    url = database_url or resolve_database_url()
    if not url.startswith("postgresql"):
        raise RuntimeError(f"Supplier store requires a PostgreSQL URL, got '{url.split(':', 1)[0]}'.")

    return create_engine(
        url,
        echo=_get_bool_env("SQL_ECHO", False),
        pool_pre_ping=True,
        pool_size=_get_int_env("DB_POOL_SIZE", 5),
        max_overflow=_get_int_env("DB_MAX_OVERFLOW", 10),
        pool_recycle=_get_int_env("DB_POOL_RECYCLE", 1800),
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def _session_factory() -> sessionmaker[Session]:
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Session for one unit of work: commit on success, roll back on error.
    """

    session = _session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
