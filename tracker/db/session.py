"""Engine and session wiring for the tracker.

Nothing connects at import time: the engine is built on first use from
``TRACKER_DATABASE_URL`` (or ``DATABASE_URL``), so importing the API or the
crud helpers never touches ``./tracker.db``.
"""
from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

import tracker.config  # noqa: F401  (loads .env)
from tracker.db.models import Base

LOGGER = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./tracker.db"


def database_url() -> str:
    url = os.getenv("TRACKER_DATABASE_URL") or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    # hosted Postgres often hands out driverless URLs; we ship psycopg v3
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return "postgresql+psycopg://" + url[len(scheme):]
    return url


def make_engine(url: Optional[str] = None, *, create_schema: bool = False) -> Engine:
    """Engine for ``url`` (default: the configured one).

    With ``create_schema`` the companies/sources tables are created too, which
    is what the CLI ``init-db`` command and throwaway test databases want.
    """
    url = url or database_url()
    options: dict[str, Any] = {
        "echo": os.getenv("TRACKER_DB_ECHO", "0") == "1",
        "pool_pre_ping": True,
    }
    if not url.startswith("sqlite"):
        options["pool_size"] = int(os.getenv("TRACKER_DB_POOL_SIZE", "5"))
        options["max_overflow"] = int(os.getenv("TRACKER_DB_MAX_OVERFLOW", "10"))

    engine = create_engine(url, **options)
    if create_schema:
        Base.metadata.create_all(engine)
    return engine


@lru_cache(maxsize=None)
def get_engine() -> Engine:
    engine = make_engine()
    LOGGER.debug("engine url=%s", engine_url(engine))
    return engine


@lru_cache(maxsize=None)
def session_factory() -> sessionmaker:
    # crud helpers commit themselves and hand rows back to the caller
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


@contextmanager
def get_session() -> Iterator[Session]:
    session = session_factory()()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def engine_url(engine: Optional[Engine] = None) -> str:
    """Configured URL with the password masked, for logs."""
    return (engine or get_engine()).url.render_as_string(hide_password=True)


def ping() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        LOGGER.warning("database ping failed url=%s", engine_url(), exc_info=True)
        return False
    return True


__all__ = [
    "database_url",
    "make_engine",
    "get_engine",
    "session_factory",
    "get_session",
    "engine_url",
    "ping",
]
