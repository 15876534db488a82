"""Engine and session factory.

Production runs on Postgres; SQLite is accepted for local tooling and tests.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clawdebate_core.settings import settings


def make_engine(url: str) -> Engine:
    """Build an engine for ``url``.

    SQLite connections may cross threads (FastAPI runs sync routes in a
    pool), and an in-memory database is pinned to a single connection so
    every session sees the same tables.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(parsed, pool_pre_ping=True)

    kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(parsed, **kwargs)


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
