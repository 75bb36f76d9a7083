"""Database engine setup for SQLite with WAL mode.

SQLAlchemy Core (not ORM) is used: both stores are single-table key lookups
with no benefit from session management or identity maps.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from loopsync.infrastructure.database.schema import metadata

MEMORY = ":memory:"


def create_db_engine(db_path: Path | str) -> Engine:
    """Create a SQLite engine. ``":memory:"`` yields a shared in-memory DB."""
    if str(db_path) == MEMORY:
        return create_engine(
            "sqlite://",
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def init_database(db_path: Path | str) -> Engine:
    """Create parent directories and all tables, returning the engine.

    Idempotent, safe to call on an existing database.
    """
    if str(db_path) != MEMORY:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    return engine
