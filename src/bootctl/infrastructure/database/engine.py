"""Database engine setup for SQLite with WAL mode.

The state DB is stored at {root}/.bootctl/bootctl.db. SQLAlchemy Core
(not ORM) is used: the tables are tiny and every write is a single
``engine.begin()`` transaction, so an interrupted task leaves either the
old row or the new row, never a partial one.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from bootctl.infrastructure.database.schema import metadata

DB_FILENAME = "bootctl.db"


def create_db_engine(db_path: Path | None) -> Engine:
    """Create a SQLite engine with WAL mode. ``None`` gives an in-memory DB."""
    if db_path is None:
        from sqlalchemy.pool import StaticPool

        engine = create_engine(
            "sqlite://",
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        if db_path is not None:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(state_dir: Path | None) -> Engine:
    """Initialize the state database under *state_dir*.

    Creates the directory (plus ``plugins/``) and all tables.
    Idempotent — safe to call on an existing state directory.
    Passing None creates an in-memory database (tests, dry runs).
    """
    if state_dir is None:
        engine = create_db_engine(None)
    else:
        state_dir.mkdir(parents=True, exist_ok=True)
        (state_dir / "plugins").mkdir(exist_ok=True)
        engine = create_db_engine(state_dir / DB_FILENAME)

    metadata.create_all(engine)
    return engine
