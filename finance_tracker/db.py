from __future__ import annotations

import logging
from typing import Generator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from finance_tracker.config import get_settings

logger = logging.getLogger("ft.db")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ships with FK enforcement off; turn it on per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite gets cross-thread access and FK enforcement."""
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    engine = create_engine(url, echo=echo, connect_args=connect_args)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


settings = get_settings()
engine = make_engine(settings.database_url)

# Which database is actually in use (avoids "which finance.db?" confusion).
logger.info("DB URL in use: %s", engine.url)


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency: yields a database session and closes it afterwards."""
    with Session(engine) as session:
        yield session


def create_db_and_tables(bind: Engine | None = None) -> None:
    """
    Create missing tables. Handy for local runs and tests;
    Alembic migrations remain the way to evolve the schema.
    """
    import finance_tracker.models  # noqa: F401  # registers tables

    SQLModel.metadata.create_all(bind or engine)
