# app/core/db.py
from __future__ import annotations
from typing import Generator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from app.core.settings import settings

# Register every table on SQLModel.metadata
from app.models import hierarchy  # noqa: F401
from app.models import evaluation  # noqa: F401

# Shared engine for the whole app (singleton)
_engine = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(db_url: str, **kwargs) -> Engine:
    connect_args = dict(kwargs.pop("connect_args", {}) or {})
    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        connect_args["check_same_thread"] = False

    engine = create_engine(
        db_url,
        echo=False,
        pool_pre_ping=True,
        connect_args=connect_args,
        **kwargs,
    )
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = make_engine(settings.DATABASE_URL)
    return _engine


def init_db(engine: Engine | None = None) -> None:
    """
    Create every table that does not exist yet.
    Runs on startup; production deployments use the Alembic migrations instead.
    """
    SQLModel.metadata.create_all(engine or get_engine())


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency, injected via Depends(get_session)."""
    with Session(get_engine()) as session:
        yield session
