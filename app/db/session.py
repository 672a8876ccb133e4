from __future__ import annotations

from typing import Callable, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.core.config import settings

T = TypeVar("T")

TRANSACTION_DEPTH_KEY = "transaction_depth"


class Base(DeclarativeBase):
    pass


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """SQLite ignores ON DELETE rules unless the pragma is set per connection."""
    if target.dialect.name != "sqlite":
        return

    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))
enable_sqlite_foreign_keys(engine)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def in_transaction(db: Session) -> bool:
    return int(db.info.get(TRANSACTION_DEPTH_KEY) or 0) > 0


def run_in_transaction(db: Session, callback: Callable[[], T]) -> T:
    """Run ``callback`` as one unit of work on ``db``.

    The outermost call commits on success and rolls back on any exception.
    Nested calls join the outer unit: they only flush, and an exception
    raised inside them propagates to the outermost call which rolls back.
    """
    depth = int(db.info.get(TRANSACTION_DEPTH_KEY) or 0)
    db.info[TRANSACTION_DEPTH_KEY] = depth + 1
    try:
        result = callback()
        if depth == 0:
            db.commit()
        else:
            db.flush()
        return result
    except BaseException:
        if depth == 0:
            db.rollback()
        raise
    finally:
        db.info[TRANSACTION_DEPTH_KEY] = depth
