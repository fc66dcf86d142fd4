# flight_booking/infrastructure/db/session.py

import logging
import time
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from flight_booking.config import Settings

logger = logging.getLogger(__name__)


# -----------------------------
# Base Class for Models
# -----------------------------
class Base(DeclarativeBase):
    pass


# -----------------------------
# Engine
# -----------------------------
def build_engine(settings: Settings) -> Engine:
    """
    Creates the engine and its bounded connection pool.
    A checkout that waits longer than db_pool_timeout raises
    sqlalchemy.exc.TimeoutError instead of queueing forever.
    """
    url = make_url(settings.database_url)

    if url.get_backend_name() == "sqlite":
        return _build_sqlite_engine(settings)

    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
    )


def _build_sqlite_engine(settings: Settings) -> Engine:
    # SQLite has no row locks; FOR UPDATE is dropped by the dialect.
    # BEGIN IMMEDIATE takes the database write lock up front so
    # concurrent transactions are serialized just like the row lock.
    engine = create_engine(
        settings.database_url,
        echo=False,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


# -----------------------------
# Session Factory
# -----------------------------
def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    # Objects stay readable after commit so services can hand them back.
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


# -----------------------------
# Unit of work
# -----------------------------
@contextmanager
def transaction(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """
    One database transaction.
    Commits on success, rolls back on any error, and always
    returns the connection to the pool.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def wait_for_db(engine: Engine, max_retries: int, retry_delay_seconds: float) -> None:
    # Handles the common case where API starts before Postgres is ready.
    for attempt in range(1, max_retries + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database is reachable.")
            return
        except OperationalError:
            if attempt == max_retries:
                logger.exception(
                    "Database not reachable after %s attempts. Check DATABASE_URL and Postgres status.",
                    max_retries,
                )
                raise
            logger.warning(
                "Database not ready (attempt %s/%s). Retrying in %.1f seconds...",
                attempt,
                max_retries,
                retry_delay_seconds,
            )
            time.sleep(retry_delay_seconds)
