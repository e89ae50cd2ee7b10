"""Database engine and transaction management for the universal schema.

This module provides:
- Database: Connection manager with WAL mode for concurrent access
- Session utilities for reads and serializable writes
- Retry logic for SQLite busy timeout handling

Access patterns:
- Use session() for single-row lookups
- Use immediate_transaction() for every row mutation
"""

from __future__ import annotations

import time
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event, text
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, create_engine

# Registers the four tables on SQLModel.metadata
from universaldb.schema import models as _models  # noqa: F401

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from universaldb.config.models import DatabaseConfig

logger = structlog.get_logger()

# Retry configuration for SQLite busy handling
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 0.1  # 100ms base
DEFAULT_RETRY_MAX_DELAY = 2.0  # 2s max
DEFAULT_BUSY_TIMEOUT_MS = 30000


def _is_database_locked_error(error: Exception) -> bool:
    """Check if error is a SQLite database locked error."""
    error_str = str(error).lower()
    return "database is locked" in error_str or "database is busy" in error_str


class Database:
    """SQLite connection manager with WAL mode for concurrent access.

    Includes retry logic with exponential backoff for handling
    SQLite busy timeouts when opening write transactions.

    Usage::

        db = Database(Path("universal.db"))
        db.create_all()

        with db.session() as session:
            entry = session.get(ClassEntry, 1)

        with db.immediate_transaction() as session:
            session.add(ObjectEntry(class_id=1))
    """

    def __init__(
        self,
        db_path: Path,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
    ) -> None:
        self.db_path = db_path
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self._busy_timeout_ms = busy_timeout_ms
        self.engine = self._create_engine()

    @classmethod
    def from_config(cls, db_path: Path, config: DatabaseConfig) -> Database:
        return cls(
            db_path,
            max_retries=config.max_retries,
            retry_base_delay=config.retry_base_delay_sec,
            retry_max_delay=config.retry_max_delay_sec,
            busy_timeout_ms=config.busy_timeout_ms,
        )

    def _create_engine(self) -> Engine:
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
        busy_timeout_ms = self._busy_timeout_ms

        def _on_connect(dbapi_conn: Any, connection_record: Any) -> None:
            _configure_pragmas(dbapi_conn, connection_record, busy_timeout_ms)

        event.listen(engine, "connect", _on_connect)
        return engine

    def create_all(self) -> None:
        """Create all tables from SQLModel metadata."""
        SQLModel.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        """Drop all tables. Use with caution."""
        SQLModel.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Close pooled connections."""
        self.engine.dispose()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """ORM session for lookups."""
        with Session(self.engine) as session:
            yield session

    @contextmanager
    def immediate_transaction(
        self,
        max_retries: int | None = None,
    ) -> Generator[Session, None, None]:
        """
        Session with BEGIN IMMEDIATE for serializable writes.

        BEGIN IMMEDIATE acquires a RESERVED lock up front, blocking other
        writers but allowing readers. Acquiring the lock is retried with
        exponential backoff when SQLite reports the database as locked.

        The session auto-commits on successful exit and rolls back
        on exception.

        Args:
            max_retries: Override default max retries (default: 3)
        """
        retries = max_retries if max_retries is not None else self._max_retries
        session = self._begin_immediate(retries)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _begin_immediate(self, retries: int) -> Session:
        for attempt in range(retries + 1):  # +1 for initial attempt
            session = Session(self.engine)
            try:
                session.execute(text("BEGIN IMMEDIATE"))
                return session
            except OperationalError as e:
                session.close()
                if not (_is_database_locked_error(e) and attempt < retries):
                    raise
                delay = min(
                    self._retry_base_delay * (2**attempt),
                    self._retry_max_delay,
                )
                logger.warning(
                    "sqlite_busy_retry",
                    attempt=attempt + 1,
                    max_retries=retries,
                    delay_sec=delay,
                )
                time.sleep(delay)
        raise AssertionError("unreachable")  # pragma: no cover


def _configure_pragmas(
    dbapi_conn: Any,
    _connection_record: Any,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
) -> None:
    """Configure SQLite for concurrent access and referential integrity."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
