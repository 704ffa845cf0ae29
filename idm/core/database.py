"""PostgreSQL gateway: engine and pool ownership, borrowed connections, transactions.

Repositories receive a Database through their constructor and borrow a
connection (or a caller-owned Transaction) per call. Every borrow takes a
QueryContext whose deadline is applied to the connection as a
transaction-local ``statement_timeout``.
"""
from __future__ import annotations
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, TypeVar

from psycopg2 import errorcodes
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine, RootTransaction
from sqlalchemy.exc import SQLAlchemyError

from idm.core.errors import InternalError

logger = logging.getLogger(__name__)


class DeadlineExceeded(Exception):
    """The request deadline expired before the database call was issued."""
    pass


# Errors raised by the store layer that services classify as internal failures
STORE_ERRORS = (SQLAlchemyError, DeadlineExceeded)

T = TypeVar("T")


@dataclass(frozen=True)
class QueryContext:
    """Per-request deadline and correlation id threaded down to every SQL call."""
    request_id: str = ""
    deadline: Optional[float] = None  # time.monotonic() value

    @classmethod
    def background(cls) -> "QueryContext":
        """Context without deadline (startup code, scripts, tests)."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float, request_id: str = "") -> "QueryContext":
        return cls(request_id=request_id, deadline=time.monotonic() + seconds)

    def remaining_ms(self) -> Optional[int]:
        """Milliseconds left before the deadline, or None without deadline."""
        if self.deadline is None:
            return None
        return int((self.deadline - time.monotonic()) * 1000)

    def check(self) -> None:
        """Raise DeadlineExceeded if the deadline has already passed."""
        remaining = self.remaining_ms()
        if remaining is not None and remaining <= 0:
            raise DeadlineExceeded(f"request deadline exceeded (request_id={self.request_id or 'none'})")


class Transaction:
    """Caller-owned transaction on a dedicated pooled connection.

    The creator must end it with commit() or rollback() and always call
    close() to hand the connection back to the pool.
    """

    def __init__(self, connection: Connection, transaction: RootTransaction):
        self._connection = connection
        self._transaction = transaction

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def is_active(self) -> bool:
        return self._transaction.is_active

    def commit(self) -> None:
        self._transaction.commit()

    def rollback(self) -> None:
        if self._transaction.is_active:
            self._transaction.rollback()

    def close(self) -> None:
        self._connection.close()


def run_in_transaction(begin: Callable[[], Transaction], work: Callable[[Transaction], T], action: str) -> T:
    """Run ``work`` on a new transaction and commit it.

    Any error from ``work`` or the commit rolls the transaction back and
    propagates; the connection is released on every path.

    Args:
        begin: Opens the transaction (usually ``repo.begin_transaction``)
        work: Statements to run on the transaction; its result is returned
        action: Prefix of the InternalError messages, e.g. "error creating role"

    Raises:
        InternalError: If the transaction cannot be opened or committed
    """
    try:
        tx = begin()
    except STORE_ERRORS as exc:
        logger.error(f"Failed to begin transaction ({action}): {exc}")
        raise InternalError(f"{action}: error creating transaction") from exc

    try:
        result = work(tx)
        try:
            tx.commit()
        except STORE_ERRORS as exc:
            logger.error(f"Failed to commit transaction ({action}): {exc}")
            raise InternalError(f"{action}: commit failed") from exc
    except BaseException:
        try:
            tx.rollback()
        except SQLAlchemyError as exc:
            logger.error(f"Failed to rollback transaction ({action}): {exc}")
        raise
    finally:
        tx.close()
    return result


def _apply_deadline(connection: Connection, ctx: QueryContext) -> None:
    remaining = ctx.remaining_ms()
    if remaining is None:
        return
    # is_local=true: the timeout ends with the current transaction
    connection.execute(
        text("SELECT set_config('statement_timeout', :timeout, true)"),
        {"timeout": f"{max(remaining, 1)}ms"},
    )


def engine_url(dsn: str) -> tuple[str, dict]:
    """Translate a configured DSN into a SQLAlchemy URL plus connect_args.

    Accepts URLs (postgres://, postgresql://, postgresql+psycopg2://) and
    libpq keyword strings ("host=localhost dbname=idm ...").
    """
    dsn = dsn.strip()
    if "://" not in dsn:
        return "postgresql+psycopg2://", {"dsn": dsn}
    scheme, _, rest = dsn.partition("://")
    if scheme in {"postgres", "postgresql"}:
        scheme = "postgresql+psycopg2"
    return f"{scheme}://{rest}", {}


class Database:
    """Owner of the SQLAlchemy engine and its connection pool."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def connect(
        cls,
        dsn: str,
        max_open_conns: int = 20,
        max_idle_conns: int = 5,
        conn_max_lifetime: int = 60,
    ) -> "Database":
        """Create the pooled engine (connections are opened lazily).

        Args:
            dsn: Connection string (URL or libpq keywords)
            max_open_conns: Upper bound of simultaneously open connections
            max_idle_conns: Connections kept open in the pool
            conn_max_lifetime: Seconds before a pooled connection is recycled
        """
        url, connect_args = engine_url(dsn)
        engine = create_engine(
            url,
            connect_args=connect_args,
            pool_size=max_idle_conns,
            max_overflow=max(max_open_conns - max_idle_conns, 0),
            pool_recycle=conn_max_lifetime,
            pool_pre_ping=True,
            pool_timeout=30,
        )
        logger.info(
            f"Database pool configured: max_open={max_open_conns}, "
            f"max_idle={max_idle_conns}, max_lifetime={conn_max_lifetime}s"
        )
        return cls(engine)

    @classmethod
    def from_config(cls, cfg) -> "Database":
        return cls.connect(
            cfg.db_dsn,
            max_open_conns=cfg.db_max_open_conns,
            max_idle_conns=cfg.db_max_idle_conns,
            conn_max_lifetime=cfg.db_conn_max_lifetime,
        )

    @contextmanager
    def connection(self, ctx: QueryContext) -> Iterator[Connection]:
        """Borrow a connection for one repository call and commit on success.

        Any exception rolls back and the connection always returns to the pool.
        """
        ctx.check()
        with self.engine.connect() as connection:
            _apply_deadline(connection, ctx)
            yield connection
            connection.commit()

    def begin(self, ctx: QueryContext) -> Transaction:
        """Start a caller-owned transaction on a dedicated connection."""
        ctx.check()
        connection = self.engine.connect()
        try:
            transaction = connection.begin()
            _apply_deadline(connection, ctx)
        except BaseException:
            connection.close()
            raise
        return Transaction(connection, transaction)

    def ping(self, ctx: Optional[QueryContext] = None) -> None:
        """Round-trip a trivial statement; raises on connectivity failure."""
        with self.connection(ctx or QueryContext.background()) as connection:
            connection.execute(text("SELECT 1"))

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()
        logger.info("Database connection pool disposed")


# ─────────────────────────────────────────────────────────────────────────────
# Constraint classification
# ─────────────────────────────────────────────────────────────────────────────
def sqlstate(exc: BaseException) -> Optional[str]:
    """SQLSTATE of the driver error wrapped by a SQLAlchemy exception."""
    original = getattr(exc, "orig", None)
    return getattr(original, "pgcode", None)


def is_unique_violation(exc: SQLAlchemyError) -> bool:
    return sqlstate(exc) == errorcodes.UNIQUE_VIOLATION


def is_foreign_key_violation(exc: SQLAlchemyError) -> bool:
    return sqlstate(exc) == errorcodes.FOREIGN_KEY_VIOLATION
