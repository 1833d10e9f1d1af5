"""
Module: tuition_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.  This is the single point of database
    connection configuration for the tracker.
Architecture position: Kernel > DB.  May import from db/base.py.  MUST NOT
    import from services/, selectors/, domain/, or outer layers (except
    create_tables/drop_tables, which import models so the metadata is complete).

Invariants enforced:
    - PostgreSQL sessions run at READ COMMITTED; concurrent syncs for the same
      user resolve as last-commit-wins.
    - SQLite connections enable foreign keys so installment rows cascade with
      their semester at the database level too.
    - Every transaction opened with a time budget carries a TransactionDeadline
      in ``session.info``; a transaction past its deadline is rolled back
      instead of committed.

Failure modes:
    - RuntimeError if get_engine/get_session called before
      init_engine_from_url().
    - SyncTimeoutError when the deadline has passed at a checkpoint or at commit.
    - OperationalError from PostgreSQL when a statement exceeds the budget
      (statement_timeout).
"""

import atexit
import time
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from tuition_kernel.exceptions import SyncTimeoutError
from tuition_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

# Module-level engine and session factory
_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_DEADLINE_KEY = "tuition_kernel.deadline"


@dataclass
class TransactionDeadline:
    """
    Time budget for one transaction.

    ``clock`` is injectable so tests can expire a deadline without sleeping.
    """

    budget_seconds: float
    clock: Callable[[], float] = time.monotonic
    started_at: float = field(default=0.0)

    def __post_init__(self) -> None:
        if self.budget_seconds <= 0:
            raise ValueError(f"budget_seconds must be positive, got {self.budget_seconds}")
        if not self.started_at:
            self.started_at = self.clock()

    @property
    def elapsed(self) -> float:
        return self.clock() - self.started_at

    @property
    def expired(self) -> bool:
        return self.elapsed > self.budget_seconds

    def check(self) -> None:
        """Raise SyncTimeoutError if the budget is spent."""
        elapsed = self.elapsed
        if elapsed > self.budget_seconds:
            raise SyncTimeoutError(self.budget_seconds, elapsed)


def attach_deadline(
    session: Session,
    budget_seconds: float,
    clock: Callable[[], float] = time.monotonic,
) -> TransactionDeadline:
    """Start a deadline and bind it to ``session``."""
    deadline = TransactionDeadline(budget_seconds, clock=clock)
    session.info[_DEADLINE_KEY] = deadline
    return deadline


def get_deadline(session: Session) -> TransactionDeadline | None:
    """Return the deadline bound to ``session``, if any."""
    return session.info.get(_DEADLINE_KEY)


def check_deadline(session: Session) -> None:
    """Checkpoint used by services between phases of a long operation."""
    deadline = get_deadline(session)
    if deadline is not None:
        deadline.check()


def _is_sqlite(database_url: str) -> bool:
    return make_url(database_url).get_backend_name() == "sqlite"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Initialize the SQLAlchemy engine from a database URL.

    PostgreSQL URLs get a QueuePool at READ COMMITTED.  SQLite URLs (local
    use and tests) get a single shared connection for in-memory databases;
    pool arguments are ignored for SQLite.

    Postconditions: Module-level _engine and _SessionFactory are initialized.
        A second call replaces the first.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    if _is_sqlite(database_url):
        url = make_url(database_url)
        in_memory = url.database in (None, "", ":memory:")
        _engine = create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool if in_memory else None,
            connect_args={"check_same_thread": False},
        )
        event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        _engine = create_engine(
            database_url,
            echo=echo,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "echo": echo,
        },
    )

    return _engine


def get_engine() -> Engine:
    """
    Get the current engine instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    """
    Get a new session instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory()


def _apply_statement_timeout(session: Session, budget_seconds: float) -> None:
    """Cap every statement of the transaction on PostgreSQL."""
    if session.get_bind().dialect.name != "postgresql":
        return
    # SET does not take bind parameters; the value is an int we computed.
    millis = max(1, int(budget_seconds * 1000))
    session.execute(text(f"SET LOCAL statement_timeout = {millis}"))


@contextmanager
def session_scope(
    timeout_seconds: float | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Postconditions: On normal exit, session is committed and closed, unless
        the deadline has passed, in which case it is rolled back and
        SyncTimeoutError is raised.  On exception, session is rolled back and
        closed and the exception is re-raised.

    Args:
        timeout_seconds: Optional budget for the whole transaction.
        clock: Monotonic clock used for the budget.

    Usage:
        with session_scope(timeout_seconds=15) as session:
            SemesterReconciler(session).reconcile(user_id, snapshot)
    """
    session = get_session()
    deadline = None
    logger.debug("transaction_started", extra={"timeout_seconds": timeout_seconds})
    try:
        if timeout_seconds is not None:
            deadline = attach_deadline(session, timeout_seconds, clock=clock)
            _apply_statement_timeout(session, timeout_seconds)
        yield session
        if deadline is not None:
            deadline.check()
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.info.pop(_DEADLINE_KEY, None)
        session.close()


def create_tables() -> None:
    """
    Create all tables defined in the models.

    Raises:
        RuntimeError: If engine is not initialized.
    """
    from tuition_kernel.db.base import Base
    import tuition_kernel.models  # noqa: F401  (registers all tables)

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """
    Drop all tables. Use with caution - primarily for testing.
    """
    from tuition_kernel.db.base import Base
    import tuition_kernel.models  # noqa: F401

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """
    Reset the engine and session factory.

    Useful for test cleanup.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionFactory = None


def _atexit_dispose():
    """Dispose the engine on process exit to release all pooled connections."""
    if _engine is not None:
        _engine.dispose()


atexit.register(_atexit_dispose)
