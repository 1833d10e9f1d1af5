"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for every
    service in the kernel layer.  All concrete services receive a SQLAlchemy
    ``Session`` that they use via ``session.flush()`` -- never
    ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back themselves.  The caller (session_scope or
    a test fixture) owns commit/rollback, which is what makes a whole
    reconciliation atomic.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from tuition_kernel.db.base import Base
from tuition_kernel.db.engine import check_deadline

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Does NOT provide query-only (read) methods -- those belong in
          ``tuition_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session

    def _checkpoint(self) -> None:
        """Abort with SyncTimeoutError if the transaction budget is spent."""
        check_deadline(self.session)
