"""
tuition_services.semester_sync -- transactional sync entrypoint.

Responsibility:
    Runs one SemesterReconciler pass inside its own time-budgeted
    transaction and collapses every storage-level failure into a single
    user-facing SynchronizationFailedError.

Architecture position:
    Services -- owns the transaction boundary (session_scope) around the
    flush-only kernel reconciler.

Invariants enforced:
    - Atomicity: either the whole snapshot is committed or nothing is.
    - Validation errors surface unchanged (they are raised before any write
      and carry the information the user needs, e.g. the paid floor).
    - Anything else that aborts the transaction -- timeout, constraint
      violation, lost connection -- becomes SynchronizationFailedError with
      the original exception chained as ``__cause__``.

Usage:
    result = sync_semesters(user_id, snapshot_from_wire(payload))
    return snapshot_to_wire(result.semesters)
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from tuition_kernel.db.engine import session_scope
from tuition_kernel.domain.dtos import SemesterData
from tuition_kernel.exceptions import SyncError, SynchronizationFailedError
from tuition_kernel.logging_config import LogContext, get_logger
from tuition_kernel.services.reconciliation_service import (
    ReconciliationResult,
    SemesterReconciler,
)

logger = get_logger("services.semester_sync")

DEFAULT_TIMEOUT_SECONDS = 15.0


def sync_semesters(
    user_id: UUID,
    snapshot: Sequence[SemesterData],
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    clock: Callable[[], float] = time.monotonic,
) -> ReconciliationResult:
    """
    Replace the user's persisted semesters with ``snapshot``.

    Args:
        user_id: Owner of the semesters.
        snapshot: Complete desired semester list.
        timeout_seconds: Budget for the whole transaction.
        clock: Monotonic clock for the budget (injectable for tests).

    Returns:
        ReconciliationResult with the canonical post-sync semesters.

    Raises:
        SnapshotValidationError: snapshot rejected before any write.
        SynchronizationFailedError: the transaction was rolled back.
    """
    with LogContext.bind(user_id=user_id):
        try:
            with session_scope(timeout_seconds=timeout_seconds, clock=clock) as session:
                return SemesterReconciler(session).reconcile(user_id, snapshot)
        except (SyncError, SQLAlchemyError) as exc:
            logger.error(
                "semester_sync_failed",
                extra={
                    "error_type": type(exc).__name__,
                    "error_code": getattr(exc, "code", None),
                    "timeout_seconds": timeout_seconds,
                },
            )
            raise SynchronizationFailedError(str(user_id)) from exc
