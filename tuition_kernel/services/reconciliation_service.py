"""
SemesterReconciler -- full-snapshot semester synchronization.

Responsibility:
    Applies a caller's complete desired semester list to the persisted state
    with the minimal set of creates, in-place updates and deletes, then
    returns the reloaded canonical state.

Architecture position:
    Kernel > Services -- imperative shell.
    Diff planning and validation are pure (domain/reconciliation.py); this
    service loads rows, applies the plan and flushes.  The caller's
    session_scope() owns the single transaction around it.

Invariants enforced:
    - Identity preservation: an incoming installment whose id matches an
      existing installment of the same semester is updated IN PLACE.  Its
      id never changes, so references held elsewhere stay valid.
    - Delete completeness: semesters absent from the snapshot are deleted
      together with all of their installments.
    - Canonical money: every written amount and total goes through
      round_money().
    - Paid floor: a snapshot that would delete a persisted paid installment
      of a surviving semester is rejected before any write.
    - Idempotence: re-submitting the returned snapshot writes nothing.

Failure modes:
    - SnapshotValidationError subclasses: raised before the first write.
    - SyncTimeoutError: transaction budget spent at a checkpoint.
    - SQLAlchemyError: constraint or storage failure during flush.
    In every failure case the caller rolls the transaction back.

Algorithm:
    1. validate the snapshot
    2. load existing semesters (with installments) for the user
    3. reject paid-installment removals
    4. delete semesters absent from the snapshot
    5. for each incoming semester: create it, or update name/total/position
       and reconcile its installments (delete missing ids, update matching
       ids in place, create the rest)
    6. flush and reload
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from tuition_kernel.db.types import round_money
from tuition_kernel.domain.dtos import InstallmentData, SemesterData
from tuition_kernel.domain.reconciliation import (
    guard_paid_removals,
    partition_ids,
    plan_semester_diff,
    validate_snapshot,
)
from tuition_kernel.logging_config import LogContext, get_logger
from tuition_kernel.models.installment import TuitionInstallment
from tuition_kernel.models.semester import Semester
from tuition_kernel.selectors.semester_selector import SemesterSelector, semester_to_dto
from tuition_kernel.services.base import BaseService

logger = get_logger("services.reconciliation")


@dataclass
class ReconciliationStats:
    """Row-level operations performed by one reconcile call."""

    semesters_created: int = 0
    semesters_updated: int = 0
    semesters_deleted: int = 0
    installments_created: int = 0
    installments_updated: int = 0
    installments_deleted: int = 0

    @property
    def creates(self) -> int:
        return self.semesters_created + self.installments_created

    @property
    def deletes(self) -> int:
        return self.semesters_deleted + self.installments_deleted

    @property
    def updates(self) -> int:
        return self.semesters_updated + self.installments_updated

    @property
    def is_noop(self) -> bool:
        return not (self.creates or self.deletes or self.updates)

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ReconciliationResult:
    """Canonical post-sync state plus what it took to get there."""

    semesters: tuple[SemesterData, ...]
    stats: ReconciliationStats


class SemesterReconciler(BaseService[Semester]):
    """
    Reconciles a user's persisted semesters against a full snapshot.

    Contract:
        reconcile() flushes but never commits.  Run it inside
        session_scope(timeout_seconds=...) so the whole sync is one
        transaction that either commits completely or not at all.
    """

    def __init__(self, session: Session):
        super().__init__(session)
        self._selector = SemesterSelector(session)

    def reconcile(
        self,
        user_id: UUID,
        incoming: Sequence[SemesterData],
    ) -> ReconciliationResult:
        """
        Make the user's persisted semesters equal ``incoming``.

        Args:
            user_id: Owner of the semesters.
            incoming: Complete desired semester list, in display order.

        Returns:
            ReconciliationResult with the reloaded semesters and op counts.

        Raises:
            SnapshotValidationError: snapshot rejected, nothing written.
            SyncTimeoutError: transaction budget exceeded.
        """
        incoming = list(incoming)
        with LogContext.bind(user_id=user_id):
            validate_snapshot(incoming)

            existing_rows = self._load_existing(user_id)
            guard_paid_removals(
                {key: semester_to_dto(row) for key, row in existing_rows.items()},
                incoming,
            )
            diff = plan_semester_diff(existing_rows.keys(), incoming)

            logger.info(
                "reconciliation_started",
                extra={
                    "incoming_semesters": len(incoming),
                    "existing_semesters": len(existing_rows),
                    "semesters_to_create": len(diff.to_create),
                    "semesters_to_delete": len(diff.to_delete),
                },
            )

            stats = ReconciliationStats()

            for semester_id in diff.to_delete:
                row = existing_rows.pop(semester_id)
                stats.installments_deleted += len(row.installments)
                stats.semesters_deleted += 1
                self.session.delete(row)
            self._checkpoint()

            for position, semester in enumerate(incoming):
                row = existing_rows.get(semester.id)
                if row is None:
                    self._create_semester(user_id, semester, position, stats)
                else:
                    self._update_semester(row, semester, position, stats)
                self._checkpoint()

            self.session.flush()
            self._checkpoint()

            semesters = tuple(self._selector.list_for_user(user_id))
            logger.info("reconciliation_completed", extra=stats.as_dict())
            return ReconciliationResult(semesters=semesters, stats=stats)

    def _load_existing(self, user_id: UUID) -> dict[str, Semester]:
        stmt = (
            select(Semester)
            .where(Semester.user_id == user_id)
            .options(selectinload(Semester.installments))
            .order_by(Semester.position, Semester.external_id)
        )
        rows = self.session.execute(stmt).scalars().all()
        return {row.external_id: row for row in rows}

    @staticmethod
    def _installment_values(inst: InstallmentData, sequence: int) -> dict:
        return {
            "sequence": sequence,
            "amount": round_money(inst.amount),
            "status": inst.status.value,
            "expense_id": inst.expense_id,
            "paid_date": inst.paid_date,
        }

    def _create_semester(
        self,
        user_id: UUID,
        semester: SemesterData,
        position: int,
        stats: ReconciliationStats,
    ) -> None:
        row = Semester(
            external_id=semester.id,
            user_id=user_id,
            name=semester.name,
            total_tuition=round_money(semester.total_tuition),
            position=position,
            installments=[
                TuitionInstallment(**self._installment_values(inst, sequence))
                for sequence, inst in enumerate(semester.installments, start=1)
            ],
        )
        self.session.add(row)
        stats.semesters_created += 1
        stats.installments_created += len(semester.installments)
        logger.debug(
            "semester_created",
            extra={"semester_id": semester.id, "installments": len(semester.installments)},
        )

    def _update_semester(
        self,
        row: Semester,
        semester: SemesterData,
        position: int,
        stats: ReconciliationStats,
    ) -> None:
        changed = self._assign(
            row,
            {
                "name": semester.name,
                "total_tuition": round_money(semester.total_tuition),
                "position": position,
            },
        )
        if changed:
            stats.semesters_updated += 1

        existing_by_id = {inst.id: inst for inst in row.installments}
        diff = partition_ids(existing_by_id.keys(), (i.id for i in semester.installments))

        for installment_id in diff.to_delete:
            # delete-orphan cascade issues the DELETE on flush
            row.installments.remove(existing_by_id.pop(installment_id))
            stats.installments_deleted += 1

        for sequence, inst in enumerate(semester.installments, start=1):
            values = self._installment_values(inst, sequence)
            match = existing_by_id.get(inst.id) if inst.id is not None else None
            if match is None:
                row.installments.append(TuitionInstallment(**values))
                stats.installments_created += 1
            elif self._assign(match, values):
                stats.installments_updated += 1

    @staticmethod
    def _assign(row, values: dict) -> bool:
        """Set attributes that differ; return True if anything changed."""
        changed = False
        for attr, value in values.items():
            if getattr(row, attr) != value:
                setattr(row, attr, value)
                changed = True
        return changed
