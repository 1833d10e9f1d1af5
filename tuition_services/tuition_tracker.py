"""
tuition_services.tuition_tracker -- the tuition tracker facade.

Responsibility:
    Exposes the named user operations (update tuition, change installment
    count, mark paid, edit paid date, expense deleted, link repair) on top
    of the single reconciliation entrypoint.  Each operation loads the
    user's current snapshot, derives a new snapshot with the pure domain
    functions, and feeds it through sync_semesters().

Architecture position:
    Services -- composes domain policy, the expense collaborator and the
    transactional sync entrypoint.  Holds no per-user state.

Invariants enforced:
    - Mark-paid ordering: the expense is durably created BEFORE the
      installment flips to paid.  A failure in between leaves at worst an
      orphan expense, never a paid installment without its expense.
    - Mark-paid on an installment that is already paid or has a zero
      amount is a silent no-op (no expense, no write).
    - Count changes are validated against the paid floor before any
      persisted change.
    - A dangling expense reference is not fatal: editing its paid date
      still updates the installment, and repair_dangling_links() resets it.

Failure modes:
    - SemesterNotFoundError / InstallmentNotFoundError: unknown ids.
    - PaidFloorViolationError: count below the paid floor (minimum_count).
    - InvalidInstallmentStateError: editing the paid date of an unpaid
      installment.
    - SynchronizationFailedError: the sync transaction was rolled back.

Usage:
    tracker = TuitionTracker.from_config(get_active_config())
    semesters = tracker.load_or_seed(user_id)
    semesters = tracker.mark_installment_paid(user_id, "fall-2025", 17)
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from tuition_config import TrackerConfig
from tuition_kernel.db.engine import create_tables, init_engine_from_url, session_scope
from tuition_kernel.domain.clock import Clock, SystemClock
from tuition_kernel.domain.dtos import SemesterData
from tuition_kernel.domain.expense_gateway import ExpenseGateway
from tuition_kernel.domain.expense_link import (
    build_tuition_expense,
    change_paid_date,
    find_semester,
    is_payable,
    mark_paid,
    replace_semester,
    unlink_expense,
)
from tuition_kernel.domain.installment_policy import (
    change_installment_count,
    change_total_tuition,
    default_schedule,
    minimum_installment_count,
)
from tuition_kernel.exceptions import ExpenseNotFoundError
from tuition_kernel.logging_config import LogContext, get_logger
from tuition_kernel.selectors.semester_selector import SemesterSelector
from tuition_services.expense_gateway import SqlExpenseGateway
from tuition_services.semester_sync import sync_semesters

logger = get_logger("services.tuition_tracker")


class TuitionTracker:
    """
    Named tuition operations over full-snapshot reconciliation.

    Contract:
        Every mutating method returns the canonical post-sync semester list.
        Reads and writes each run in their own transaction; concurrent
        editors of the same user resolve as last-commit-wins.
    """

    def __init__(
        self,
        config: TrackerConfig,
        gateway: ExpenseGateway,
        clock: Clock | None = None,
    ) -> None:
        self._config = config
        self._gateway = gateway
        self._clock = clock or SystemClock()

    @classmethod
    def from_config(cls, config: TrackerConfig, clock: Clock | None = None) -> TuitionTracker:
        """Initialize the database from ``config`` and use the local expense store."""
        db = config.database
        init_engine_from_url(
            db.url,
            echo=db.echo,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
        )
        create_tables()
        gateway = SqlExpenseGateway(
            timeout_seconds=config.sync.transaction_timeout_seconds,
        )
        return cls(config, gateway, clock=clock)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_semesters(self, user_id: UUID) -> list[SemesterData]:
        with session_scope() as session:
            return SemesterSelector(session).list_for_user(user_id)

    def get_semester(self, user_id: UUID, semester_id: str) -> SemesterData:
        with session_scope() as session:
            return SemesterSelector(session).get(user_id, semester_id)

    def minimum_installment_count(self, user_id: UUID, semester_id: str) -> int:
        """Smallest installment count the semester can be changed to."""
        return minimum_installment_count(self.get_semester(user_id, semester_id))

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def sync(self, user_id: UUID, semesters: Sequence[SemesterData]) -> list[SemesterData]:
        """Persist ``semesters`` as the user's complete semester list."""
        result = sync_semesters(
            user_id,
            semesters,
            timeout_seconds=self._config.sync.transaction_timeout_seconds,
        )
        return list(result.semesters)

    def load_or_seed(self, user_id: UUID) -> list[SemesterData]:
        """
        Return the user's semesters, creating the default list on first use.
        """
        with session_scope() as session:
            selector = SemesterSelector(session)
            if selector.has_semesters(user_id):
                return selector.list_for_user(user_id)

        tuition = self._config.tuition
        seeded = [
            default_schedule(seed.id, seed.name, tuition.default_installment_count)
            for seed in tuition.default_semesters
        ]
        logger.info(
            "default_semesters_seeded",
            extra={"user_id": user_id, "semesters": [s.id for s in seeded]},
        )
        return self.sync(user_id, seeded)

    def _apply(self, user_id: UUID, updated: SemesterData) -> list[SemesterData]:
        current = self.get_semesters(user_id)
        return self.sync(user_id, replace_semester(current, updated))

    # ------------------------------------------------------------------
    # Schedule edits
    # ------------------------------------------------------------------

    def update_tuition(
        self,
        user_id: UUID,
        semester_id: str,
        total_tuition: Decimal | int | str,
    ) -> list[SemesterData]:
        """Set the semester total and re-divide it over the unpaid installments."""
        with LogContext.bind(user_id=user_id, semester_id=semester_id):
            semester = self.get_semester(user_id, semester_id)
            updated = change_total_tuition(semester, total_tuition)
            logger.info(
                "tuition_updated",
                extra={"old_total": semester.total_tuition, "new_total": updated.total_tuition},
            )
            return self._apply(user_id, updated)

    def change_installment_count(
        self,
        user_id: UUID,
        semester_id: str,
        count: int,
    ) -> list[SemesterData]:
        """
        Resize the installment schedule.

        Raises:
            PaidFloorViolationError: ``count`` would drop a paid installment.
            InvalidInstallmentCountError: ``count`` < 1.
        """
        with LogContext.bind(user_id=user_id, semester_id=semester_id):
            semester = self.get_semester(user_id, semester_id)
            updated = change_installment_count(semester, count)
            logger.info(
                "installment_count_changed",
                extra={"old_count": semester.installment_count, "new_count": count},
            )
            return self._apply(user_id, updated)

    # ------------------------------------------------------------------
    # Expense link
    # ------------------------------------------------------------------

    def mark_installment_paid(
        self,
        user_id: UUID,
        semester_id: str,
        installment_id: int,
        paid_date: date | None = None,
    ) -> list[SemesterData]:
        """
        Record a payment: create the expense, then flip the installment.

        Returns the unchanged semester list when the installment is not
        payable (already paid, or zero amount).
        """
        with LogContext.bind(
            user_id=user_id, semester_id=semester_id, installment_id=installment_id,
        ):
            current = self.get_semesters(user_id)
            semester = find_semester(current, semester_id)
            installment = semester.installment(installment_id)
            if not is_payable(installment):
                logger.info(
                    "mark_paid_ignored",
                    extra={"status": installment.status.value, "amount": installment.amount},
                )
                return current

            tuition = self._config.tuition
            draft = build_tuition_expense(
                semester,
                installment_id,
                paid_date or self._clock.today(),
                category=tuition.expense_category,
                title_template=tuition.title_template,
            )
            expense = self._gateway.create_expense(user_id, draft)
            logger.info(
                "installment_marked_paid",
                extra={
                    "expense_id": expense.id,
                    "amount": expense.amount,
                    "paid_date": expense.expense_date,
                },
            )
            return self.sync(
                user_id,
                replace_semester(current, mark_paid(semester, installment_id, expense)),
            )

    def update_paid_date(
        self,
        user_id: UUID,
        semester_id: str,
        installment_id: int,
        new_date: date,
    ) -> list[SemesterData]:
        """
        Move the paid date of a paid installment and of its linked expense.

        Raises:
            InvalidInstallmentStateError: the installment is not paid.
        """
        with LogContext.bind(
            user_id=user_id, semester_id=semester_id, installment_id=installment_id,
        ):
            current = self.get_semesters(user_id)
            semester = find_semester(current, semester_id)
            updated = change_paid_date(semester, installment_id, new_date)
            expense_id = semester.installment(installment_id).expense_id
            try:
                self._gateway.update_expense_date(user_id, expense_id, new_date)
            except ExpenseNotFoundError:
                logger.warning(
                    "dangling_expense_link",
                    extra={"expense_id": expense_id, "operation": "update_paid_date"},
                )
            return self.sync(user_id, replace_semester(current, updated))

    def on_expense_deleted(self, user_id: UUID, expense_id: UUID) -> list[SemesterData]:
        """
        Un-link hook for the expense collaborator.

        Every installment of the user that references ``expense_id`` goes
        back to unpaid with no expense and no paid date.
        """
        with LogContext.bind(user_id=user_id, expense_id=expense_id):
            current = self.get_semesters(user_id)
            updated, reset = unlink_expense(current, expense_id)
            if not reset:
                return current
            logger.info("expense_unlinked", extra={"installments_reset": reset})
            return self.sync(user_id, updated)

    def repair_dangling_links(self, user_id: UUID) -> int:
        """
        Un-link installments whose expense no longer exists.

        Returns:
            Number of installments reset.
        """
        with LogContext.bind(user_id=user_id):
            current = self.get_semesters(user_id)
            linked = {
                inst.expense_id
                for semester in current
                for inst in semester.installments
                if inst.expense_id is not None
            }
            missing = [
                expense_id for expense_id in sorted(linked, key=str)
                if self._gateway.find_expense(user_id, expense_id) is None
            ]
            if not missing:
                return 0

            total_reset = 0
            for expense_id in missing:
                logger.warning("dangling_expense_link", extra={"expense_id": expense_id})
                current, reset = unlink_expense(current, expense_id)
                total_reset += reset
            self.sync(user_id, current)
            logger.info("dangling_links_repaired", extra={"installments_reset": total_reset})
            return total_reset
