"""
InstallmentLinkService -- keeps installment rows consistent with expenses.

Responsibility:
    Row-level maintenance of the weak installment -> expense reference when
    the EXPENSE side changes: un-linking installments whose expense was
    deleted, and mirroring an expense date change into paid_date.

Architecture position:
    Kernel > Services -- imperative shell.  Called by ExpenseService inside
    the same transaction as the expense write, and by TuitionTracker for
    expenses stored elsewhere.

Invariants enforced:
    - After unlink_expense(user, X) no installment of the user references X,
      and every formerly linked installment is unpaid with no paid_date.
    - After sync_paid_date(user, X, d) every installment linked to X has
      paid_date == d.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from tuition_kernel.domain.dtos import InstallmentStatus
from tuition_kernel.logging_config import get_logger
from tuition_kernel.models.installment import TuitionInstallment
from tuition_kernel.selectors.semester_selector import LinkedInstallment
from tuition_kernel.services.base import BaseService

logger = get_logger("services.installment_link")


class InstallmentLinkService(BaseService[TuitionInstallment]):
    """Repairs and mirrors installment links from the expense side."""

    def _linked_rows(self, user_id: UUID, expense_id: UUID) -> list[TuitionInstallment]:
        stmt = (
            select(TuitionInstallment)
            .where(
                TuitionInstallment.semester_user_id == user_id,
                TuitionInstallment.expense_id == expense_id,
            )
            .order_by(TuitionInstallment.semester_external_id, TuitionInstallment.sequence)
        )
        return list(self.session.execute(stmt).scalars())

    def unlink_expense(self, user_id: UUID, expense_id: UUID) -> list[LinkedInstallment]:
        """
        Reset every installment of ``user_id`` linked to ``expense_id``.

        Returns:
            The installments that were reset (empty if none referenced it).
        """
        rows = self._linked_rows(user_id, expense_id)
        unlinked = [
            LinkedInstallment(
                semester_id=row.semester_external_id,
                installment_id=row.id,
                sequence=row.sequence,
                expense_id=expense_id,
            )
            for row in rows
        ]
        for row in rows:
            row.status = InstallmentStatus.UNPAID.value
            row.expense_id = None
            row.paid_date = None
        self.session.flush()

        if unlinked:
            logger.info(
                "installments_unlinked",
                extra={
                    "expense_id": expense_id,
                    "installment_ids": [u.installment_id for u in unlinked],
                },
            )
        return unlinked

    def sync_paid_date(self, user_id: UUID, expense_id: UUID, new_date: date) -> int:
        """Mirror an expense date change onto its linked installments."""
        rows = self._linked_rows(user_id, expense_id)
        changed = 0
        for row in rows:
            if row.paid_date != new_date:
                row.paid_date = new_date
                changed += 1
        self.session.flush()
        if changed:
            logger.info(
                "paid_date_synced",
                extra={"expense_id": expense_id, "paid_date": new_date, "installments": changed},
            )
        return changed
