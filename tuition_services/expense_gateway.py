"""
SQL-backed expense collaborator.

Implements ExpenseGateway on top of the local ``expenses`` table.  Every
call runs in its own transaction, so create_expense() has committed by the
time it returns -- the ordering mark-paid depends on.

delete_expense() deletes the expense and un-links its installments in the
same transaction, which is the collaborator's half of the link protocol.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from tuition_kernel.db.engine import session_scope
from tuition_kernel.domain.dtos import ExpenseDraft, ExpenseRecord
from tuition_kernel.domain.expense_gateway import ExpenseGateway
from tuition_kernel.selectors.semester_selector import LinkedInstallment
from tuition_kernel.services.expense_service import ExpenseService


class SqlExpenseGateway(ExpenseGateway):
    """ExpenseGateway over the tracker's own database."""

    def __init__(self, timeout_seconds: float | None = None):
        self._timeout_seconds = timeout_seconds

    def create_expense(self, user_id: UUID, draft: ExpenseDraft) -> ExpenseRecord:
        with session_scope(timeout_seconds=self._timeout_seconds) as session:
            return ExpenseService(session).create_expense(user_id, draft)

    def update_expense_date(
        self,
        user_id: UUID,
        expense_id: UUID,
        new_date: date,
    ) -> ExpenseRecord:
        with session_scope(timeout_seconds=self._timeout_seconds) as session:
            return ExpenseService(session).update_expense_date(user_id, expense_id, new_date)

    def find_expense(self, user_id: UUID, expense_id: UUID) -> ExpenseRecord | None:
        with session_scope() as session:
            return ExpenseService(session).find_expense(user_id, expense_id)

    def delete_expense(self, user_id: UUID, expense_id: UUID) -> list[LinkedInstallment]:
        """
        Delete an expense and reset the installments that referenced it.

        Raises:
            ExpenseNotFoundError: the expense does not exist for the user.
        """
        with session_scope(timeout_seconds=self._timeout_seconds) as session:
            return ExpenseService(session).delete_expense(user_id, expense_id)
