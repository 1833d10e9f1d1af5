"""
Service layer for Expense records.

Local expense store used when expenses live in the same database as the
tracker.  Every write that touches an expense linked from an installment
keeps the installment side consistent in the same transaction.

Returns ExpenseRecord DTOs instead of ORM entities.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select

from tuition_kernel.db.types import round_money
from tuition_kernel.domain.dtos import ExpenseDraft, ExpenseRecord
from tuition_kernel.exceptions import ExpenseNotFoundError
from tuition_kernel.logging_config import get_logger
from tuition_kernel.models.expense import Expense
from tuition_kernel.selectors.semester_selector import LinkedInstallment
from tuition_kernel.services.base import BaseService
from tuition_kernel.services.installment_link_service import InstallmentLinkService

logger = get_logger("services.expense")


class ExpenseService(BaseService[Expense]):
    """
    Service for managing expenses.

    Deleting an expense un-links any installment that referenced it;
    moving an expense's date moves the linked installments' paid_date.
    """

    def _to_dto(self, expense: Expense) -> ExpenseRecord:
        """Convert ORM Expense to ExpenseRecord DTO."""
        return ExpenseRecord(
            id=expense.id,
            title=expense.title,
            amount=round_money(expense.amount),
            category=expense.category,
            expense_date=expense.expense_date,
            is_recurring=expense.is_recurring,
        )

    def _find(self, user_id: UUID, expense_id: UUID) -> Expense | None:
        stmt = select(Expense).where(Expense.id == expense_id, Expense.user_id == user_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def _get(self, user_id: UUID, expense_id: UUID) -> Expense:
        expense = self._find(user_id, expense_id)
        if expense is None:
            raise ExpenseNotFoundError(str(expense_id))
        return expense

    def get_expense(self, user_id: UUID, expense_id: UUID) -> ExpenseRecord:
        """
        Get an expense of ``user_id``.

        Raises:
            ExpenseNotFoundError: If the expense doesn't exist for the user.
        """
        return self._to_dto(self._get(user_id, expense_id))

    def find_expense(self, user_id: UUID, expense_id: UUID) -> ExpenseRecord | None:
        expense = self._find(user_id, expense_id)
        return self._to_dto(expense) if expense else None

    def create_expense(self, user_id: UUID, draft: ExpenseDraft) -> ExpenseRecord:
        """
        Create a new expense.

        Raises:
            ValueError: blank title or non-positive amount.
        """
        if not draft.title or not draft.title.strip():
            raise ValueError("Expense title is required")
        amount = round_money(draft.amount)
        if amount <= 0:
            raise ValueError(f"Expense amount must be positive, got {amount}")

        expense = Expense(
            user_id=user_id,
            title=draft.title.strip(),
            amount=amount,
            category=draft.category,
            expense_date=draft.expense_date,
            payment_method=draft.payment_method,
            notes=draft.notes,
            is_recurring=draft.is_recurring,
        )
        self.session.add(expense)
        self.session.flush()
        logger.info(
            "expense_created",
            extra={"expense_id": expense.id, "amount": amount, "category": draft.category},
        )
        return self._to_dto(expense)

    def update_expense_date(
        self,
        user_id: UUID,
        expense_id: UUID,
        new_date: date,
    ) -> ExpenseRecord:
        """
        Move an expense to ``new_date`` and mirror it onto linked installments.

        Raises:
            ExpenseNotFoundError: If the expense doesn't exist for the user.
        """
        expense = self._get(user_id, expense_id)
        expense.expense_date = new_date
        self.session.flush()
        InstallmentLinkService(self.session).sync_paid_date(user_id, expense_id, new_date)
        return self._to_dto(expense)

    def delete_expense(self, user_id: UUID, expense_id: UUID) -> list[LinkedInstallment]:
        """
        Delete an expense and un-link every installment that referenced it.

        Returns:
            The installments that were reset to unpaid.

        Raises:
            ExpenseNotFoundError: If the expense doesn't exist for the user.
        """
        expense = self._get(user_id, expense_id)
        self.session.delete(expense)
        self.session.flush()
        logger.info("expense_deleted", extra={"expense_id": expense_id})
        return InstallmentLinkService(self.session).unlink_expense(user_id, expense_id)
