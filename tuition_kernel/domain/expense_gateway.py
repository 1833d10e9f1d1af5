"""
ExpenseGateway -- the contract the core consumes from the expense collaborator.

Responsibility:
    Abstracts expense storage so the tracker can create tuition expenses and
    keep their dates in step with installment paid dates, regardless of who
    owns the expense records.

Architecture position:
    Kernel > Domain -- interface only.  The SQL-backed implementation lives
    in tuition_services.expense_gateway.

Contract:
    - create_expense() returns only after the expense is durable.  The core
      relies on this ordering: an installment is never marked paid before
      its expense exists.
    - Deleting an expense is the collaborator's operation; it must call the
      core's un-link hook (TuitionTracker.on_expense_deleted) afterwards,
      or perform the equivalent inside its own transaction.
"""

from abc import ABC, abstractmethod
from datetime import date
from uuid import UUID

from tuition_kernel.domain.dtos import ExpenseDraft, ExpenseRecord


class ExpenseGateway(ABC):
    """Expense collaborator interface."""

    @abstractmethod
    def create_expense(self, user_id: UUID, draft: ExpenseDraft) -> ExpenseRecord:
        """Durably create an expense and return it."""
        ...

    @abstractmethod
    def update_expense_date(self, user_id: UUID, expense_id: UUID, new_date: date) -> ExpenseRecord:
        """
        Move an expense to ``new_date``.

        Raises:
            ExpenseNotFoundError: the expense no longer exists.
        """
        ...

    @abstractmethod
    def find_expense(self, user_id: UUID, expense_id: UUID) -> ExpenseRecord | None:
        """Return the expense, or None if it does not exist."""
        ...
