"""
Module: tuition_kernel.models.expense
Responsibility: ORM persistence for expense records.  Tuition payments are
    recorded as expenses; installments point at them by id.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - amount is stored in canonical money form.
    - Nothing references this table with a foreign key.  Deleting an expense
      never cascades; un-linking installments is the service layer's job.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from tuition_kernel.db.base import TrackedBase, UUIDKeyed, UUIDString


class Expense(UUIDKeyed, TrackedBase):
    """A single spending record owned by one user."""

    __tablename__ = "expenses"

    __table_args__ = (
        Index("idx_expense_user_date", "user_id", "expense_date"),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(
        nullable=False,
    )

    category: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    expense_date: Mapped[date] = mapped_column(
        nullable=False,
    )

    payment_method: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(
        String(4000),
        nullable=True,
    )

    is_recurring: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    def __repr__(self) -> str:
        return f"<Expense {self.id}: {self.title} {self.amount} on {self.expense_date}>"
