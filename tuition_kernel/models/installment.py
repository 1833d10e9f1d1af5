"""
Module: tuition_kernel.models.installment
Responsibility: ORM persistence for one scheduled tuition payment.
Architecture position: Kernel > Models.  May import from db/ and the
    status enum in domain/dtos.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    - Identity: ``id`` is assigned by the database and never reused.  Other
      parts of the system may hold it, so sync updates rows in place.
    - Link consistency (ck_installment_link): a paid row has both expense_id
      and paid_date; an unpaid row has no expense_id.
    - expense_id is a WEAK reference: no foreign key, no cascade.  The
      referenced expense may disappear independently.

Failure modes:
    - IntegrityError when a write violates ck_installment_link or the
      semester foreign key.
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKeyConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tuition_kernel.db.base import TrackedBase, UUIDString
from tuition_kernel.domain.dtos import InstallmentStatus

if TYPE_CHECKING:
    from tuition_kernel.models.semester import Semester


class TuitionInstallment(TrackedBase):
    """
    One scheduled partial payment of a semester's tuition.

    Guarantees:
        - Belongs to exactly one (external_id, user_id) semester and is
          deleted with it (ON DELETE CASCADE plus ORM delete-orphan).
        - sequence is 1-based and follows the snapshot order.
    """

    __tablename__ = "tuition_installments"

    __table_args__ = (
        ForeignKeyConstraint(
            ["semester_external_id", "semester_user_id"],
            ["semesters.external_id", "semesters.user_id"],
            ondelete="CASCADE",
            name="fk_installment_semester",
        ),
        CheckConstraint(
            "(status = 'paid' AND expense_id IS NOT NULL AND paid_date IS NOT NULL)"
            " OR (status = 'unpaid' AND expense_id IS NULL)",
            name="ck_installment_link",
        ),
        Index("idx_installment_semester", "semester_external_id", "semester_user_id"),
        Index("idx_installment_expense", "expense_id"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(
        primary_key=True,
        autoincrement=True,
    )

    semester_external_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    semester_user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    # Payment order within the semester, 1-based
    sequence: Mapped[int] = mapped_column(
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0.00"),
    )

    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=InstallmentStatus.UNPAID.value,
    )

    # Weak reference -- deliberately no ForeignKey
    expense_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    paid_date: Mapped[date | None] = mapped_column(
        nullable=True,
    )

    semester: Mapped["Semester"] = relationship(
        back_populates="installments",
    )

    def __repr__(self) -> str:
        return (
            f"<TuitionInstallment {self.id} #{self.sequence} of "
            f"{self.semester_external_id}: {self.amount} {self.status}>"
        )
