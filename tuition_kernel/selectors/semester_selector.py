"""
Semester query selector.

Provides read-only access to a user's semesters and their installments.

Key design decisions:
- Returns SemesterData DTOs, never ORM rows
- Uses the caller's Session; reads see the caller's flushed writes
- populate_existing refreshes rows already in the identity map, so a read
  after a reconcile flush returns the canonical post-write state
- expense_id is read as-is; a dangling reference is reported by
  find_dangling_links(), never raised
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from tuition_kernel.db.types import round_money
from tuition_kernel.domain.dtos import InstallmentData, InstallmentStatus, SemesterData
from tuition_kernel.exceptions import SemesterNotFoundError
from tuition_kernel.models.expense import Expense
from tuition_kernel.models.installment import TuitionInstallment
from tuition_kernel.models.semester import Semester
from tuition_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class LinkedInstallment:
    """Where an expense is referenced from."""

    semester_id: str
    installment_id: int
    sequence: int
    expense_id: UUID


def installment_to_dto(model: TuitionInstallment) -> InstallmentData:
    return InstallmentData(
        id=model.id,
        amount=round_money(model.amount),
        status=InstallmentStatus(model.status),
        expense_id=model.expense_id,
        paid_date=model.paid_date,
    )


def semester_to_dto(model: Semester) -> SemesterData:
    return SemesterData(
        id=model.external_id,
        name=model.name,
        total_tuition=round_money(model.total_tuition),
        installments=tuple(
            installment_to_dto(i)
            for i in sorted(model.installments, key=lambda i: (i.sequence, i.id))
        ),
    )


class SemesterSelector(BaseSelector[Semester]):
    """Read-side queries over semesters and installments."""

    def _semesters_stmt(self, user_id: UUID):
        return (
            select(Semester)
            .where(Semester.user_id == user_id)
            .options(selectinload(Semester.installments))
            .order_by(Semester.position, Semester.external_id)
            .execution_options(populate_existing=True)
        )

    def list_for_user(self, user_id: UUID) -> list[SemesterData]:
        """All semesters of ``user_id`` in their synced order."""
        rows = self.session.execute(self._semesters_stmt(user_id)).scalars().all()
        return [semester_to_dto(row) for row in rows]

    def get(self, user_id: UUID, semester_id: str) -> SemesterData:
        """
        One semester of ``user_id``.

        Raises:
            SemesterNotFoundError: no such semester for the user.
        """
        stmt = self._semesters_stmt(user_id).where(Semester.external_id == semester_id)
        row = self.session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise SemesterNotFoundError(semester_id)
        return semester_to_dto(row)

    def has_semesters(self, user_id: UUID) -> bool:
        stmt = select(Semester.external_id).where(Semester.user_id == user_id).limit(1)
        return self.session.execute(stmt).first() is not None

    def find_installments_by_expense(
        self,
        user_id: UUID,
        expense_id: UUID,
    ) -> list[LinkedInstallment]:
        """Installments of ``user_id`` that reference ``expense_id``."""
        stmt = (
            select(TuitionInstallment)
            .where(
                TuitionInstallment.semester_user_id == user_id,
                TuitionInstallment.expense_id == expense_id,
            )
            .order_by(TuitionInstallment.semester_external_id, TuitionInstallment.sequence)
        )
        return [
            LinkedInstallment(
                semester_id=row.semester_external_id,
                installment_id=row.id,
                sequence=row.sequence,
                expense_id=row.expense_id,
            )
            for row in self.session.execute(stmt).scalars()
        ]

    def linked_expense_ids(self, user_id: UUID) -> set[UUID]:
        """Every expense id referenced by the user's installments."""
        stmt = (
            select(TuitionInstallment.expense_id)
            .where(
                TuitionInstallment.semester_user_id == user_id,
                TuitionInstallment.expense_id.is_not(None),
            )
            .distinct()
        )
        return set(self.session.execute(stmt).scalars())

    def find_dangling_links(self, user_id: UUID) -> list[LinkedInstallment]:
        """
        Installments whose expense no longer exists in the local expense store.

        Only meaningful when expenses live in this database; external
        collaborators are checked through ExpenseGateway.find_expense().
        """
        stmt = (
            select(TuitionInstallment)
            .outerjoin(Expense, Expense.id == TuitionInstallment.expense_id)
            .where(
                TuitionInstallment.semester_user_id == user_id,
                TuitionInstallment.expense_id.is_not(None),
                Expense.id.is_(None),
            )
            .order_by(TuitionInstallment.semester_external_id, TuitionInstallment.sequence)
        )
        return [
            LinkedInstallment(
                semester_id=row.semester_external_id,
                installment_id=row.id,
                sequence=row.sequence,
                expense_id=row.expense_id,
            )
            for row in self.session.execute(stmt).scalars()
        ]
