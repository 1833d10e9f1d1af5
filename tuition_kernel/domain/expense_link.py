"""
Expense Link -- snapshot transformations for the installment <-> expense link.

Responsibility:
    Builds the expense draft for a tuition payment and produces the new
    snapshots for "mark paid", "edit paid date" and "expense deleted".
    Talking to the expense collaborator is the service layer's job; these
    functions only decide what the snapshot should look like.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - A payable installment is unpaid with amount > 0; anything else is a
      silent no-op for mark-paid (duplicate UI events).
    - mark_paid() requires an already-created ExpenseRecord, so a paid
      installment always has a real expense id and a paid date equal to the
      expense date.
    - unlink_expense() resets EVERY installment pointing at the expense,
      across all semesters of the snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from uuid import UUID

from tuition_kernel.domain.dtos import (
    ExpenseDraft,
    ExpenseRecord,
    InstallmentData,
    InstallmentStatus,
    SemesterData,
)
from tuition_kernel.exceptions import InvalidInstallmentStateError, SemesterNotFoundError

DEFAULT_TITLE_TEMPLATE = "Tuition - {semester} #{sequence}"
DEFAULT_EXPENSE_CATEGORY = "Tuition"


def find_semester(semesters: Iterable[SemesterData], semester_id: str) -> SemesterData:
    for semester in semesters:
        if semester.id == semester_id:
            return semester
    raise SemesterNotFoundError(semester_id)


def replace_semester(
    semesters: Sequence[SemesterData],
    updated: SemesterData,
) -> list[SemesterData]:
    """Return ``semesters`` with the entry sharing ``updated.id`` swapped out."""
    find_semester(semesters, updated.id)
    return [updated if s.id == updated.id else s for s in semesters]


def is_payable(installment: InstallmentData) -> bool:
    return not installment.is_paid and installment.amount > 0


def build_tuition_expense(
    semester: SemesterData,
    installment_id: int,
    paid_on: date,
    category: str = DEFAULT_EXPENSE_CATEGORY,
    title_template: str = DEFAULT_TITLE_TEMPLATE,
) -> ExpenseDraft:
    """Expense data for paying ``installment_id`` of ``semester`` on ``paid_on``."""
    installment = semester.installment(installment_id)
    title = title_template.format(
        semester=semester.name,
        sequence=semester.sequence_of(installment_id),
    )
    return ExpenseDraft(
        title=title,
        amount=installment.amount,
        category=category,
        expense_date=paid_on,
        is_recurring=False,
    )


def _update_installment(
    semester: SemesterData,
    installment_id: int,
    updated: InstallmentData,
) -> SemesterData:
    semester.installment(installment_id)
    return semester.with_installments(
        updated if inst.id == installment_id else inst
        for inst in semester.installments
    )


def mark_paid(
    semester: SemesterData,
    installment_id: int,
    expense: ExpenseRecord,
) -> SemesterData:
    """Flip ``installment_id`` to paid and link it to ``expense``."""
    current = semester.installment(installment_id)
    paid = InstallmentData(
        id=current.id,
        amount=current.amount,
        status=InstallmentStatus.PAID,
        expense_id=expense.id,
        paid_date=expense.expense_date,
    )
    return _update_installment(semester, installment_id, paid)


def change_paid_date(
    semester: SemesterData,
    installment_id: int,
    new_date: date,
) -> SemesterData:
    """
    Move the paid date of a paid installment.

    Raises:
        InvalidInstallmentStateError: installment is not paid.
    """
    current = semester.installment(installment_id)
    if not current.is_paid:
        raise InvalidInstallmentStateError(
            semester.id,
            semester.sequence_of(installment_id),
            "only a paid installment has a paid date to change",
        )
    moved = InstallmentData(
        id=current.id,
        amount=current.amount,
        status=current.status,
        expense_id=current.expense_id,
        paid_date=new_date,
    )
    return _update_installment(semester, installment_id, moved)


def unlink_expense(
    semesters: Sequence[SemesterData],
    expense_id: UUID,
) -> tuple[list[SemesterData], int]:
    """
    Reset every installment linked to ``expense_id`` back to unpaid.

    Returns:
        (new snapshot, number of installments reset)
    """
    reset = 0
    result: list[SemesterData] = []
    for semester in semesters:
        installments = []
        for inst in semester.installments:
            if inst.expense_id == expense_id:
                installments.append(InstallmentData(id=inst.id, amount=inst.amount))
                reset += 1
            else:
                installments.append(inst)
        result.append(semester.with_installments(installments))
    return result, reset
