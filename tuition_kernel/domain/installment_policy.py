"""
Installment Policy -- rules for changing a semester's installment schedule.

Responsibility:
    Pure snapshot transformations that run BEFORE reconciliation: changing
    the installment count, changing the tuition total, and re-dividing the
    outstanding tuition over the unpaid installments.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Paid floor: a reduction may never go below 1 + the position of the
      last paid installment (1-based).  A reduction therefore never deletes
      a paid installment and always leaves an unpaid slot after the last
      payment to carry the outstanding balance.  Keeping or growing the
      count is always allowed.
    - Paid amounts are frozen: re-division only touches unpaid installments.
    - Unpaid amounts sum to (total - paid amounts), clamped at zero, with the
      rounding residue on the last unpaid installment.

Failure modes:
    - InvalidInstallmentCountError: requested count < 1.
    - PaidFloorViolationError: requested count below the paid floor; carries
      minimum_count for the caller to retry with.
    - InvalidSnapshotError: negative tuition total.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from tuition_kernel.db.types import ZERO, round_money, split_evenly
from tuition_kernel.domain.dtos import InstallmentData, SemesterData
from tuition_kernel.exceptions import (
    InvalidInstallmentCountError,
    InvalidSnapshotError,
    PaidFloorViolationError,
)


def paid_floor(installments: Sequence[InstallmentData]) -> int:
    """
    Smallest count a schedule may be reduced to.

    Every paid installment survives and one unpaid slot follows the last
    payment: [paid, paid, unpaid, unpaid] -> 3, no payments -> 1.
    """
    last_paid = 0
    for position, inst in enumerate(installments, start=1):
        if inst.is_paid:
            last_paid = position
    return last_paid + 1


def minimum_installment_count(semester: SemesterData) -> int:
    """Smallest count ``semester`` can be changed to."""
    return max(1, min(paid_floor(semester.installments), semester.installment_count))


def validate_installment_count(semester: SemesterData, count: int) -> None:
    """
    Check a proposed installment count against the paid floor.

    Raises:
        InvalidInstallmentCountError: count < 1.
        PaidFloorViolationError: a reduction below the paid floor.
    """
    if count < 1:
        raise InvalidInstallmentCountError(semester.id, count)
    if count >= semester.installment_count:
        return
    floor = paid_floor(semester.installments)
    if count < floor:
        raise PaidFloorViolationError(semester.id, count, floor)


def redistribute(semester: SemesterData) -> SemesterData:
    """Spread the outstanding tuition evenly over the unpaid installments."""
    unpaid_positions = [
        index for index, inst in enumerate(semester.installments) if not inst.is_paid
    ]
    if not unpaid_positions:
        return semester

    outstanding = round_money(semester.total_tuition) - round_money(semester.paid_total)
    shares = split_evenly(max(outstanding, ZERO), len(unpaid_positions))

    installments = list(semester.installments)
    for index, share in zip(unpaid_positions, shares):
        installments[index] = InstallmentData(
            id=installments[index].id,
            amount=share,
        )
    return semester.with_installments(installments)


def change_installment_count(semester: SemesterData, count: int) -> SemesterData:
    """
    Return ``semester`` with exactly ``count`` installments.

    Existing installments keep their position and identity; extra slots are
    new unpaid installments (id None); surplus unpaid installments at the end
    are dropped.  Unpaid amounts are re-divided afterwards.  Asking for the
    current count returns ``semester`` as is, keeping hand-edited amounts.
    """
    validate_installment_count(semester, count)
    if count == semester.installment_count:
        return semester
    kept = list(semester.installments[:count])
    kept.extend(InstallmentData.unpaid() for _ in range(count - len(kept)))
    return redistribute(semester.with_installments(kept))


def change_total_tuition(semester: SemesterData, total_tuition: Decimal | int | str) -> SemesterData:
    """Return ``semester`` with a new total and re-divided unpaid amounts."""
    total = round_money(total_tuition)
    if total < 0:
        raise InvalidSnapshotError(
            f"total tuition is negative ({total})", semester_id=semester.id
        )
    updated = SemesterData(
        id=semester.id,
        name=semester.name,
        total_tuition=total,
        installments=semester.installments,
    )
    return redistribute(updated)


def default_schedule(
    semester_id: str,
    name: str,
    installment_count: int,
    total_tuition: Decimal = ZERO,
) -> SemesterData:
    """A fresh semester with ``installment_count`` unpaid installments."""
    if installment_count < 1:
        raise InvalidInstallmentCountError(semester_id, installment_count)
    semester = SemesterData(
        id=semester_id,
        name=name,
        total_tuition=round_money(total_tuition),
        installments=tuple(InstallmentData.unpaid() for _ in range(installment_count)),
    )
    return redistribute(semester)
