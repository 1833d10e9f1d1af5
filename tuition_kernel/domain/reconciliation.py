"""
Reconciliation -- pure diff planning for full-snapshot semester sync.

Responsibility:
    Validates an incoming snapshot and partitions incoming ids against
    existing ids into {to-create, to-update, to-delete} buckets, for
    semesters and, inside each surviving semester, for installments.
    Also detects snapshots that would delete a persisted paid installment.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Consumed by services/reconciliation_service.py, which applies the plan.

Invariants enforced:
    - A snapshot is a complete desired state, not a patch: any existing id
      absent from it lands in to_delete.
    - Installment identity is matched by id only.  None and ids unknown to
      the existing semester are creates, never updates.
    - Paid floor: a surviving semester may not lose a paid installment
      through sync (PaidInstallmentRemovalError).  Deleting the whole
      semester is allowed.
    - Link consistency: paid <=> (expense_id and paid_date present).

Failure modes:
    - InvalidSnapshotError: duplicate ids, blank keys, negative amounts.
    - InvalidInstallmentStateError: status disagrees with link fields.
    - PaidInstallmentRemovalError: see above.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from tuition_kernel.domain.dtos import InstallmentData, SemesterData
from tuition_kernel.domain.installment_policy import paid_floor
from tuition_kernel.exceptions import (
    InvalidInstallmentStateError,
    InvalidSnapshotError,
    PaidInstallmentRemovalError,
)

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class DiffSet(Generic[K]):
    """
    Partition of incoming ids against existing ids.

    ``to_create`` keeps incoming order and may contain None (an installment
    the client has not persisted yet).  ``to_update`` keeps incoming order.
    ``to_delete`` keeps existing order.
    """

    to_create: tuple[K | None, ...]
    to_update: tuple[K, ...]
    to_delete: tuple[K, ...]

    @property
    def has_structural_changes(self) -> bool:
        return bool(self.to_create or self.to_delete)


def partition_ids(
    existing_ids: Iterable[K],
    incoming_ids: Iterable[K | None],
) -> DiffSet[K]:
    """Partition ``incoming_ids`` against ``existing_ids``."""
    existing = list(dict.fromkeys(existing_ids))
    known = set(existing)

    to_create: list[K | None] = []
    to_update: list[K] = []
    for key in incoming_ids:
        if key is not None and key in known:
            to_update.append(key)
        else:
            to_create.append(key)

    kept = set(to_update)
    to_delete = [key for key in existing if key not in kept]
    return DiffSet(tuple(to_create), tuple(to_update), tuple(to_delete))


def plan_semester_diff(
    existing: Iterable[str],
    incoming: Sequence[SemesterData],
) -> DiffSet[str]:
    return partition_ids(existing, (s.id for s in incoming))


def plan_installment_diff(
    existing: SemesterData,
    incoming: SemesterData,
) -> DiffSet[int]:
    return partition_ids(
        (i.id for i in existing.installments if i.id is not None),
        (i.id for i in incoming.installments),
    )


def _validate_installment(semester_id: str, sequence: int, inst: InstallmentData) -> None:
    if inst.amount < 0:
        raise InvalidSnapshotError(
            f"installment #{sequence} has a negative amount ({inst.amount})",
            semester_id=semester_id,
        )
    if inst.is_paid:
        if inst.expense_id is None:
            raise InvalidInstallmentStateError(
                semester_id, sequence, "paid installment has no linked expense"
            )
        if inst.paid_date is None:
            raise InvalidInstallmentStateError(
                semester_id, sequence, "paid installment has no paid date"
            )
    else:
        if inst.expense_id is not None:
            raise InvalidInstallmentStateError(
                semester_id, sequence, "unpaid installment is linked to an expense"
            )
        if inst.paid_date is not None:
            raise InvalidInstallmentStateError(
                semester_id, sequence, "unpaid installment has a paid date"
            )


def validate_snapshot(semesters: Sequence[SemesterData]) -> None:
    """
    Reject structurally invalid snapshots before anything is persisted.

    Raises:
        InvalidSnapshotError, InvalidInstallmentStateError
    """
    seen: set[str] = set()
    for semester in semesters:
        if not isinstance(semester.id, str) or not semester.id.strip():
            raise InvalidSnapshotError("semester id is blank or not a string")
        if semester.id in seen:
            raise InvalidSnapshotError("duplicate semester id", semester_id=semester.id)
        seen.add(semester.id)

        if not isinstance(semester.name, str) or not semester.name.strip():
            raise InvalidSnapshotError("semester name is blank", semester_id=semester.id)
        if semester.total_tuition < 0:
            raise InvalidSnapshotError(
                f"total tuition is negative ({semester.total_tuition})",
                semester_id=semester.id,
            )

        installment_ids: set[int] = set()
        for sequence, inst in enumerate(semester.installments, start=1):
            if inst.id is not None:
                if inst.id in installment_ids:
                    raise InvalidSnapshotError(
                        f"duplicate installment id {inst.id}",
                        semester_id=semester.id,
                    )
                installment_ids.add(inst.id)
            _validate_installment(semester.id, sequence, inst)


def guard_paid_removals(
    existing: Mapping[str, SemesterData],
    incoming: Sequence[SemesterData],
) -> None:
    """
    Raise if syncing ``incoming`` would delete a persisted paid installment
    of a semester that survives the sync.
    """
    for semester in incoming:
        current = existing.get(semester.id)
        if current is None:
            continue
        diff = plan_installment_diff(current, semester)
        removed = set(diff.to_delete)
        paid_removed = [
            inst.id for inst in current.installments
            if inst.id in removed and inst.is_paid
        ]
        if paid_removed:
            raise PaidInstallmentRemovalError(
                semester.id,
                paid_removed,
                minimum_count=min(
                    paid_floor(current.installments), current.installment_count,
                ),
            )
