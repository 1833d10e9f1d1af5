"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable snapshot structures that flow through the tracker:
    SemesterData / InstallmentData (the full desired state a caller submits
    and the canonical state the engine returns), and ExpenseDraft /
    ExpenseRecord (the contract with the expense collaborator).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies; ORM -> DTO conversion lives in selectors.

Invariants enforced:
    - Amounts are Decimal, never float (floats are converted on construction).
    - Snapshots are immutable; every operation returns a new snapshot.

Failure modes:
    - InvalidSnapshotError from from_dict() on malformed wire data, and from
      SemesterData construction with a non-string id or name.
    - ValueError on construction with a non-numeric amount.

Wire format (JSON keys kept stable for existing clients):
    {"id": "fall-2025", "name": "Fall 2025", "totalTuition": "30000.00",
     "installments": [{"id": 17, "amount": "7500.00", "status": "paid",
                       "expenseId": "<uuid>", "paidDate": "2025-03-01"}]}
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable
from uuid import UUID

from tuition_kernel.db.types import MONEY_DECIMAL_PLACES, to_decimal
from tuition_kernel.exceptions import InstallmentNotFoundError, InvalidSnapshotError


class InstallmentStatus(str, Enum):
    """Payment state of an installment.

    Contract: UNPAID -> PAID when an expense is recorded; PAID -> UNPAID only
    when the linked expense is deleted.
    """

    UNPAID = "unpaid"
    PAID = "paid"


def _format_money(value: Decimal) -> str:
    return f"{value:.{MONEY_DECIMAL_PLACES}f}"


def _parse_uuid(value: Any) -> UUID | None:
    if value is None or value == "":
        return None
    if isinstance(value, UUID):
        return value
    return UUID(str(value))


def _parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    # Accept full timestamps ("2025-03-01T00:00:00.000Z") as well as dates
    return date.fromisoformat(str(value)[:10])


def _parse_installment_id(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid installment id: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    raise ValueError(f"Invalid installment id: {value!r}")


@dataclass(frozen=True)
class InstallmentData:
    """
    One installment in a semester snapshot.

    ``id`` is None (or unknown to the server) for installments that have
    not been persisted yet.
    """

    id: int | None
    amount: Decimal
    status: InstallmentStatus = InstallmentStatus.UNPAID
    expense_id: UUID | None = None
    paid_date: date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "status", InstallmentStatus(self.status))
        object.__setattr__(self, "expense_id", _parse_uuid(self.expense_id))
        object.__setattr__(self, "paid_date", _parse_date(self.paid_date))

    @property
    def is_paid(self) -> bool:
        return self.status == InstallmentStatus.PAID

    @classmethod
    def unpaid(cls, amount: Decimal | int | str = Decimal("0.00"), id: int | None = None) -> InstallmentData:
        """Factory for a fresh unpaid installment."""
        return cls(id=id, amount=amount)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": _format_money(self.amount),
            "status": self.status.value,
            "expenseId": str(self.expense_id) if self.expense_id else None,
            "paidDate": self.paid_date.isoformat() if self.paid_date else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstallmentData:
        if not isinstance(data, dict):
            raise InvalidSnapshotError(
                f"installment must be an object, got {type(data).__name__}"
            )
        return cls(
            id=_parse_installment_id(data.get("id")),
            amount=data.get("amount", "0"),
            status=data.get("status", InstallmentStatus.UNPAID.value),
            expense_id=data.get("expenseId"),
            paid_date=data.get("paidDate"),
        )


@dataclass(frozen=True)
class SemesterData:
    """
    One semester in a snapshot, with its ordered installment schedule.

    Installment order is payment order: installments[0] is installment #1.
    """

    id: str
    name: str
    total_tuition: Decimal
    installments: tuple[InstallmentData, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str):
            raise InvalidSnapshotError(
                f"semester id must be a string, got {type(self.id).__name__}"
            )
        if not isinstance(self.name, str):
            raise InvalidSnapshotError(
                f"semester name must be a string, got {type(self.name).__name__}",
                semester_id=self.id,
            )
        object.__setattr__(self, "total_tuition", to_decimal(self.total_tuition))
        object.__setattr__(self, "installments", tuple(self.installments))

    @property
    def installment_count(self) -> int:
        return len(self.installments)

    @property
    def paid_total(self) -> Decimal:
        return sum((i.amount for i in self.installments if i.is_paid), Decimal("0"))

    def installment(self, installment_id: int) -> InstallmentData:
        """Return the installment with ``installment_id``."""
        for inst in self.installments:
            if inst.id == installment_id:
                return inst
        raise InstallmentNotFoundError(self.id, installment_id)

    def sequence_of(self, installment_id: int) -> int:
        """1-based payment sequence number of ``installment_id``."""
        for index, inst in enumerate(self.installments):
            if inst.id == installment_id:
                return index + 1
        raise InstallmentNotFoundError(self.id, installment_id)

    def with_installments(self, installments: Iterable[InstallmentData]) -> SemesterData:
        return replace(self, installments=tuple(installments))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "totalTuition": _format_money(self.total_tuition),
            "installments": [i.to_dict() for i in self.installments],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SemesterData:
        semester_id = data.get("id") if isinstance(data, dict) else None
        try:
            return cls(
                id=data["id"],
                name=data["name"],
                total_tuition=data.get("totalTuition", "0"),
                installments=tuple(
                    InstallmentData.from_dict(i) for i in data.get("installments") or ()
                ),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidSnapshotError(str(e), semester_id=semester_id) from e


def snapshot_from_wire(payload: Iterable[dict[str, Any]]) -> list[SemesterData]:
    """Parse a JSON-decoded list of semesters."""
    if isinstance(payload, (dict, str, bytes)):
        raise InvalidSnapshotError("expected a list of semesters")
    return [SemesterData.from_dict(item) for item in payload]


def snapshot_to_wire(semesters: Iterable[SemesterData]) -> list[dict[str, Any]]:
    """Serialize semesters to JSON-ready dicts."""
    return [s.to_dict() for s in semesters]


@dataclass(frozen=True)
class ExpenseDraft:
    """Data for an expense the core asks the collaborator to create."""

    title: str
    amount: Decimal
    category: str
    expense_date: date
    is_recurring: bool = False
    payment_method: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))


@dataclass(frozen=True)
class ExpenseRecord:
    """An expense as stored by the collaborator."""

    id: UUID
    title: str
    amount: Decimal
    category: str
    expense_date: date
    is_recurring: bool = False
