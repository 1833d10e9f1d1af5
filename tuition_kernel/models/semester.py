"""
Module: tuition_kernel.models.semester
Responsibility: ORM persistence for a user's billing terms.  A Semester owns
    its installment schedule; deleting the semester deletes the schedule.
Architecture position: Kernel > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Composite identity: (external_id, user_id).  The same term key may
      exist once per user.
    - total_tuition is stored in canonical money form (Numeric(12, 2)).
    - Installments are ordered by sequence (installment 1 due first).

Failure modes:
    - IntegrityError on a duplicate (external_id, user_id) pair.
"""

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tuition_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from tuition_kernel.models.installment import TuitionInstallment


class Semester(TrackedBase):
    """
    A billing term with its tuition total and installment schedule.

    Contract:
        The semester row is the owner of its installments
        (cascade="all, delete-orphan").  ``position`` records where the term
        appeared in the last synced snapshot so reads return the caller's
        order.

    Non-goals:
        - Does NOT check that installment amounts sum to total_tuition;
          amounts are independently editable.
    """

    __tablename__ = "semesters"

    __table_args__ = (
        Index("idx_semester_user", "user_id"),
    )

    # Term key chosen by the client, e.g. "fall-2025"
    external_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        primary_key=True,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    total_tuition: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0.00"),
    )

    position: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
    )

    installments: Mapped[list["TuitionInstallment"]] = relationship(
        back_populates="semester",
        cascade="all, delete-orphan",
        order_by="TuitionInstallment.sequence",
    )

    def __repr__(self) -> str:
        return f"<Semester {self.external_id}: {self.name} ({len(self.installments)} installments)>"
