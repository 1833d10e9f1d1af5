"""SQLAlchemy ORM models for the tuition kernel."""

from tuition_kernel.models.expense import Expense
from tuition_kernel.models.installment import InstallmentStatus, TuitionInstallment
from tuition_kernel.models.semester import Semester

__all__ = [
    "Expense",
    "InstallmentStatus",
    "Semester",
    "TuitionInstallment",
]
