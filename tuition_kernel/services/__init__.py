"""Kernel services: flush-only writers that run inside the caller's transaction."""

from tuition_kernel.services.expense_service import ExpenseService
from tuition_kernel.services.installment_link_service import InstallmentLinkService
from tuition_kernel.services.reconciliation_service import (
    ReconciliationResult,
    ReconciliationStats,
    SemesterReconciler,
)

__all__ = [
    "ExpenseService",
    "InstallmentLinkService",
    "ReconciliationResult",
    "ReconciliationStats",
    "SemesterReconciler",
]
