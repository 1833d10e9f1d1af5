"""Tuition services: transactional entrypoints over the tuition kernel."""

from tuition_services.expense_gateway import SqlExpenseGateway
from tuition_services.semester_sync import DEFAULT_TIMEOUT_SECONDS, sync_semesters
from tuition_services.tuition_tracker import TuitionTracker

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "SqlExpenseGateway",
    "TuitionTracker",
    "sync_semesters",
]
