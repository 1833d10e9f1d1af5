"""Read-only query selectors."""

from tuition_kernel.selectors.base import BaseSelector
from tuition_kernel.selectors.semester_selector import LinkedInstallment, SemesterSelector

__all__ = [
    "BaseSelector",
    "LinkedInstallment",
    "SemesterSelector",
]
