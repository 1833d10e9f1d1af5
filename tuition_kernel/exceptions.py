"""
Typed Exception Hierarchy for the Tuition Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from TuitionKernelError:

    TuitionKernelError (base)
    |
    +-- SnapshotValidationError
    |   +-- InvalidSnapshotError
    |   +-- InvalidInstallmentStateError
    |   +-- InvalidInstallmentCountError
    |   +-- PaidFloorViolationError
    |   +-- PaidInstallmentRemovalError
    |
    +-- LookupFailedError
    |   +-- SemesterNotFoundError
    |   +-- InstallmentNotFoundError
    |   +-- ExpenseNotFoundError
    |
    +-- SyncError
        +-- SyncTimeoutError
        +-- SynchronizationFailedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_SNAPSHOT            | Duplicate ids, negative amounts, blank names
                | INVALID_INSTALLMENT_STATE   | paid without link, unpaid with link
                | INVALID_INSTALLMENT_COUNT   | Requested count below 1
                | PAID_FLOOR_VIOLATION        | Count change would drop a paid installment
                | PAID_INSTALLMENT_REMOVAL    | Snapshot omits a persisted paid installment
----------------|-----------------------------|-----------------------------------------
Lookup          | SEMESTER_NOT_FOUND          | No semester with that id for the user
                | INSTALLMENT_NOT_FOUND       | No installment with that id in the semester
                | EXPENSE_NOT_FOUND           | Linked expense no longer exists
----------------|-----------------------------|-----------------------------------------
Sync            | SYNC_TIMEOUT                | Transaction exceeded its time budget
                | SYNC_FAILED                 | Any transaction failure (user-facing)

===============================================================================
HANDLING PATTERNS
===============================================================================

Validation errors are raised before any mutation and are safe to show the
user verbatim -- they name the paid floor.  Everything else that goes wrong
inside a sync is collapsed into SynchronizationFailedError by the sync
entrypoint; its ``user_message`` is the single "not saved" text:

    try:
        semesters = tracker.change_installment_count(user_id, "fall-2025", 2)
    except PaidFloorViolationError as e:
        show(f"At least {e.minimum_count} installments are required")
    except SynchronizationFailedError as e:
        show(e.user_message)
"""


class TuitionKernelError(Exception):
    """
    Base exception for all tuition kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "TUITION_KERNEL_ERROR"


# Validation exceptions


class SnapshotValidationError(TuitionKernelError):
    """Base exception for rejected snapshots and mutations."""

    code: str = "SNAPSHOT_VALIDATION_ERROR"


class InvalidSnapshotError(SnapshotValidationError):
    """Snapshot is structurally invalid."""

    code: str = "INVALID_SNAPSHOT"

    def __init__(self, reason: str, semester_id: str | None = None):
        self.reason = reason
        self.semester_id = semester_id
        where = f" (semester {semester_id})" if semester_id else ""
        super().__init__(f"Invalid semester snapshot{where}: {reason}")


class InvalidInstallmentStateError(SnapshotValidationError):
    """Installment status disagrees with its expense link fields."""

    code: str = "INVALID_INSTALLMENT_STATE"

    def __init__(self, semester_id: str, sequence: int, reason: str):
        self.semester_id = semester_id
        self.sequence = sequence
        self.reason = reason
        super().__init__(
            f"Installment #{sequence} of semester {semester_id}: {reason}"
        )


class InvalidInstallmentCountError(SnapshotValidationError):
    """Requested installment count is not a positive integer."""

    code: str = "INVALID_INSTALLMENT_COUNT"

    def __init__(self, semester_id: str, requested_count: int):
        self.semester_id = semester_id
        self.requested_count = requested_count
        super().__init__(
            f"Semester {semester_id} needs at least one installment, "
            f"got {requested_count}"
        )


class PaidFloorViolationError(SnapshotValidationError):
    """
    Count reduction would delete an installment that is already paid.

    ``minimum_count`` is the smallest count the caller may retry with.
    """

    code: str = "PAID_FLOOR_VIOLATION"

    def __init__(self, semester_id: str, requested_count: int, minimum_count: int):
        self.semester_id = semester_id
        self.requested_count = requested_count
        self.minimum_count = minimum_count
        super().__init__(
            f"Cannot reduce semester {semester_id} to {requested_count} "
            f"installment(s): installment #{minimum_count - 1} is paid, "
            f"so at least {minimum_count} installment(s) are required"
        )


class PaidInstallmentRemovalError(SnapshotValidationError):
    """Incoming snapshot omits installments that are persisted as paid."""

    code: str = "PAID_INSTALLMENT_REMOVAL"

    def __init__(
        self,
        semester_id: str,
        installment_ids: list[int],
        minimum_count: int,
    ):
        self.semester_id = semester_id
        self.installment_ids = installment_ids
        self.minimum_count = minimum_count
        ids = ", ".join(str(i) for i in installment_ids)
        super().__init__(
            f"Snapshot for semester {semester_id} would delete paid "
            f"installment(s) {ids}; at least {minimum_count} installment(s) "
            f"must be kept"
        )


# Lookup exceptions


class LookupFailedError(TuitionKernelError):
    """Base exception for missing records."""

    code: str = "LOOKUP_FAILED"


class SemesterNotFoundError(LookupFailedError):
    """Semester with given id was not found for the user."""

    code: str = "SEMESTER_NOT_FOUND"

    def __init__(self, semester_id: str):
        self.semester_id = semester_id
        super().__init__(f"Semester not found: {semester_id}")


class InstallmentNotFoundError(LookupFailedError):
    """Installment with given id was not found in the semester."""

    code: str = "INSTALLMENT_NOT_FOUND"

    def __init__(self, semester_id: str, installment_id: int):
        self.semester_id = semester_id
        self.installment_id = installment_id
        super().__init__(
            f"Installment {installment_id} not found in semester {semester_id}"
        )


class ExpenseNotFoundError(LookupFailedError):
    """Expense with given id does not exist."""

    code: str = "EXPENSE_NOT_FOUND"

    def __init__(self, expense_id: str):
        self.expense_id = expense_id
        super().__init__(f"Expense not found: {expense_id}")


# Sync exceptions


class SyncError(TuitionKernelError):
    """Base exception for transaction-level sync failures."""

    code: str = "SYNC_ERROR"


class SyncTimeoutError(SyncError):
    """Reconciliation did not finish within its transaction budget."""

    code: str = "SYNC_TIMEOUT"

    def __init__(self, budget_seconds: float, elapsed_seconds: float):
        self.budget_seconds = budget_seconds
        self.elapsed_seconds = elapsed_seconds
        super().__init__(
            f"Transaction exceeded its {budget_seconds:g}s budget "
            f"({elapsed_seconds:.2f}s elapsed)"
        )


class SynchronizationFailedError(SyncError):
    """
    The whole sync was rolled back.

    The cause is chained via ``__cause__``; callers only ever see this one
    type for storage-level failures.
    """

    code: str = "SYNC_FAILED"

    user_message: str = (
        "Your semester changes could not be saved. Nothing was changed; "
        "please try again."
    )

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Failed to synchronize semester data for user {user_id}")
