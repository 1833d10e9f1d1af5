"""
Tests for ExpenseService and InstallmentLinkService.

Verifies:
- Expense creation validation
- Deleting an expense un-links every installment that referenced it
- Moving an expense date moves the linked paid dates
- Dangling links are reported by the selector
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from tuition_kernel.domain.dtos import (
    ExpenseDraft,
    InstallmentData,
    InstallmentStatus,
    SemesterData,
)
from tuition_kernel.exceptions import ExpenseNotFoundError
from tuition_kernel.selectors.semester_selector import SemesterSelector
from tuition_kernel.services.expense_service import ExpenseService
from tuition_kernel.services.installment_link_service import InstallmentLinkService
from tuition_kernel.services.reconciliation_service import SemesterReconciler


def _draft(amount="500", on=date(2025, 3, 1), title="Tuition - Fall 2025 #1"):
    return ExpenseDraft(title=title, amount=Decimal(amount), category="Tuition", expense_date=on)


@pytest.fixture
def expense_service(session):
    return ExpenseService(session)


@pytest.fixture
def paid_semesters(session, user_id, expense_service):
    """Two semesters; the first installment of each is paid by one shared expense."""
    expense = expense_service.create_expense(user_id, _draft())

    def _paid_semester(semester_id):
        return SemesterData(
            id=semester_id,
            name=semester_id.title(),
            total_tuition="1000",
            installments=[
                InstallmentData(
                    id=None,
                    amount="500",
                    status=InstallmentStatus.PAID,
                    expense_id=expense.id,
                    paid_date=expense.expense_date,
                ),
                InstallmentData(id=None, amount="500"),
            ],
        )

    result = SemesterReconciler(session).reconcile(
        user_id, [_paid_semester("fall-2025"), _paid_semester("spring-2026")],
    )
    return expense, result.semesters


class TestCreateExpense:
    """Tests for ExpenseService.create_expense."""

    def test_creates_and_returns_record(self, expense_service, user_id):
        record = expense_service.create_expense(user_id, _draft(amount="500.005"))

        assert record.id is not None
        assert record.amount == Decimal("500.01")
        assert record.category == "Tuition"
        assert record.expense_date == date(2025, 3, 1)
        assert record.is_recurring is False
        assert expense_service.get_expense(user_id, record.id) == record

    def test_blank_title_rejected(self, expense_service, user_id):
        with pytest.raises(ValueError, match="title"):
            expense_service.create_expense(user_id, _draft(title="  "))

    def test_non_positive_amount_rejected(self, expense_service, user_id):
        with pytest.raises(ValueError, match="positive"):
            expense_service.create_expense(user_id, _draft(amount="0"))

    def test_other_users_expense_not_visible(self, expense_service, user_id, other_user_id):
        record = expense_service.create_expense(user_id, _draft())
        assert expense_service.find_expense(other_user_id, record.id) is None
        with pytest.raises(ExpenseNotFoundError):
            expense_service.get_expense(other_user_id, record.id)


class TestDeleteExpense:
    """Deleting an expense resets its installments."""

    def test_unlinks_every_referencing_installment(
        self, session, expense_service, user_id, paid_semesters,
    ):
        expense, _ = paid_semesters

        unlinked = expense_service.delete_expense(user_id, expense.id)

        assert sorted(u.semester_id for u in unlinked) == ["fall-2025", "spring-2026"]
        assert all(u.sequence == 1 for u in unlinked)
        for semester in SemesterSelector(session).list_for_user(user_id):
            first = semester.installments[0]
            assert first.status == InstallmentStatus.UNPAID
            assert first.expense_id is None
            assert first.paid_date is None
        assert expense_service.find_expense(user_id, expense.id) is None

    def test_installment_ids_survive_unlink(self, session, expense_service, user_id, paid_semesters):
        expense, before = paid_semesters
        expense_service.delete_expense(user_id, expense.id)
        after = SemesterSelector(session).list_for_user(user_id)
        assert [i.id for s in after for i in s.installments] == [
            i.id for s in before for i in s.installments
        ]

    def test_missing_expense(self, expense_service, user_id):
        with pytest.raises(ExpenseNotFoundError):
            expense_service.delete_expense(user_id, uuid4())

    def test_unlink_without_references_is_empty(self, session, user_id):
        assert InstallmentLinkService(session).unlink_expense(user_id, uuid4()) == []


class TestUpdateExpenseDate:
    """Moving an expense moves linked paid dates."""

    def test_paid_dates_follow_expense(self, session, expense_service, user_id, paid_semesters):
        expense, _ = paid_semesters

        record = expense_service.update_expense_date(user_id, expense.id, date(2025, 4, 2))

        assert record.expense_date == date(2025, 4, 2)
        for semester in SemesterSelector(session).list_for_user(user_id):
            assert semester.installments[0].paid_date == date(2025, 4, 2)
            assert semester.installments[0].expense_id == expense.id

    def test_sync_paid_date_counts_changes(self, session, user_id, paid_semesters):
        expense, _ = paid_semesters
        links = InstallmentLinkService(session)
        assert links.sync_paid_date(user_id, expense.id, date(2025, 5, 1)) == 2
        assert links.sync_paid_date(user_id, expense.id, date(2025, 5, 1)) == 0

    def test_missing_expense(self, expense_service, user_id):
        with pytest.raises(ExpenseNotFoundError):
            expense_service.update_expense_date(user_id, uuid4(), date(2025, 4, 2))


class TestLinkSelectors:
    """Read-side link queries."""

    def test_find_installments_by_expense(self, session, user_id, paid_semesters):
        expense, semesters = paid_semesters
        linked = SemesterSelector(session).find_installments_by_expense(user_id, expense.id)
        assert {(l.semester_id, l.installment_id) for l in linked} == {
            (s.id, s.installments[0].id) for s in semesters
        }

    def test_linked_expense_ids(self, session, user_id, paid_semesters):
        expense, _ = paid_semesters
        assert SemesterSelector(session).linked_expense_ids(user_id) == {expense.id}

    def test_dangling_links_reported(self, session, user_id):
        missing = uuid4()
        SemesterReconciler(session).reconcile(user_id, [
            SemesterData(
                id="fall-2025",
                name="Fall 2025",
                total_tuition="500",
                installments=[InstallmentData(
                    id=None, amount="500", status="paid",
                    expense_id=missing, paid_date=date(2025, 3, 1),
                )],
            )
        ])

        dangling = SemesterSelector(session).find_dangling_links(user_id)

        assert [d.expense_id for d in dangling] == [missing]

    def test_existing_expense_not_dangling(self, session, user_id, paid_semesters):
        assert SemesterSelector(session).find_dangling_links(user_id) == []
