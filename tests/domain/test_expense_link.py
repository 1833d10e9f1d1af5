"""Tests for the installment <-> expense snapshot transformations."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from tuition_kernel.domain.dtos import (
    ExpenseRecord,
    InstallmentData,
    InstallmentStatus,
    SemesterData,
)
from tuition_kernel.domain.expense_link import (
    DEFAULT_EXPENSE_CATEGORY,
    build_tuition_expense,
    change_paid_date,
    find_semester,
    is_payable,
    mark_paid,
    replace_semester,
    unlink_expense,
)
from tuition_kernel.exceptions import (
    InstallmentNotFoundError,
    InvalidInstallmentStateError,
    SemesterNotFoundError,
)


@pytest.fixture
def semester():
    return SemesterData(
        id="spring-2026",
        name="Spring 2026",
        total_tuition=Decimal("2000"),
        installments=(
            InstallmentData(id=31, amount="500"),
            InstallmentData(id=32, amount="500"),
            InstallmentData(id=33, amount="500"),
            InstallmentData(id=34, amount="500"),
        ),
    )


def _expense(amount="500", on=date(2025, 3, 1)):
    return ExpenseRecord(
        id=uuid4(),
        title="Tuition - Spring 2026 #3",
        amount=Decimal(amount),
        category="Tuition",
        expense_date=on,
    )


class TestIsPayable:
    """Tests for is_payable."""

    def test_unpaid_with_amount(self):
        assert is_payable(InstallmentData(id=1, amount="1"))

    def test_zero_amount(self):
        assert not is_payable(InstallmentData(id=1, amount="0"))

    def test_already_paid(self):
        paid = InstallmentData(
            id=1, amount="1", status="paid", expense_id=uuid4(), paid_date=date(2025, 1, 1),
        )
        assert not is_payable(paid)


class TestBuildTuitionExpense:
    """Tests for build_tuition_expense."""

    def test_draft_fields(self, semester):
        draft = build_tuition_expense(semester, 33, date(2025, 3, 1))
        assert draft.title == "Tuition - Spring 2026 #3"
        assert draft.amount == Decimal("500")
        assert draft.category == DEFAULT_EXPENSE_CATEGORY
        assert draft.expense_date == date(2025, 3, 1)
        assert draft.is_recurring is False

    def test_custom_template_and_category(self, semester):
        draft = build_tuition_expense(
            semester, 31, date(2025, 1, 5),
            category="Education", title_template="{semester} payment {sequence}",
        )
        assert draft.title == "Spring 2026 payment 1"
        assert draft.category == "Education"

    def test_unknown_installment(self, semester):
        with pytest.raises(InstallmentNotFoundError):
            build_tuition_expense(semester, 99, date(2025, 3, 1))


class TestMarkPaid:
    """Tests for mark_paid."""

    def test_links_expense(self, semester):
        expense = _expense()
        result = mark_paid(semester, 33, expense)

        paid = result.installment(33)
        assert paid.status == InstallmentStatus.PAID
        assert paid.expense_id == expense.id
        assert paid.paid_date == date(2025, 3, 1)
        assert paid.amount == Decimal("500")

    def test_other_installments_untouched(self, semester):
        result = mark_paid(semester, 33, _expense())
        for inst_id in (31, 32, 34):
            assert result.installment(inst_id) == semester.installment(inst_id)


class TestChangePaidDate:
    """Tests for change_paid_date."""

    def test_moves_date(self, semester):
        paid = mark_paid(semester, 31, _expense())
        result = change_paid_date(paid, 31, date(2025, 4, 15))
        assert result.installment(31).paid_date == date(2025, 4, 15)
        assert result.installment(31).expense_id == paid.installment(31).expense_id

    def test_unpaid_rejected(self, semester):
        with pytest.raises(InvalidInstallmentStateError):
            change_paid_date(semester, 32, date(2025, 4, 15))


class TestUnlinkExpense:
    """Tests for unlink_expense."""

    def test_resets_every_linked_installment(self, semester):
        expense = _expense()
        linked = mark_paid(mark_paid(semester, 31, expense), 32, expense)
        other = SemesterData(
            id="fall-2026",
            name="Fall 2026",
            total_tuition=Decimal("500"),
            installments=(
                InstallmentData(
                    id=41,
                    amount="500",
                    status=InstallmentStatus.PAID,
                    expense_id=expense.id,
                    paid_date=expense.expense_date,
                ),
            ),
        )

        result, reset = unlink_expense([linked, other], expense.id)

        assert reset == 3
        for semester_result in result:
            for inst in semester_result.installments:
                assert inst.status == InstallmentStatus.UNPAID
                assert inst.expense_id is None
                assert inst.paid_date is None

    def test_unrelated_expense_untouched(self, semester):
        kept = mark_paid(semester, 31, _expense())
        result, reset = unlink_expense([kept], uuid4())
        assert reset == 0
        assert result == [kept]


class TestSnapshotLookup:
    """Tests for find_semester / replace_semester."""

    def test_find_missing(self, semester):
        with pytest.raises(SemesterNotFoundError):
            find_semester([semester], "fall-2099")

    def test_replace_keeps_order(self, semester):
        other = SemesterData(id="fall-2026", name="Fall 2026", total_tuition=0)
        updated = SemesterData(id=semester.id, name="Renamed", total_tuition=0)
        result = replace_semester([semester, other], updated)
        assert [s.name for s in result] == ["Renamed", "Fall 2026"]

    def test_replace_missing(self, semester):
        with pytest.raises(SemesterNotFoundError):
            replace_semester([semester], SemesterData(id="nope", name="Nope", total_tuition=0))
