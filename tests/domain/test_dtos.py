"""Tests for snapshot DTOs and their JSON wire format."""

import json
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from tuition_kernel.domain.dtos import (
    InstallmentData,
    InstallmentStatus,
    SemesterData,
    snapshot_from_wire,
    snapshot_to_wire,
)
from tuition_kernel.exceptions import InstallmentNotFoundError, InvalidSnapshotError


class TestInstallmentData:
    """Tests for InstallmentData construction."""

    def test_float_amount_becomes_decimal(self):
        inst = InstallmentData(id=1, amount=7500.5)
        assert inst.amount == Decimal("7500.5")

    def test_status_from_string(self):
        inst = InstallmentData(
            id=1, amount=1, status="paid", expense_id=str(uuid4()), paid_date="2025-03-01",
        )
        assert inst.status is InstallmentStatus.PAID
        assert inst.paid_date == date(2025, 3, 1)

    def test_timestamp_paid_date(self):
        inst = InstallmentData(
            id=1, amount=1, status="paid", expense_id=uuid4(),
            paid_date="2025-03-01T00:00:00.000Z",
        )
        assert inst.paid_date == date(2025, 3, 1)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            InstallmentData(id=1, amount=1, status="refunded")

    def test_is_frozen(self):
        inst = InstallmentData(id=1, amount=1)
        with pytest.raises(AttributeError):
            inst.amount = Decimal("2")


class TestSemesterData:
    """Tests for SemesterData helpers."""

    @pytest.fixture
    def semester(self):
        return SemesterData(
            id="fall-2025",
            name="Fall 2025",
            total_tuition="30000",
            installments=[
                InstallmentData(
                    id=7, amount="7500", status="paid",
                    expense_id=uuid4(), paid_date=date(2025, 1, 10),
                ),
                InstallmentData(id=8, amount="7500"),
            ],
        )

    def test_installments_stored_as_tuple(self, semester):
        assert isinstance(semester.installments, tuple)

    def test_paid_total(self, semester):
        assert semester.paid_total == Decimal("7500")

    def test_sequence_of(self, semester):
        assert semester.sequence_of(8) == 2

    def test_missing_installment(self, semester):
        with pytest.raises(InstallmentNotFoundError):
            semester.installment(99)


class TestWireFormat:
    """Tests for to_dict / from_dict with the stable JSON keys."""

    def test_to_dict_keys_and_values(self):
        expense_id = uuid4()
        semester = SemesterData(
            id="fall-2025",
            name="Fall 2025",
            total_tuition=Decimal("30000"),
            installments=[
                InstallmentData(
                    id=17, amount=Decimal("7500"), status="paid",
                    expense_id=expense_id, paid_date=date(2025, 3, 1),
                ),
                InstallmentData(id=18, amount=Decimal("7500")),
            ],
        )

        data = semester.to_dict()

        assert data == {
            "id": "fall-2025",
            "name": "Fall 2025",
            "totalTuition": "30000.00",
            "installments": [
                {
                    "id": 17,
                    "amount": "7500.00",
                    "status": "paid",
                    "expenseId": str(expense_id),
                    "paidDate": "2025-03-01",
                },
                {
                    "id": 18,
                    "amount": "7500.00",
                    "status": "unpaid",
                    "expenseId": None,
                    "paidDate": None,
                },
            ],
        }
        json.dumps(data)

    def test_from_client_payload(self):
        payload = [
            {
                "id": "fall-2025",
                "name": "Fall 2025",
                "totalTuition": 30000,
                "installments": [
                    {"id": "3", "amount": 7500, "status": "unpaid"},
                    {"amount": 7500, "status": "unpaid"},
                ],
            }
        ]

        [semester] = snapshot_from_wire(payload)

        assert semester.total_tuition == Decimal("30000")
        assert [i.id for i in semester.installments] == [3, None]

    def test_round_trip(self):
        semester = SemesterData(
            id="spring-2026",
            name="Spring 2026",
            total_tuition=Decimal("1000.50"),
            installments=[InstallmentData(id=1, amount=Decimal("1000.50"))],
        )
        assert snapshot_from_wire(snapshot_to_wire([semester])) == [semester]

    def test_missing_name_rejected(self):
        with pytest.raises(InvalidSnapshotError) as exc_info:
            SemesterData.from_dict({"id": "fall-2025"})
        assert exc_info.value.semester_id == "fall-2025"

    def test_bad_amount_rejected(self):
        with pytest.raises(InvalidSnapshotError):
            SemesterData.from_dict({
                "id": "fall-2025", "name": "Fall", "installments": [{"amount": "lots"}],
            })

    def test_bad_installment_id_rejected(self):
        with pytest.raises(InvalidSnapshotError):
            SemesterData.from_dict({
                "id": "fall-2025", "name": "Fall", "installments": [{"id": 1.5, "amount": 1}],
            })

    def test_object_payload_rejected(self):
        with pytest.raises(InvalidSnapshotError):
            snapshot_from_wire({"id": "fall-2025"})

    def test_non_string_name_rejected(self):
        with pytest.raises(InvalidSnapshotError, match="name must be a string") as exc_info:
            snapshot_from_wire([{"id": "fall-2025", "name": 2025, "installments": []}])
        assert exc_info.value.semester_id == "fall-2025"

    def test_non_string_id_rejected(self):
        with pytest.raises(InvalidSnapshotError, match="id must be a string"):
            snapshot_from_wire([{"id": 2025, "name": "Fall 2025"}])

    def test_non_object_installment_rejected(self):
        with pytest.raises(InvalidSnapshotError, match="installment must be an object"):
            snapshot_from_wire([{"id": "fall-2025", "name": "Fall 2025", "installments": [5]}])


class TestSemesterDataTypes:
    """Direct construction checks key types."""

    def test_non_string_id(self):
        with pytest.raises(InvalidSnapshotError):
            SemesterData(id=7, name="Fall 2025", total_tuition=0)

    def test_none_name(self):
        with pytest.raises(InvalidSnapshotError):
            SemesterData(id="fall-2025", name=None, total_tuition=0)
