from __future__ import annotations

import pytest

from tuition_center.core.exceptions import ValidationError


@pytest.fixture
def seeded(container, enroll):
    asha = enroll(name="Asha", batch="A", monthlyFees=1000)
    bala = enroll(name="Bala", batch="A", monthlyFees=500)
    chitra = enroll(name="Chitra", batch="B", grade=9, yearlyFees=9000)

    container.attendance_service.mark_attendance(
        {
            "date": "2024-03-15",
            "records": [
                {"studentId": asha.student_id, "status": True},
                {"studentId": bala.student_id, "status": False},
                {"studentId": chitra.student_id, "status": True},
            ],
        }
    )

    pay = container.fee_service.record_payment
    pay({"studentId": asha.student_id, "amountPaid": 2000, "paymentDate": "2024-02-28"})
    pay({"studentId": bala.student_id, "amountPaid": 6000, "paymentDate": "2024-03-02", "paymentMode": "bank"})
    pay({"studentId": chitra.student_id, "amountPaid": 1000, "paymentDate": "2024-03-10"})
    pay({"studentId": chitra.student_id, "amountPaid": 500, "paymentDate": "2024-03-10T12:00:00"})
    return asha, bala, chitra


def test_summary(container, seeded):
    asha, bala, chitra = seeded

    summary = container.dashboard_service.summary()

    assert summary["totalStudents"] == 3
    # Bala paid in full and is not a defaulter.
    assert summary["feeDefaulters"]["count"] == 2
    assert [s["name"] for s in summary["feeDefaulters"]["students"]] == ["Asha", "Chitra"]

    today = summary["todayAttendance"]
    assert (today["total"], today["present"], today["absent"]) == (3, 2, 1)
    assert today["attendanceRate"] == 66.67
    assert [a["name"] for a in today["absentees"]] == ["Bala"]

    assert summary["financials"]["monthlyCollection"] == 7500
    assert len(summary["financials"]["recentTransactions"]) == 4
    assert summary["financials"]["recentTransactions"][0].student_name == "Chitra"
    assert summary["batchDistribution"] == [{"batch": "A", "count": 2}, {"batch": "B", "count": 1}]


def test_summary_with_empty_database(container):
    summary = container.dashboard_service.summary()

    assert summary["totalStudents"] == 0
    assert summary["todayAttendance"]["attendanceRate"] == 0.0
    assert summary["financials"]["monthlyCollection"] == 0


def test_batch_statistics(container, seeded):
    stats = {b["batch"]: b for b in container.dashboard_service.batch_statistics()}

    assert stats["A"] == {"batch": "A", "studentCount": 2, "totalFees": 18000, "collectedFees": 8000, "pendingFees": 10000}
    assert stats["B"]["pendingFees"] == 7500


def test_fee_statistics_defaults_to_current_month(container, seeded):
    stats = container.dashboard_service.fee_statistics()

    assert stats["summary"] == {
        "startDate": "2024-03-01",
        "endDate": "2024-03-31",
        "totalAmount": 7500,
        "totalTransactions": 3,
        "averagePerTransaction": 2500,
    }
    assert stats["dailyCollection"] == [
        {"date": "2024-03-02", "total": 6000, "count": 1},
        {"date": "2024-03-10", "total": 1500, "count": 2},
    ]
    assert [m.payment_mode.value for m in stats["paymentModeStats"]] == ["bank", "cash"]


def test_fee_statistics_custom_range(container, seeded):
    stats = container.dashboard_service.fee_statistics(start_date="2024-02-01", end_date="2024-03-02")

    assert stats["summary"]["totalAmount"] == 8000
    assert stats["summary"]["averagePerTransaction"] == 4000


def test_fee_statistics_rejects_inverted_range(container):
    with pytest.raises(ValidationError):
        container.dashboard_service.fee_statistics(start_date="2024-03-10", end_date="2024-03-01")
