from __future__ import annotations

import pytest

from fakes import FIXED_NOW, InMemoryAttendance, InMemoryDashboard, InMemoryFees, InMemoryStore, InMemoryStudents
from tuition_center.container import assemble
from tuition_center.main import create_app

TEST_SETTINGS = {
    "SECRET_KEY": "test-secret",
    "API_PREFIX": "/api",
    "CURRENCY_LABEL": "Rs.",
    "LOG_LEVEL": "WARNING",
    "TESTING": True,
}


@pytest.fixture
def store():
    return InMemoryStore(clock=lambda: FIXED_NOW)


@pytest.fixture
def container(store):
    return assemble(
        students_repo=InMemoryStudents(store),
        fees_repo=InMemoryFees(store),
        attendance_repo=InMemoryAttendance(store),
        dashboard_repo=InMemoryDashboard(store),
        currency="Rs.",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def client(container):
    app = create_app(settings=TEST_SETTINGS, container=container)
    return app.test_client()


@pytest.fixture
def enroll(container):
    """Create a student through the service; keyword overrides go into the payload."""

    def _enroll(**overrides):
        payload = {"name": "Asha", "phone": "+91 98765-43210", "batch": "A", "grade": 5, "monthlyFees": 1000}
        payload.update(overrides)
        return container.student_service.create_student(payload)

    return _enroll
