from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import utc_now
from .common.locks import KeyedLocks
from .core.constants import DEFAULT_CURRENCY_LABEL
from .dashboard.mysql_dashboard_repository import MySQLDashboardRepository
from .dashboard.repository import DashboardRepository
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .fees.mysql_fee_repository import MySQLFeeRepository
from .fees.repository import FeeRepository
from .fees.service import FeeService
from .reminders.service import ReminderService
from .reports.service import ReportService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService


@dataclass(frozen=True)
class Container:
    students_repo: StudentRepository
    fees_repo: FeeRepository
    attendance_repo: AttendanceRepository
    dashboard_repo: DashboardRepository

    student_service: StudentService
    fee_service: FeeService
    attendance_service: AttendanceService
    reminder_service: ReminderService
    dashboard_service: DashboardService
    report_service: ReportService


def assemble(
    *,
    students_repo: StudentRepository,
    fees_repo: FeeRepository,
    attendance_repo: AttendanceRepository,
    dashboard_repo: DashboardRepository,
    currency: str = DEFAULT_CURRENCY_LABEL,
    clock=utc_now,
) -> Container:
    """Wire services over any set of repositories (MySQL or in-memory)."""

    # One lock registry: student updates and payments serialize on the same key.
    student_locks = KeyedLocks()

    reminder_service = ReminderService(students_repo, currency=currency)
    student_service = StudentService(students_repo, fees_repo, locks=student_locks)
    fee_service = FeeService(fees_repo, students_repo, reminder_service, locks=student_locks, clock=clock)
    attendance_service = AttendanceService(attendance_repo, students_repo)
    dashboard_service = DashboardService(dashboard_repo, students_repo, fees_repo, attendance_repo, clock=clock)
    report_service = ReportService(students_repo, attendance_repo, fees_repo)

    return Container(
        students_repo=students_repo,
        fees_repo=fees_repo,
        attendance_repo=attendance_repo,
        dashboard_repo=dashboard_repo,
        student_service=student_service,
        fee_service=fee_service,
        attendance_service=attendance_service,
        reminder_service=reminder_service,
        dashboard_service=dashboard_service,
        report_service=report_service,
    )


def build_container(*, db_config: dict, currency: str = DEFAULT_CURRENCY_LABEL) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return assemble(
        students_repo=MySQLStudentRepository(conn),
        fees_repo=MySQLFeeRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        dashboard_repo=MySQLDashboardRepository(conn),
        currency=currency,
    )
