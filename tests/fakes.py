from __future__ import annotations

import threading
import time
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from tuition_center.attendance.model import AttendanceMark, AttendanceRecord, AttendanceRow, MarkResult
from tuition_center.core.exceptions import ConflictError
from tuition_center.dashboard.model import BatchCount, BatchStats, DailyCollection
from tuition_center.fees.model import (
    ModeTotal,
    NewPayment,
    PaymentResult,
    PaymentTransaction,
    PaymentWithStudent,
    VoidResult,
)
from tuition_center.students.model import NewStudent, Student

ZERO = Decimal("0.00")
FIXED_NOW = datetime(2024, 3, 15, 10, 30, 0)


class InMemoryStore:
    """Tables shared by the fake repositories so joins behave like SQL."""

    def __init__(self, clock: Callable[[], datetime]):
        self.clock = clock
        self.students: dict[int, Student] = {}
        self.payments: dict[int, PaymentTransaction] = {}
        self.attendance: dict[int, AttendanceRecord] = {}
        self._ids = {"student": 0, "payment": 0, "attendance": 0}
        self._id_lock = threading.Lock()

    def next_id(self, kind: str) -> int:
        with self._id_lock:
            self._ids[kind] += 1
            return self._ids[kind]


class InMemoryStudents:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _insert(self, new: NewStudent) -> int:
        fees = new.fees()
        student_id = self.store.next_id("student")
        now = self.store.clock()
        self.store.students[student_id] = Student(
            student_id=student_id,
            name=new.name,
            phone=new.phone,
            batch=new.batch,
            grade=new.grade,
            fee_structure=fees.fee_structure,
            monthly_fees=new.monthly_fees,
            yearly_fees=new.yearly_fees,
            total_fees=fees.total_fees,
            paid_fees=ZERO,
            balance_fees=fees.balance_fees,
            notes=new.notes,
            created_at=now,
            updated_at=now,
        )
        return student_id

    def list_all(self) -> Sequence[Student]:
        return sorted(self.store.students.values(), key=lambda s: s.name)

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self.store.students.get(student_id)

    def existing_ids(self, student_ids: Iterable[int]) -> set[int]:
        return {i for i in student_ids if i in self.store.students}

    def create(self, new: NewStudent) -> int:
        return self._insert(new)

    def create_many(self, items: Sequence[NewStudent]) -> list[int]:
        return [self._insert(new) for new in items]

    def update_locked(self, student_id: int, mutate: Callable[[Student], Student]) -> Optional[Student]:
        current = self.store.students.get(student_id)
        if current is None:
            return None
        updated = replace(mutate(current), updated_at=self.store.clock())
        self.store.students[student_id] = updated
        return updated

    def delete(self, student_id: int) -> bool:
        if student_id not in self.store.students:
            return False
        if any(p.student_id == student_id for p in self.store.payments.values()):
            raise ConflictError("Cannot delete a student with fee payments on record")
        del self.store.students[student_id]
        for aid, rec in list(self.store.attendance.items()):
            if rec.student_id == student_id:
                del self.store.attendance[aid]
        return True

    def list_with_balance(self, *, limit: Optional[int] = None) -> Sequence[Student]:
        items = sorted(
            (s for s in self.store.students.values() if s.balance_fees > 0),
            key=lambda s: s.balance_fees,
            reverse=True,
        )
        return items[:limit] if limit is not None else items

    def list_by_batch(self, batch: Optional[str]) -> Sequence[Student]:
        return [s for s in self.list_all() if not batch or s.batch == batch]


class InMemoryFees:
    def __init__(self, store: InMemoryStore):
        self.store = store
        # Widens the read-modify-write window to expose unserialized updates.
        self.write_delay = 0.0

    def _with_student(self, p: PaymentTransaction) -> PaymentWithStudent:
        s = self.store.students.get(p.student_id)
        return PaymentWithStudent(payment=p, student_name=s.name if s else None, batch=s.batch if s else None)

    def _in_range(self, p: PaymentTransaction, start: Optional[datetime], end: Optional[datetime]) -> bool:
        return (start is None or p.payment_date >= start) and (end is None or p.payment_date < end)

    def get_by_id(self, transaction_id: int) -> Optional[PaymentTransaction]:
        return self.store.payments.get(transaction_id)

    def record_payment(self, new: NewPayment, apply: Callable[[Student], Student]) -> Optional[PaymentResult]:
        student = self.store.students.get(new.student_id)
        if student is None:
            return None
        updated = apply(student)
        if self.write_delay:
            time.sleep(self.write_delay)

        transaction_id = self.store.next_id("payment")
        payment = PaymentTransaction(
            transaction_id=transaction_id,
            student_id=new.student_id,
            amount_paid=new.amount_paid,
            payment_date=new.payment_date,
            payment_mode=new.payment_mode,
            notes=new.notes,
            created_at=self.store.clock(),
        )
        self.store.payments[transaction_id] = payment
        self.store.students[new.student_id] = updated
        return PaymentResult(payment=payment, student=updated)

    def delete_payment(
        self,
        transaction_id: int,
        reverse: Callable[[Student, PaymentTransaction], Student],
    ) -> Optional[VoidResult]:
        payment = self.store.payments.get(transaction_id)
        if payment is None:
            return None
        student = self.store.students.get(payment.student_id)
        updated = None
        if student is not None:
            updated = reverse(student, payment)
            self.store.students[student.student_id] = updated
        del self.store.payments[transaction_id]
        return VoidResult(payment=payment, student=updated)

    def list_for_student(self, student_id: int) -> Sequence[PaymentTransaction]:
        items = [p for p in self.store.payments.values() if p.student_id == student_id]
        return sorted(items, key=lambda p: (p.payment_date, p.transaction_id), reverse=True)

    def count_for_student(self, student_id: int) -> int:
        return sum(1 for p in self.store.payments.values() if p.student_id == student_id)

    def total_collected(self, *, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Decimal:
        return sum((p.amount_paid for p in self.store.payments.values() if self._in_range(p, start, end)), ZERO)

    def recent(self, limit: int) -> Sequence[PaymentWithStudent]:
        items = sorted(self.store.payments.values(), key=lambda p: (p.payment_date, p.transaction_id), reverse=True)
        return [self._with_student(p) for p in items[:limit]]

    def mode_totals(self, *, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Sequence[ModeTotal]:
        totals: dict = {}
        for p in self.store.payments.values():
            if not self._in_range(p, start, end):
                continue
            total, count = totals.get(p.payment_mode, (ZERO, 0))
            totals[p.payment_mode] = (total + p.amount_paid, count + 1)
        items = [ModeTotal(payment_mode=m, total=t, count=c) for m, (t, c) in totals.items()]
        return sorted(items, key=lambda m: m.total, reverse=True)

    def list_between(
        self,
        *,
        start: datetime,
        end: datetime,
        student_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[PaymentWithStudent]:
        wanted = set(student_ids) if student_ids is not None else None
        items = [
            p
            for p in self.store.payments.values()
            if self._in_range(p, start, end) and (wanted is None or p.student_id in wanted)
        ]
        items.sort(key=lambda p: (p.payment_date, p.transaction_id))
        return [self._with_student(p) for p in items]


class InMemoryAttendance:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _find(self, student_id: int, day: date) -> Optional[AttendanceRecord]:
        for rec in self.store.attendance.values():
            if rec.student_id == student_id and rec.attendance_date == day:
                return rec
        return None

    def upsert_many(self, *, attendance_date: date, marks: Sequence[AttendanceMark]) -> MarkResult:
        upserted = modified = 0
        for mark in marks:
            existing = self._find(mark.student_id, attendance_date)
            if existing is None:
                self.create(student_id=mark.student_id, attendance_date=attendance_date, present=mark.present)
                upserted += 1
            elif existing.present != mark.present:
                self.store.attendance[existing.attendance_id] = replace(existing, present=mark.present)
                modified += 1
        return MarkResult(modified=modified, upserted=upserted, total=len(marks))

    def create(self, *, student_id: int, attendance_date: date, present: bool) -> int:
        if self._find(student_id, attendance_date) is not None:
            raise ConflictError("Attendance already marked for this student and date")
        attendance_id = self.store.next_id("attendance")
        self.store.attendance[attendance_id] = AttendanceRecord(
            attendance_id=attendance_id,
            student_id=student_id,
            attendance_date=attendance_date,
            present=present,
        )
        return attendance_id

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.store.attendance.get(attendance_id)

    def rows_between(self, *, start: date, end: date, batch: Optional[str] = None) -> Sequence[AttendanceRow]:
        rows = []
        for rec in self.store.attendance.values():
            s = self.store.students.get(rec.student_id)
            if not (start <= rec.attendance_date <= end) or s is None:
                continue
            if batch and s.batch != batch:
                continue
            rows.append(
                AttendanceRow(
                    attendance_id=rec.attendance_id,
                    attendance_date=rec.attendance_date,
                    present=rec.present,
                    student_id=s.student_id,
                    name=s.name,
                    batch=s.batch,
                    phone=s.phone,
                    grade=s.grade,
                )
            )
        return sorted(rows, key=lambda r: (r.attendance_date, r.name))

    def list_for_student(
        self,
        student_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        items = [
            r
            for r in self.store.attendance.values()
            if r.student_id == student_id
            and (start is None or r.attendance_date >= start)
            and (end is None or r.attendance_date <= end)
        ]
        return sorted(items, key=lambda r: r.attendance_date, reverse=True)

    def update_status(self, attendance_id: int, present: bool) -> Optional[AttendanceRecord]:
        rec = self.store.attendance.get(attendance_id)
        if rec is None:
            return None
        rec = replace(rec, present=present)
        self.store.attendance[attendance_id] = rec
        return rec

    def delete(self, attendance_id: int) -> bool:
        return self.store.attendance.pop(attendance_id, None) is not None

    def delete_all(self) -> int:
        n = len(self.store.attendance)
        self.store.attendance.clear()
        return n


class InMemoryDashboard:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def count_students(self) -> int:
        return len(self.store.students)

    def batch_distribution(self) -> Sequence[BatchCount]:
        counts: dict[str, int] = {}
        for s in self.store.students.values():
            counts[s.batch] = counts.get(s.batch, 0) + 1
        items = [BatchCount(batch=b, count=n) for b, n in counts.items()]
        return sorted(items, key=lambda b: (-b.count, b.batch))

    def batch_stats(self) -> Sequence[BatchStats]:
        groups: dict[str, list[Student]] = {}
        for s in self.store.students.values():
            groups.setdefault(s.batch, []).append(s)
        items = [
            BatchStats(
                batch=b,
                student_count=len(members),
                total_fees=sum((s.total_fees for s in members), ZERO),
                collected_fees=sum((s.paid_fees for s in members), ZERO),
                pending_fees=sum((s.balance_fees for s in members), ZERO),
            )
            for b, members in groups.items()
        ]
        return sorted(items, key=lambda b: (-b.student_count, b.batch))

    def daily_collection(self, *, start: datetime, end: datetime) -> Sequence[DailyCollection]:
        days: dict[date, tuple[Decimal, int]] = {}
        for p in self.store.payments.values():
            if start <= p.payment_date < end:
                total, count = days.get(p.payment_date.date(), (ZERO, 0))
                days[p.payment_date.date()] = (total + p.amount_paid, count + 1)
        return [DailyCollection(day=d, total=t, count=c) for d, (t, c) in sorted(days.items())]
