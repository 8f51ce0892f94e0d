from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class BatchCount:
    batch: str
    count: int


@dataclass(frozen=True)
class BatchStats:
    batch: str
    student_count: int
    total_fees: Decimal
    collected_fees: Decimal
    pending_fees: Decimal


@dataclass(frozen=True)
class DailyCollection:
    day: date
    total: Decimal
    count: int
