from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import BatchCount, BatchStats, DailyCollection


class DashboardRepository(Protocol):
    def count_students(self) -> int:
        raise NotImplementedError

    def batch_distribution(self) -> Sequence[BatchCount]:
        """Students per batch, largest batch first."""

        raise NotImplementedError

    def batch_stats(self) -> Sequence[BatchStats]:
        raise NotImplementedError

    def daily_collection(self, *, start: datetime, end: datetime) -> Sequence[DailyCollection]:
        """Per-day payment totals with start <= payment_date < end, oldest day first."""

        raise NotImplementedError
