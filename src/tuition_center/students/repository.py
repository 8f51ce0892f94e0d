from __future__ import annotations

from typing import Callable, Iterable, Optional, Protocol, Sequence

from .model import NewStudent, Student


class StudentRepository(Protocol):
    def list_all(self) -> Sequence[Student]:
        raise NotImplementedError

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def existing_ids(self, student_ids: Iterable[int]) -> set[int]:
        raise NotImplementedError

    def create(self, new: NewStudent) -> int:
        raise NotImplementedError

    def create_many(self, items: Sequence[NewStudent]) -> list[int]:
        """Insert all rows in one transaction; nothing is written if any insert fails."""

        raise NotImplementedError

    def update_locked(self, student_id: int, mutate: Callable[[Student], Student]) -> Optional[Student]:
        """Lock the row, apply `mutate` to the current state and persist the result.

        Returns None if the student does not exist.
        """

        raise NotImplementedError

    def delete(self, student_id: int) -> bool:
        raise NotImplementedError

    def list_with_balance(self, *, limit: Optional[int] = None) -> Sequence[Student]:
        """Students with balance_fees > 0, largest balance first."""

        raise NotImplementedError

    def list_by_batch(self, batch: Optional[str]) -> Sequence[Student]:
        raise NotImplementedError
