"""FIFO admission queue bounding the number of active jobs."""

from __future__ import annotations

from collections import deque
from typing import Generic, Iterable, TypeVar

T = TypeVar("T")


class AdmissionQueue(Generic[T]):
    """
    Pending FIFO plus the set of admitted (active) items.

    `admit` never lets `len(active)` exceed `throttle`. Items leave the
    active list through `release` when they complete or are stopped.
    """

    def __init__(self, throttle: int):
        if throttle < 1:
            raise ValueError("throttle must be >= 1")
        self.throttle = throttle
        self.pending: deque[T] = deque()
        self.active: list[T] = []

    def __len__(self) -> int:
        return len(self.pending)

    @property
    def free_slots(self) -> int:
        return max(self.throttle - len(self.active), 0)

    def enqueue(self, items: Iterable[T]) -> None:
        self.pending.extend(items)

    def admit(self) -> list[T]:
        """Move up to `free_slots` items from the head of the queue to active."""
        admitted: list[T] = []
        while self.pending and len(self.active) < self.throttle:
            item = self.pending.popleft()
            self.active.append(item)
            admitted.append(item)
        return admitted

    def release(self, item: T) -> bool:
        """Remove an item from active; returns False if it wasn't active."""
        try:
            self.active.remove(item)
        except ValueError:
            return False
        return True

    def clear(self) -> None:
        """Drop every pending item. Active items are left alone."""
        self.pending.clear()
