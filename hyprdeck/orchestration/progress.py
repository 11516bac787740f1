"""Progress estimation and non-blocking progress delivery."""

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterator, Sequence

from .results import utcnow

# Relative weights of the installation pipeline phases.
PIPELINE_PHASES: tuple[tuple[str, float], ...] = (
    ("planning", 0.05),
    ("preflight", 0.15),
    ("resolving", 0.05),
    ("installing", 0.45),
    ("configuring", 0.20),
    ("recording_history", 0.10),
)


class ProgressEstimator:
    """Map weighted phases onto a monotonically non-decreasing percentage.

    The estimate stays below 100 until the last declared phase has
    completed, and an ETA is only offered once at least one phase is done.
    """

    def __init__(
        self,
        phases: Sequence[tuple[str, float]] = PIPELINE_PHASES,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not phases:
            raise ValueError("at least one phase is required")
        names = [name for name, _ in phases]
        if len(set(names)) != len(names):
            raise ValueError("phase names must be unique")
        if any(weight < 0 for _, weight in phases):
            raise ValueError("phase weights must not be negative")
        total = sum(weight for _, weight in phases)
        if total <= 0:
            raise ValueError("phase weights must sum to a positive value")

        self._order = names
        self._weights = {name: weight / total for name, weight in phases}
        self._fractions = {name: 0.0 for name in names}
        self._completed: set[str] = set()
        self._clock = clock
        self._started_at: float | None = None
        self._floor = 0
        self._lock = threading.Lock()

    @property
    def phases(self) -> list[str]:
        return list(self._order)

    def start(self) -> None:
        with self._lock:
            if self._started_at is None:
                self._started_at = self._clock()

    def advance(self, phase: str, fraction: float) -> int:
        """Record partial progress within a phase; returns the new percent."""
        self._require(phase)
        fraction = min(max(fraction, 0.0), 1.0)
        with self._lock:
            if self._started_at is None:
                self._started_at = self._clock()
            self._fractions[phase] = max(self._fractions[phase], fraction)
        return self.percent()

    def complete(self, phase: str) -> int:
        self._require(phase)
        with self._lock:
            if self._started_at is None:
                self._started_at = self._clock()
            self._fractions[phase] = 1.0
            self._completed.add(phase)
        return self.percent()

    def finish(self) -> int:
        """Mark every phase complete."""
        for phase in self._order:
            self.complete(phase)
        return self.percent()

    def completed_phases(self) -> int:
        with self._lock:
            return len(self._completed)

    def percent(self) -> int:
        with self._lock:
            raw = sum(self._weights[p] * f for p, f in self._fractions.items()) * 100
            value = int(round(raw, 6))
            if len(self._completed) == len(self._order):
                value = 100
            elif self._order[-1] not in self._completed:
                value = min(value, 99)
            value = min(max(value, self._floor), 100)
            self._floor = value
            return value

    def elapsed(self) -> timedelta:
        with self._lock:
            if self._started_at is None:
                return timedelta(0)
            return timedelta(seconds=self._clock() - self._started_at)

    def estimate_remaining(self) -> timedelta | None:
        if self.completed_phases() == 0:
            return None
        pct = self.percent()
        if pct <= 0:
            return None
        seconds = self.elapsed().total_seconds() / pct * (100 - pct)
        return timedelta(seconds=max(seconds, 0.0))

    @staticmethod
    def phase_progress(total: int, completed: int) -> int:
        """Percentage of items done within one phase."""
        if total <= 0:
            return 100
        completed = min(max(completed, 0), total)
        return completed * 100 // total

    def _require(self, phase: str) -> None:
        if phase not in self._weights:
            raise KeyError(f"unknown phase '{phase}'")


@dataclass(frozen=True)
class ProgressUpdate:
    phase: str
    percent: int
    message: str
    components_installed: int = 0
    components_total: int = 0
    estimated_remaining: timedelta | None = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        remaining = self.estimated_remaining
        return {
            "phase": self.phase,
            "percent": self.percent,
            "message": self.message,
            "components_installed": self.components_installed,
            "components_total": self.components_total,
            "estimated_remaining_seconds": (
                int(remaining.total_seconds()) if remaining is not None else None
            ),
            "timestamp": self.timestamp.isoformat(),
        }


class ProgressChannel:
    """Bounded buffer of progress updates.

    publish() never blocks: when the buffer is full the oldest update is
    dropped. Consumers may drain() from any thread or iterate, which blocks
    until the channel is closed.
    """

    def __init__(self, capacity: int = 64):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._items: deque[ProgressUpdate] = deque(maxlen=capacity)
        self._cond = threading.Condition()
        self._closed = False
        self.dropped = 0

    def publish(self, update: ProgressUpdate) -> bool:
        with self._cond:
            if self._closed:
                return False
            if len(self._items) == self._items.maxlen:
                self.dropped += 1
            self._items.append(update)
            self._cond.notify_all()
            return True

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def drain(self) -> list[ProgressUpdate]:
        with self._cond:
            items = list(self._items)
            self._items.clear()
            return items

    def get(self, timeout: float | None = None) -> ProgressUpdate | None:
        """Next update, or None once closed and empty or on timeout."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._items or self._closed, timeout):
                return None
            if self._items:
                return self._items.popleft()
            return None

    def __iter__(self) -> Iterator[ProgressUpdate]:
        while True:
            update = self.get()
            if update is None:
                return
            yield update


__all__ = [
    "PIPELINE_PHASES",
    "ProgressEstimator",
    "ProgressUpdate",
    "ProgressChannel",
]
