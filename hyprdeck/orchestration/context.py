"""Cooperative cancellation and deadlines for orchestration runs."""

import threading
import time

from hyprdeck.errors import OperationCancelledError


class RunContext:
    """Cancellation token shared between a run and the callers observing it.

    Cancellation is only ever observed at checkpoints; nothing here
    interrupts work that is already in flight.
    """

    def __init__(self, timeout: float | None = None, debug: bool = False):
        self._cancelled = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._reason = ""
        self.debug = debug

    def cancel(self, reason: str = "cancelled by user") -> None:
        if not self._cancelled.is_set():
            self._reason = reason
            self._cancelled.set()

    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def is_expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def done(self) -> bool:
        return self.is_cancelled() or self.is_expired()

    @property
    def reason(self) -> str:
        if self.is_cancelled():
            return self._reason
        if self.is_expired():
            return "deadline exceeded"
        return ""

    def check(self) -> None:
        """Raise OperationCancelledError if the context is done."""
        if self.done():
            raise OperationCancelledError(self.reason)
