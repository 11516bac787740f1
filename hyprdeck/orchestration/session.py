"""Session aggregate: results of one orchestration run plus its rollback log."""

import asyncio
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

from .results import CheckResult, CheckStatus, OperationResult, SetupStatus, utcnow

_logging = logging.getLogger(__name__)


@dataclass(frozen=True)
class RollbackAction:
    """A recorded compensating command for one successful operation.

    ``intent`` is a plain dict describing the undo (e.g. which packages
    would be removed) so the rollback log can be listed and logged
    before anything is executed.
    """

    component: str
    description: str
    undo: Callable[[], Awaitable[None]] = field(repr=False, compare=False)
    intent: dict[str, Any] = field(default_factory=dict)
    captured_at: datetime = field(default_factory=utcnow)

    async def execute(self) -> None:
        await self.undo()

    def to_dict(self) -> dict:
        return {
            "component": self.component,
            "description": self.description,
            "intent": dict(self.intent),
            "captured_at": self.captured_at.isoformat(),
        }


class Session:
    """Thread-safe aggregate of one orchestrator run.

    Results are keyed by component: a later result for the same component
    replaces the earlier one in place. The overall status is always derived
    from the current results, never stored.
    """

    def __init__(self, session_id: str | None = None):
        self.id = session_id or str(uuid.uuid4())
        self.started_at = utcnow()
        self.completed_at: datetime | None = None
        self._lock = threading.RLock()
        self._results: dict[str, OperationResult | CheckResult] = {}
        self._rollback: list[RollbackAction] = []
        self._cancel_reason: str | None = None

    def add_result(self, result: OperationResult | CheckResult) -> None:
        with self._lock:
            self._results[result.component] = result

    def results(self) -> list[OperationResult | CheckResult]:
        with self._lock:
            return list(self._results.values())

    def result_for(self, component: str) -> OperationResult | CheckResult | None:
        with self._lock:
            return self._results.get(component)

    def add_rollback(self, action: RollbackAction) -> None:
        with self._lock:
            self._rollback.append(action)

    def rollback_actions(self) -> list[RollbackAction]:
        with self._lock:
            return list(self._rollback)

    def can_rollback(self) -> bool:
        with self._lock:
            return len(self._rollback) > 0

    async def rollback_async(self) -> list[Exception]:
        """Run every rollback action, most recent first.

        Failures are collected rather than stopping the walk. Actions that
        succeeded are dropped from the log; failed ones stay so a later
        attempt can retry them.
        """
        with self._lock:
            actions = list(self._rollback)

        errors: list[Exception] = []
        failed: list[RollbackAction] = []
        for action in reversed(actions):
            _logging.info(f"Rolling back {action.component}: {action.description}")
            try:
                await action.execute()
            except Exception as e:
                _logging.warning(f"Rollback of {action.component} failed: {e}")
                errors.append(e)
                failed.append(action)

        with self._lock:
            retained = [a for a in actions if any(a is f for f in failed)]
            self._rollback = retained + self._rollback[len(actions):]
        return errors

    def rollback(self) -> list[Exception]:
        """Synchronous wrapper around rollback_async() for non-async callers."""
        return asyncio.run(self.rollback_async())

    def mark_cancelled(self, reason: str) -> None:
        with self._lock:
            self._cancel_reason = reason

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancel_reason is not None

    @property
    def cancel_reason(self) -> str | None:
        with self._lock:
            return self._cancel_reason

    def complete(self) -> None:
        with self._lock:
            if self.completed_at is None:
                self.completed_at = utcnow()

    @property
    def is_complete(self) -> bool:
        with self._lock:
            return self.completed_at is not None

    @property
    def duration(self) -> timedelta:
        with self._lock:
            end = self.completed_at or utcnow()
            return end - self.started_at

    def overall_status(self) -> SetupStatus | CheckStatus:
        """Derive the overall status from the current results.

        Sessions holding only check results answer in the check vocabulary
        (pass / warning / fail); any installer result switches to the setup
        vocabulary. Empty sessions are pending.
        """
        results = self.results()
        if not results:
            return SetupStatus.PENDING

        checks_only = all(isinstance(r, CheckResult) for r in results)
        if any(r.is_failure() for r in results):
            return CheckStatus.FAIL if checks_only else SetupStatus.FAILED
        if checks_only:
            if any(r.is_warning() for r in results):
                return CheckStatus.WARNING
            return CheckStatus.PASS
        if any(not r.is_terminal() for r in results):
            return SetupStatus.IN_PROGRESS
        return SetupStatus.COMPLETED

    def success_count(self) -> int:
        return sum(1 for r in self.results() if r.is_success())

    def failure_count(self) -> int:
        return sum(1 for r in self.results() if r.is_failure())

    def warning_count(self) -> int:
        return sum(1 for r in self.results() if r.is_warning())

    def skipped_count(self) -> int:
        return sum(
            1
            for r in self.results()
            if isinstance(r, OperationResult) and r.status == SetupStatus.SKIPPED
        )

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "id": self.id,
                "status": self.overall_status().value,
                "started_at": self.started_at.isoformat(),
                "completed_at": self.completed_at.isoformat() if self.completed_at else None,
                "cancelled": self._cancel_reason is not None,
                "results": [r.to_dict() for r in self._results.values()],
                "rollback": [a.to_dict() for a in self._rollback],
            }


__all__ = ["RollbackAction", "Session"]
