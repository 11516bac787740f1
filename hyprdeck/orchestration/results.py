"""Immutable outcomes of operations."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SetupStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (SetupStatus.COMPLETED, SetupStatus.FAILED, SetupStatus.SKIPPED)


class CheckStatus(Enum):
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"


class Severity(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def is_blocking(self) -> bool:
        return self in (Severity.CRITICAL, Severity.HIGH)


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one installer operation.

    Instances are never mutated; with_details() and complete() return copies.
    """

    component: str
    status: SetupStatus = SetupStatus.PENDING
    message: str = ""
    details: tuple[str, ...] = ()
    error: BaseException | None = None
    started_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None

    @classmethod
    def start(cls, component: str, message: str = "") -> "OperationResult":
        return cls(component=component, status=SetupStatus.IN_PROGRESS, message=message)

    @classmethod
    def failed(
        cls, component: str, message: str, error: BaseException | None = None
    ) -> "OperationResult":
        now = utcnow()
        return cls(
            component=component,
            status=SetupStatus.FAILED,
            message=message,
            error=error,
            started_at=now,
            completed_at=now,
        )

    @classmethod
    def skipped(cls, component: str, message: str) -> "OperationResult":
        now = utcnow()
        return cls(
            component=component,
            status=SetupStatus.SKIPPED,
            message=message,
            started_at=now,
            completed_at=now,
        )

    def with_details(self, *details: str) -> "OperationResult":
        return replace(self, details=self.details + tuple(details))

    def with_error(self, error: BaseException) -> "OperationResult":
        return replace(self, error=error)

    def complete(self, status: SetupStatus, message: str | None = None) -> "OperationResult":
        return replace(
            self,
            status=status,
            message=self.message if message is None else message,
            completed_at=utcnow(),
        )

    @property
    def duration(self) -> timedelta:
        end = self.completed_at if self.completed_at is not None else utcnow()
        return end - self.started_at

    def is_success(self) -> bool:
        return self.status == SetupStatus.COMPLETED

    def is_failure(self) -> bool:
        return self.status == SetupStatus.FAILED

    def is_warning(self) -> bool:
        return False

    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> dict:
        return {
            "component": self.component,
            "status": self.status.value,
            "message": self.message,
            "details": list(self.details),
            "error": str(self.error) if self.error else None,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": int(self.duration.total_seconds() * 1000),
        }


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one read-only validator or checker."""

    component: str
    status: CheckStatus
    severity: Severity = Severity.MEDIUM
    message: str = ""
    details: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()
    error: BaseException | None = None
    started_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None

    @classmethod
    def passed(cls, component: str, message: str, severity: Severity = Severity.MEDIUM):
        return cls(component, CheckStatus.PASS, severity, message).complete()

    @classmethod
    def warning(cls, component: str, message: str, severity: Severity = Severity.MEDIUM):
        return cls(component, CheckStatus.WARNING, severity, message).complete()

    @classmethod
    def failed(
        cls,
        component: str,
        message: str,
        severity: Severity = Severity.HIGH,
        error: BaseException | None = None,
    ):
        return cls(component, CheckStatus.FAIL, severity, message, error=error).complete()

    def with_details(self, *details: str) -> "CheckResult":
        return replace(self, details=self.details + tuple(details))

    def with_suggestions(self, *suggestions: str) -> "CheckResult":
        return replace(self, suggestions=self.suggestions + tuple(suggestions))

    def complete(self) -> "CheckResult":
        return replace(self, completed_at=utcnow())

    @property
    def duration(self) -> timedelta:
        end = self.completed_at if self.completed_at is not None else utcnow()
        return end - self.started_at

    def is_blocking(self) -> bool:
        return self.status == CheckStatus.FAIL and self.severity.is_blocking

    def is_critical(self) -> bool:
        return self.severity == Severity.CRITICAL and self.status != CheckStatus.PASS

    def is_success(self) -> bool:
        return self.status == CheckStatus.PASS

    def is_failure(self) -> bool:
        return self.is_blocking()

    def is_warning(self) -> bool:
        if self.status == CheckStatus.WARNING:
            return True
        return self.status == CheckStatus.FAIL and not self.severity.is_blocking

    def is_terminal(self) -> bool:
        return True

    def format_message(self) -> str:
        lines = [self.message]
        lines.extend(f"  - {d}" for d in self.details)
        if self.suggestions:
            lines.append("  Suggestions:")
            lines.extend(f"    * {s}" for s in self.suggestions)
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "component": self.component,
            "status": self.status.value,
            "severity": self.severity.value,
            "message": self.message,
            "details": list(self.details),
            "suggestions": list(self.suggestions),
            "error": str(self.error) if self.error else None,
            "checked_at": (self.completed_at or self.started_at).isoformat(),
        }


Result = OperationResult | CheckResult


__all__ = [
    "SetupStatus",
    "CheckStatus",
    "Severity",
    "OperationResult",
    "CheckResult",
    "Result",
    "utcnow",
]
