"""Installation audit history.

Records are append-only: recorders never rewrite a stored record, the
only destructive operation is purging records past the retention window.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Protocol

from hyprdeck.errors import ValidationError
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.results import utcnow
from hyprdeck.system.probe import HostProbe

_logging = logging.getLogger(__name__)

DEFAULT_PACKAGE_SIZE = 1024


class InstallationOutcome(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class SystemContext:
    os_version: str
    kernel_version: str
    app_version: str
    hostname: str

    def to_dict(self) -> dict:
        return {
            "os_version": self.os_version,
            "kernel_version": self.kernel_version,
            "app_version": self.app_version,
            "hostname": self.hostname,
        }


@dataclass(frozen=True)
class InstalledPackage:
    name: str
    version: str
    size_bytes: int = DEFAULT_PACKAGE_SIZE


@dataclass(frozen=True)
class FailureDetails:
    reason: str
    phase: str
    failed_at: datetime = field(default_factory=utcnow)
    error_code: str = ""


@dataclass(frozen=True)
class AuditRecord:
    session_id: str
    package_name: str
    target_version: str
    outcome: InstallationOutcome
    started_at: datetime
    completed_at: datetime
    system: SystemContext
    packages: tuple[InstalledPackage, ...] = ()
    failure: FailureDetails | None = None

    @property
    def duration(self) -> timedelta:
        return self.completed_at - self.started_at

    def to_dict(self) -> dict:
        data = {
            "session_id": self.session_id,
            "package_name": self.package_name,
            "target_version": self.target_version,
            "outcome": self.outcome.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_ms": int(self.duration.total_seconds() * 1000),
            "system": self.system.to_dict(),
            "packages": [
                {"name": p.name, "version": p.version, "size_bytes": p.size_bytes}
                for p in self.packages
            ],
            "failure": None,
        }
        if self.failure is not None:
            data["failure"] = {
                "reason": self.failure.reason,
                "phase": self.failure.phase,
                "failed_at": self.failure.failed_at.isoformat(),
                "error_code": self.failure.error_code,
            }
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "AuditRecord":
        failure = data.get("failure")
        return cls(
            session_id=data["session_id"],
            package_name=data["package_name"],
            target_version=data["target_version"],
            outcome=InstallationOutcome(data["outcome"]),
            started_at=datetime.fromisoformat(data["started_at"]),
            completed_at=datetime.fromisoformat(data["completed_at"]),
            system=SystemContext(**data["system"]),
            packages=tuple(InstalledPackage(**p) for p in data.get("packages", [])),
            failure=(
                FailureDetails(
                    reason=failure["reason"],
                    phase=failure["phase"],
                    failed_at=datetime.fromisoformat(failure["failed_at"]),
                    error_code=failure.get("error_code", ""),
                )
                if failure
                else None
            ),
        )


@dataclass(frozen=True)
class RetentionPolicy:
    days: int

    def __post_init__(self):
        if self.days < 1:
            raise ValidationError("retention days must be at least 1")

    def cutoff_date(self, now: datetime | None = None) -> datetime:
        return (now or utcnow()) - timedelta(days=self.days)

    def should_purge(self, record: AuditRecord, now: datetime | None = None) -> bool:
        return record.completed_at < self.cutoff_date(now)


def capture_system_context(probe: HostProbe, app_version: str) -> SystemContext:
    info = probe.os_info()
    return SystemContext(
        os_version=info.get("PRETTY_NAME", "unknown"),
        kernel_version=probe.kernel_version(),
        app_version=app_version,
        hostname=probe.hostname(),
    )


class HistoryRecorder(Protocol):
    async def record(self, ctx: RunContext, record: AuditRecord) -> None: ...


class MemoryHistoryRecorder:
    def __init__(self):
        self._records: list[AuditRecord] = []
        self._lock = threading.Lock()

    async def record(self, ctx: RunContext, record: AuditRecord) -> None:
        with self._lock:
            self._records.append(record)

    def records(self) -> list[AuditRecord]:
        with self._lock:
            return list(self._records)

    def find(self, session_id: str) -> AuditRecord | None:
        return next((r for r in reversed(self.records()) if r.session_id == session_id), None)

    def purge(self, policy: RetentionPolicy, now: datetime | None = None) -> int:
        with self._lock:
            before = len(self._records)
            self._records = [r for r in self._records if not policy.should_purge(r, now)]
            return before - len(self._records)


class JsonlHistoryRecorder:
    """Stores one JSON document per line."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    async def record(self, ctx: RunContext, record: AuditRecord) -> None:
        line = json.dumps(record.to_dict(), sort_keys=True)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def records(self) -> list[AuditRecord]:
        if not self.path.exists():
            return []
        records = []
        with self._lock:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                records.append(AuditRecord.from_dict(json.loads(line)))
            except (ValueError, KeyError, TypeError) as e:
                _logging.warning(f"Skipping malformed history line {number}: {e}")
        return records

    def find(self, session_id: str) -> AuditRecord | None:
        return next((r for r in reversed(self.records()) if r.session_id == session_id), None)

    def purge(self, policy: RetentionPolicy, now: datetime | None = None) -> int:
        records = self.records()
        kept = [r for r in records if not policy.should_purge(r, now)]
        if len(kept) == len(records):
            return 0
        with self._lock:
            tmp = self.path.with_suffix(".tmp")
            tmp.write_text(
                "".join(json.dumps(r.to_dict(), sort_keys=True) + "\n" for r in kept),
                encoding="utf-8",
            )
            tmp.replace(self.path)
        return len(records) - len(kept)


__all__ = [
    "DEFAULT_PACKAGE_SIZE",
    "InstallationOutcome",
    "SystemContext",
    "InstalledPackage",
    "FailureDetails",
    "AuditRecord",
    "RetentionPolicy",
    "capture_system_context",
    "HistoryRecorder",
    "MemoryHistoryRecorder",
    "JsonlHistoryRecorder",
]
