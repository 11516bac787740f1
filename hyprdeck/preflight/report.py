"""Summaries of preflight runs."""

from dataclasses import dataclass
from enum import Enum

from hyprdeck.orchestration.results import CheckResult, CheckStatus
from hyprdeck.orchestration.session import Session


class PreflightOutcome(Enum):
    SUCCESS = "success"
    BLOCKED = "blocked"
    WARNINGS = "warnings"
    PARTIAL_SUCCESS = "partial_success"


@dataclass
class PreflightReport:
    session: Session

    @property
    def results(self) -> list[CheckResult]:
        return [r for r in self.session.results() if isinstance(r, CheckResult)]

    @property
    def blockers(self) -> list[CheckResult]:
        return [r for r in self.results if r.is_blocking()]

    @property
    def warnings(self) -> list[CheckResult]:
        return [r for r in self.results if r.is_warning()]

    def can_proceed(self) -> bool:
        return not self.blockers

    @property
    def outcome(self) -> PreflightOutcome:
        if self.blockers:
            return PreflightOutcome.BLOCKED
        non_blocking_failures = [r for r in self.warnings if r.status == CheckStatus.FAIL]
        if non_blocking_failures:
            return PreflightOutcome.PARTIAL_SUCCESS
        if self.warnings:
            return PreflightOutcome.WARNINGS
        return PreflightOutcome.SUCCESS

    def recommendations(self) -> list[str]:
        seen: list[str] = []
        for result in self.blockers + self.warnings:
            for suggestion in result.suggestions:
                if suggestion not in seen:
                    seen.append(suggestion)
        return seen

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "can_proceed": self.can_proceed(),
            "blocker_count": len(self.blockers),
            "warning_count": len(self.warnings),
            "results": [r.to_dict() for r in self.results],
            "recommendations": self.recommendations(),
            "duration_ms": int(self.session.duration.total_seconds() * 1000),
        }


__all__ = ["PreflightOutcome", "PreflightReport"]
