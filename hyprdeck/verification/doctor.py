"""The ``doctor`` run: verify an installed desktop and summarize the findings."""

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from hyprdeck.config import Settings
from hyprdeck.installer.models import ComponentName
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Checker
from hyprdeck.orchestration.orchestrator import Orchestrator, StepCallback
from hyprdeck.orchestration.results import CheckResult, CheckStatus
from hyprdeck.orchestration.session import Session
from hyprdeck.postinstall.installers import DISPLAY_MANAGERS, NETWORK_SERVICE
from hyprdeck.system.interfaces import PackageManager, ServiceManager
from hyprdeck.system.probe import HostProbe

from .checkers import (
    CompositorChecker,
    ConfigFilesChecker,
    PackagesChecker,
    ServicesChecker,
    ThemeChecker,
)


def expected_services(settings: Settings) -> list[str]:
    services = []
    if settings.display_manager in DISPLAY_MANAGERS:
        services.append(DISPLAY_MANAGERS[settings.display_manager][1])
    services.append(NETWORK_SERVICE)
    return services


def build_checkers(
    settings: Settings,
    probe: HostProbe,
    packages: PackageManager,
    services: ServiceManager,
    components: Sequence[ComponentName],
    variables: dict[str, str],
    quick: bool = False,
) -> list[Checker]:
    """Checkers in run order.

    Quick mode keeps only the compositor and configuration checks.
    """
    checkers: list[Checker] = [
        CompositorChecker(probe, packages),
        ConfigFilesChecker(components, variables),
    ]
    if quick:
        return checkers

    config_dir = Path(variables["config_dir"])
    cache_dir = Path(variables["home_dir"]) / ".cache" / "hyprdeck"
    checkers.extend(
        [
            PackagesChecker(packages, components),
            ServicesChecker(services, expected_services(settings)),
            ThemeChecker(config_dir, cache_dir),
        ]
    )
    return checkers


@dataclass
class DoctorReport:
    session: Session

    @property
    def results(self) -> list[CheckResult]:
        return [r for r in self.session.results() if isinstance(r, CheckResult)]

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.results if r.status == CheckStatus.PASS)

    @property
    def warning_count(self) -> int:
        return sum(1 for r in self.results if r.status == CheckStatus.WARNING)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.status == CheckStatus.FAIL)

    @property
    def critical_count(self) -> int:
        return sum(1 for r in self.results if r.is_critical())

    @property
    def overall_status(self) -> str:
        return self.session.overall_status().value

    def is_healthy(self) -> bool:
        return self.failed_count == 0

    def recommendations(self) -> list[str]:
        recs: list[str] = []
        for result in self.results:
            if result.is_success():
                continue
            for suggestion in result.suggestions:
                if suggestion not in recs:
                    recs.append(suggestion)
        return recs

    def to_dict(self) -> dict:
        return {
            "report_id": self.session.id,
            "overall_status": self.overall_status,
            "passed_checks": self.passed_count,
            "warning_checks": self.warning_count,
            "failed_checks": self.failed_count,
            "critical_issues": self.critical_count,
            "total_checks": len(self.results),
            "results": [r.to_dict() for r in self.results],
            "recommendations": self.recommendations(),
            "duration_ms": int(self.session.duration.total_seconds() * 1000),
        }


async def run_doctor(
    ctx: RunContext,
    checkers: Sequence[Checker],
    on_step: StepCallback | None = None,
) -> DoctorReport:
    session = await Orchestrator(fail_fast=False).run_with_progress(ctx, checkers, on_step)
    return DoctorReport(session)


__all__ = ["DoctorReport", "build_checkers", "expected_services", "run_doctor"]
