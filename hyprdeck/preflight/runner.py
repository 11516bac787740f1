"""Assemble and run preflight validators."""

from typing import Sequence

from hyprdeck.config import Settings
from hyprdeck.installer.models import DiskSpace, InstallationConfiguration
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Validator
from hyprdeck.orchestration.orchestrator import Orchestrator, StepCallback
from hyprdeck.system.probe import HostProbe

from .report import PreflightReport
from .validators import (
    ConnectivityValidator,
    DebianVersionValidator,
    DiskSpaceValidator,
    GPUValidator,
    SourceRepositoryValidator,
)


def measure_disk(probe: HostProbe, settings: Settings) -> DiskSpace:
    return DiskSpace(
        available_bytes=probe.disk_available(),
        required_bytes=settings.required_disk_bytes,
    )


def build_validators(
    settings: Settings,
    probe: HostProbe,
    configuration: InstallationConfiguration | None = None,
) -> list[Validator]:
    """Validators in the order they run.

    Without a configuration the disk space is measured on the spot.
    """
    if configuration is not None and configuration.disk.is_measured:
        disk = configuration.disk
    else:
        disk = measure_disk(probe, settings)
    gpu = configuration.gpu if configuration is not None else None
    return [
        DebianVersionValidator(probe, settings.supported_releases),
        DiskSpaceValidator(disk),
        GPUValidator(probe, gpu),
        ConnectivityValidator(probe, settings.connectivity_host),
        SourceRepositoryValidator(probe),
    ]


async def run_preflight(
    ctx: RunContext,
    validators: Sequence[Validator],
    on_step: StepCallback | None = None,
) -> PreflightReport:
    session = await Orchestrator(fail_fast=False).run_with_progress(ctx, validators, on_step)
    return PreflightReport(session)


__all__ = ["measure_disk", "build_validators", "run_preflight"]
