"""Preflight validation: host checks that gate an installation."""

from .report import PreflightOutcome, PreflightReport
from .validators import (
    ConnectivityValidator,
    DebianVersionValidator,
    DiskSpaceValidator,
    GPUValidator,
    SourceRepositoryValidator,
)
from .runner import build_validators, measure_disk, run_preflight

__all__ = [
    "PreflightOutcome",
    "PreflightReport",
    "ConnectivityValidator",
    "DebianVersionValidator",
    "DiskSpaceValidator",
    "GPUValidator",
    "SourceRepositoryValidator",
    "build_validators",
    "measure_disk",
    "run_preflight",
]
