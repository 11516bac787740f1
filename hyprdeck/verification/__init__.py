"""System verification for ``hyprdeck doctor``."""

from .checkers import (
    CompositorChecker,
    ConfigFilesChecker,
    PackagesChecker,
    ServicesChecker,
    ThemeChecker,
)
from .doctor import DoctorReport, build_checkers, expected_services, run_doctor

__all__ = [
    "CompositorChecker",
    "ConfigFilesChecker",
    "PackagesChecker",
    "ServicesChecker",
    "ThemeChecker",
    "DoctorReport",
    "build_checkers",
    "expected_services",
    "run_doctor",
]
