"""Read-only checks of an installed desktop."""

import logging
from pathlib import Path
from typing import Sequence

from hyprdeck.installer.catalog import get_entry
from hyprdeck.installer.models import ComponentName
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Checker
from hyprdeck.orchestration.results import CheckResult, Severity
from hyprdeck.system.deploy import expand_target
from hyprdeck.system.interfaces import CommandError, PackageManager, ServiceManager
from hyprdeck.system.probe import HostProbe

_logging = logging.getLogger(__name__)

HYPRLAND_BINARY = "Hyprland"


class CompositorChecker(Checker):
    name = "Hyprland compositor"
    component = "hyprland"

    def __init__(self, probe: HostProbe, packages: PackageManager):
        self.probe = probe
        self.packages = packages

    async def check(self, ctx: RunContext) -> CheckResult:
        if not self.probe.command_exists(HYPRLAND_BINARY):
            return CheckResult.failed(
                self.component, "Hyprland is not installed", Severity.CRITICAL
            ).with_suggestions("Run installation: hyprdeck install")

        version = await self.packages.installed_version(ctx, "hyprland")
        result = CheckResult.passed(self.component, "Hyprland is installed", Severity.CRITICAL)
        if version:
            result = result.with_details(f"Version: {version}")
        return result


class PackagesChecker(Checker):
    name = "Required packages"
    component = "packages"

    def __init__(self, packages: PackageManager, components: Sequence[ComponentName]):
        self.packages = packages
        self.components = list(components)

    async def check(self, ctx: RunContext) -> CheckResult:
        missing = []
        for component in self.components:
            for package in get_entry(component).packages:
                if not await self.packages.is_installed(ctx, package):
                    missing.append(package)

        if missing:
            return (
                CheckResult.failed(
                    self.component, f"{len(missing)} required package(s) missing", Severity.HIGH
                )
                .with_details(*missing)
                .with_suggestions(f"Install them: sudo apt install {' '.join(missing)}")
            )
        return CheckResult.passed(
            self.component, "All required packages are installed", Severity.HIGH
        )


class ConfigFilesChecker(Checker):
    name = "Configuration files"
    component = "config"

    def __init__(self, components: Sequence[ComponentName], variables: dict[str, str]):
        self.components = list(components)
        self.variables = variables

    def expected_files(self) -> list[Path]:
        return [
            expand_target(spec.target, self.variables)
            for component in self.components
            for spec in get_entry(component).files
        ]

    async def check(self, ctx: RunContext) -> CheckResult:
        expected = self.expected_files()
        missing = [str(p) for p in expected if not p.is_file()]
        if missing:
            return (
                CheckResult.warning(
                    self.component, "Some configuration files are missing", Severity.MEDIUM
                )
                .with_details(*missing)
                .with_suggestions("Redeploy them: hyprdeck install --merge")
            )
        return CheckResult.passed(
            self.component, f"{len(expected)} configuration file(s) present", Severity.MEDIUM
        )


class ServicesChecker(Checker):
    name = "System services"
    component = "services"

    def __init__(self, services: ServiceManager, names: Sequence[str]):
        self.services = services
        self.names = list(names)

    async def check(self, ctx: RunContext) -> CheckResult:
        disabled = []
        for name in self.names:
            try:
                enabled = await self.services.is_enabled(ctx, name)
            except CommandError as e:
                _logging.debug(f"Could not query {name}: {e}")
                enabled = False
            if not enabled:
                disabled.append(name)

        if disabled:
            return (
                CheckResult.warning(
                    self.component, "Some services are not enabled", Severity.MEDIUM
                )
                .with_details(*disabled)
                .with_suggestions(*(f"sudo systemctl enable {name}" for name in disabled))
            )
        return CheckResult.passed(self.component, "Required services are enabled", Severity.MEDIUM)


class ThemeChecker(Checker):
    name = "Theme configuration"
    component = "theme"

    def __init__(self, config_dir: Path, cache_dir: Path):
        self.config_dir = Path(config_dir)
        self.cache_dir = Path(cache_dir)

    async def check(self, ctx: RunContext) -> CheckResult:
        theme_files = [
            self.config_dir / "hypr" / "hyprland.conf",
            self.config_dir / "waybar" / "style.css",
        ]
        missing = [str(p) for p in theme_files if not p.is_file()]
        if missing:
            return (
                CheckResult.warning(
                    self.component, "Some theme configuration files are missing", Severity.MEDIUM
                )
                .with_details(*missing)
                .with_suggestions("Run installation: hyprdeck install")
            )

        result = CheckResult.passed(
            self.component, "Theme configuration is present", Severity.LOW
        )
        if not (self.cache_dir / "wallpapers.json").is_file():
            result = result.with_suggestions("Build the wallpaper cache: hyprdeck postinstall")
        return result


__all__ = [
    "CompositorChecker",
    "PackagesChecker",
    "ConfigFilesChecker",
    "ServicesChecker",
    "ThemeChecker",
]
