"""Read-only host validators run before anything is installed."""

import logging

from hyprdeck.installer.models import DiskSpace, GPUSupport
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Validator
from hyprdeck.orchestration.results import CheckResult, Severity
from hyprdeck.system.probe import HostProbe

_logging = logging.getLogger(__name__)

GB = 1024**3


class DebianVersionValidator(Validator):
    name = "Debian version"
    component = "debian_version"

    def __init__(self, probe: HostProbe, supported_releases: list[str]):
        self.probe = probe
        self.supported_releases = [r.lower() for r in supported_releases]

    async def validate(self, ctx: RunContext) -> CheckResult:
        info = self.probe.os_info()
        distro = info.get("ID", "").lower()
        codename = info.get("VERSION_CODENAME", "").lower()
        pretty = info.get("PRETTY_NAME", "unknown system")

        if distro != "debian" and "debian" not in info.get("ID_LIKE", "").lower():
            return CheckResult.failed(
                self.component, f"{pretty} is not a Debian system", Severity.CRITICAL
            ).with_suggestions("hyprdeck only supports Debian and derivatives")

        # Testing and unstable images often ship without a codename.
        if not codename and "sid" in pretty.lower():
            codename = "sid"
        if codename not in self.supported_releases:
            return CheckResult.failed(
                self.component,
                f"Debian release '{codename or 'unknown'}' is not supported",
                Severity.CRITICAL,
            ).with_suggestions(
                f"Upgrade to one of: {', '.join(self.supported_releases)}"
            )

        return CheckResult.passed(
            self.component, f"{pretty} is supported", Severity.CRITICAL
        ).with_details(f"codename: {codename}")


class DiskSpaceValidator(Validator):
    name = "Disk space"
    component = "disk_space"

    def __init__(self, disk: DiskSpace):
        self.disk = disk

    async def validate(self, ctx: RunContext) -> CheckResult:
        available = self.disk.available_bytes / GB
        required = self.disk.required_bytes / GB
        detail = f"{available:.1f} GB available, {required:.1f} GB required"

        if not self.disk.is_sufficient():
            return (
                CheckResult.failed(
                    self.component, "Insufficient disk space", Severity.CRITICAL
                )
                .with_details(detail)
                .with_suggestions(f"Free at least {required - available:.1f} GB and retry")
            )
        return CheckResult.passed(
            self.component, "Sufficient disk space", Severity.CRITICAL
        ).with_details(detail)


class GPUValidator(Validator):
    name = "GPU support"
    component = "gpu_support"

    def __init__(self, probe: HostProbe, gpu: GPUSupport | None = None):
        self.probe = probe
        self.gpu = gpu

    async def validate(self, ctx: RunContext) -> CheckResult:
        vendors = await self.probe.gpu_vendors(debug=ctx.debug)
        if not vendors:
            return CheckResult.warning(
                self.component, "No GPU detected", Severity.LOW
            ).with_suggestions("Hyprland needs a GPU with working DRM/KMS drivers")

        detail = f"detected: {', '.join(vendors)}"
        if self.gpu is not None and self.gpu.vendor not in vendors:
            return (
                CheckResult.warning(
                    self.component,
                    f"Requested {self.gpu.vendor} GPU support but it was not detected",
                    Severity.MEDIUM,
                )
                .with_details(detail)
            )

        if "nvidia" in vendors:
            return (
                CheckResult.warning(
                    self.component,
                    "NVIDIA GPU detected: proprietary driver required",
                    Severity.MEDIUM,
                )
                .with_details(detail)
                .with_suggestions(
                    "Run 'hyprdeck repo enable-nonfree' to enable the non-free component",
                    "Select the nvidia_driver component",
                )
            )

        return CheckResult.passed(self.component, "GPU supported", Severity.MEDIUM).with_details(
            detail
        )


class ConnectivityValidator(Validator):
    name = "Internet connectivity"
    component = "internet_connectivity"

    def __init__(self, probe: HostProbe, host: str, port: int = 443):
        self.probe = probe
        self.host = host
        self.port = port

    async def validate(self, ctx: RunContext) -> CheckResult:
        if await self.probe.can_connect(self.host, self.port):
            return CheckResult.passed(
                self.component, f"Reached {self.host}", Severity.HIGH
            )
        return CheckResult.failed(
            self.component, f"Cannot reach {self.host}:{self.port}", Severity.HIGH
        ).with_suggestions("Check the network connection and DNS settings")


class SourceRepositoryValidator(Validator):
    name = "Source repositories"
    component = "source_repositories"

    def __init__(self, probe: HostProbe):
        self.probe = probe

    async def validate(self, ctx: RunContext) -> CheckResult:
        lines = self.probe.apt_source_lines()
        binary = [
            line
            for line in lines
            if line.startswith("deb ") or (line.startswith("Types:") and "deb" in line.split())
        ]
        if not binary:
            return CheckResult.failed(
                self.component, "No apt package sources configured", Severity.HIGH
            ).with_suggestions("Add a Debian mirror to /etc/apt/sources.list")

        if not any("main" in line.split() for line in lines):
            return CheckResult.failed(
                self.component, "No source provides the 'main' component", Severity.MEDIUM
            ).with_details(*binary[:3])

        return CheckResult.passed(
            self.component, f"{len(binary)} package source(s) configured", Severity.MEDIUM
        )


__all__ = [
    "DebianVersionValidator",
    "DiskSpaceValidator",
    "GPUValidator",
    "ConnectivityValidator",
    "SourceRepositoryValidator",
]
