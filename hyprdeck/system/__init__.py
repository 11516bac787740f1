"""Host collaborators: packages, services, configuration files and probes."""

from .apt import AptPackageManager, parse_dpkg_status
from .deploy import FileConfigDeployer, render_template, should_backup_existing
from .interfaces import (
    CommandError,
    ConfigDeployer,
    DeployResult,
    FileSpec,
    PackageManager,
    ServiceManager,
)
from .probe import HostProbe, parse_gpu_vendors, parse_os_release
from .systemd import SystemdServiceManager

__all__ = [
    "AptPackageManager",
    "parse_dpkg_status",
    "FileConfigDeployer",
    "render_template",
    "should_backup_existing",
    "CommandError",
    "ConfigDeployer",
    "DeployResult",
    "FileSpec",
    "PackageManager",
    "ServiceManager",
    "HostProbe",
    "parse_gpu_vendors",
    "parse_os_release",
    "SystemdServiceManager",
]
