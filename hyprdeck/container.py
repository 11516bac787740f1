"""Explicit wiring of collaborators, built once per invocation from Settings."""

import getpass
from dataclasses import dataclass, field
from pathlib import Path

from hyprdeck import __version__
from hyprdeck.backup import BackupStore
from hyprdeck.config import Settings
from hyprdeck.history import JsonlHistoryRecorder, capture_system_context
from hyprdeck.installer.catalog import template_variables
from hyprdeck.installer.models import InstallationConfiguration
from hyprdeck.installer.pipeline import InstallationPipeline
from hyprdeck.installer.repository import (
    AppliedConfigurationStore,
    JsonAppliedConfigurationStore,
    MemorySessionRepository,
    SessionRepository,
)
from hyprdeck.installer.service import InstallationService
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Validator
from hyprdeck.paths import (
    get_applied_config_path,
    get_backup_dir,
    get_history_path,
    get_theme_state_path,
)
from hyprdeck.preflight.runner import build_validators, measure_disk
from hyprdeck.system.apt import AptPackageManager
from hyprdeck.system.deploy import FileConfigDeployer
from hyprdeck.system.interfaces import ConfigDeployer, PackageManager, ServiceManager
from hyprdeck.system.probe import HostProbe
from hyprdeck.system.systemd import SystemdServiceManager
from hyprdeck.theme import ThemeService, ThemeStateStore


@dataclass
class Container:
    settings: Settings
    probe: HostProbe
    package_manager: PackageManager
    service_manager: ServiceManager
    backups: BackupStore
    deployer: ConfigDeployer
    history: JsonlHistoryRecorder
    applied: AppliedConfigurationStore
    repository: SessionRepository = field(default_factory=MemorySessionRepository)
    theme_state: ThemeStateStore = field(
        default_factory=lambda: ThemeStateStore(get_theme_state_path())
    )
    username: str = field(default_factory=getpass.getuser)
    home_dir: Path = field(default_factory=Path.home)
    debug: bool = False
    _service: InstallationService | None = field(default=None, init=False, repr=False)

    def run_context(self, timeout: float | None = None) -> RunContext:
        return RunContext(timeout=timeout, debug=self.debug)

    def template_variables(self) -> dict[str, str]:
        wallpaper_dir = str(Path(self.settings.wallpaper_dir).expanduser())
        return template_variables(
            self.username, str(self.home_dir), self.settings.launcher, wallpaper_dir
        )

    def preflight_validators(
        self, configuration: InstallationConfiguration | None = None
    ) -> list[Validator]:
        return build_validators(self.settings, self.probe, configuration)

    def pipeline(self) -> InstallationPipeline:
        return InstallationPipeline(
            package_manager=self.package_manager,
            deployer=self.deployer,
            history=self.history,
            preflight_factory=self.preflight_validators,
            applied_store=self.applied,
            measure_disk=lambda: measure_disk(self.probe, self.settings),
            system_context=lambda: capture_system_context(self.probe, __version__),
            template_variables=self.template_variables(),
            merge_by_default=self.settings.merge_existing,
        )

    def service(self) -> InstallationService:
        if self._service is None:
            self._service = InstallationService(
                self.pipeline(), self.repository, self.history, debug=self.debug
            )
        return self._service

    def theme_service(self) -> ThemeService:
        return ThemeService(self.theme_state, self.deployer, self.template_variables())


def build_container(settings: Settings | None = None, debug: bool = False) -> Container:
    settings = settings or Settings()
    backup_dir = Path(settings.backup_dir).expanduser() if settings.backup_dir else get_backup_dir()
    history_path = (
        Path(settings.history_path).expanduser() if settings.history_path else get_history_path()
    )
    backups = BackupStore(backup_dir)
    return Container(
        settings=settings,
        probe=HostProbe(),
        package_manager=AptPackageManager(timeout=settings.install_timeout),
        service_manager=SystemdServiceManager(),
        backups=backups,
        deployer=FileConfigDeployer(backups),
        history=JsonlHistoryRecorder(history_path),
        applied=JsonAppliedConfigurationStore(get_applied_config_path()),
        debug=debug,
    )


__all__ = ["Container", "build_container"]
