"""Pytest fixtures and fakes for hyprdeck tests."""

import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from hyprdeck.config import Settings
from hyprdeck.history import MemoryHistoryRecorder, SystemContext
from hyprdeck.installer.models import DiskSpace, InstallationConfiguration
from hyprdeck.installer.pipeline import InstallationPipeline
from hyprdeck.installer.repository import MemoryAppliedConfigurationStore
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Checker, Installer, Validator
from hyprdeck.orchestration.results import CheckResult, OperationResult, SetupStatus
from hyprdeck.system.interfaces import CommandError, DeployResult, FileSpec

GB = 1024**3


class FakePackageManager:
    """In-memory package database recording every call."""

    def __init__(self, installed: dict[str, str] | None = None, fail_on: set[str] | None = None):
        self.versions = dict(installed or {})
        self.fail_on = set(fail_on or ())
        self.install_calls: list[tuple[str, ...]] = []
        self.remove_calls: list[tuple[str, ...]] = []

    async def install(self, ctx: RunContext, *names: str) -> None:
        self.install_calls.append(names)
        failing = self.fail_on.intersection(names)
        if failing:
            raise CommandError(f"apt-get install {' '.join(names)}", 100, f"E: {failing.pop()}")
        for name in names:
            self.versions[name] = "1.0.0"

    async def remove(self, ctx: RunContext, *names: str) -> None:
        self.remove_calls.append(names)
        for name in names:
            self.versions.pop(name, None)

    async def is_installed(self, ctx: RunContext, name: str) -> bool:
        return name in self.versions

    async def installed_version(self, ctx: RunContext, name: str) -> str | None:
        return self.versions.get(name)


class FakeServiceManager:
    def __init__(self, enabled: set[str] | None = None, active: set[str] | None = None):
        self.enabled = set(enabled or ())
        self.active = set(active or ())
        self.calls: list[tuple[str, str]] = []

    async def enable(self, ctx: RunContext, service: str) -> None:
        self.calls.append(("enable", service))
        self.enabled.add(service)

    async def disable(self, ctx: RunContext, service: str) -> None:
        self.calls.append(("disable", service))
        self.enabled.discard(service)

    async def start(self, ctx: RunContext, service: str) -> None:
        self.calls.append(("start", service))
        self.active.add(service)

    async def stop(self, ctx: RunContext, service: str) -> None:
        self.calls.append(("stop", service))
        self.active.discard(service)

    async def is_enabled(self, ctx: RunContext, service: str) -> bool:
        return service in self.enabled

    async def is_active(self, ctx: RunContext, service: str) -> bool:
        return service in self.active


class FakeDeployer:
    def __init__(self, fail_on: set[str] | None = None, warnings: list[str] | None = None):
        self.fail_on = set(fail_on or ())
        self.warnings = list(warnings or ())
        self.deployed: list[str] = []
        self.undone: list[str] = []

    async def deploy_with_backup(
        self, ctx: RunContext, spec: FileSpec, variables: dict[str, str]
    ) -> DeployResult:
        if spec.component in self.fail_on:
            raise OSError(f"cannot write {spec.target}")
        self.deployed.append(spec.target)
        return DeployResult(success=True, target=spec.target, warnings=list(self.warnings))

    async def undo(self, ctx: RunContext, result: DeployResult) -> None:
        self.undone.append(result.target)


class FakeProbe:
    """Host probe answering from fixed values."""

    def __init__(
        self,
        os_release: dict[str, str] | None = None,
        disk_bytes: int = 50 * GB,
        gpus: list[str] | None = None,
        online: bool = True,
        sources: list[str] | None = None,
        commands: set[str] | None = None,
    ):
        self.release = os_release if os_release is not None else {
            "ID": "debian",
            "VERSION_CODENAME": "trixie",
            "PRETTY_NAME": "Debian GNU/Linux 13 (trixie)",
        }
        self.disk_bytes = disk_bytes
        self.gpus = list(gpus or [])
        self.online = online
        self.sources = (
            sources
            if sources is not None
            else ["deb http://deb.debian.org/debian trixie main contrib"]
        )
        self.commands = set(commands or ())

    def os_info(self) -> dict[str, str]:
        return dict(self.release)

    def kernel_version(self) -> str:
        return "6.12.0-test"

    def hostname(self) -> str:
        return "testhost"

    def disk_available(self, path: Path | None = None) -> int:
        return self.disk_bytes

    def command_exists(self, name: str) -> bool:
        return name in self.commands

    async def gpu_vendors(self, debug: bool = False) -> list[str]:
        return list(self.gpus)

    async def can_connect(self, host: str, port: int = 443, timeout: float = 5.0) -> bool:
        return self.online

    def apt_source_lines(self) -> list[str]:
        return list(self.sources)


class StaticValidator(Validator):
    def __init__(self, component: str, result: CheckResult):
        self.component = component
        self.name = f"validate {component}"
        self.result = result
        self.calls = 0

    async def validate(self, ctx: RunContext) -> CheckResult:
        self.calls += 1
        return self.result


class StaticChecker(Checker):
    def __init__(self, component: str, result: CheckResult):
        self.component = component
        self.name = f"check {component}"
        self.result = result
        self.calls = 0

    async def check(self, ctx: RunContext) -> CheckResult:
        self.calls += 1
        return self.result


class RecordingInstaller(Installer):
    """Installer appending its name to a shared log on execute and rollback."""

    def __init__(self, name: str, log: list[str], status: SetupStatus = SetupStatus.COMPLETED):
        self.name = name
        self.component = name
        self.log = log
        self.status = status

    async def execute(self, ctx: RunContext) -> OperationResult:
        self.log.append(f"run {self.name}")
        return OperationResult.start(self.component).complete(self.status, f"{self.name} done")

    async def rollback(self, ctx: RunContext) -> None:
        self.log.append(f"rollback {self.name}")


class RaisingInstaller(Installer):
    name = "explode"
    component = "explode"

    async def execute(self, ctx: RunContext) -> OperationResult:
        raise RuntimeError("boom")

    async def rollback(self, ctx: RunContext) -> None:
        pass


def system_context() -> SystemContext:
    return SystemContext(
        os_version="Debian GNU/Linux 13 (trixie)",
        kernel_version="6.12.0-test",
        app_version="0.4.0",
        hostname="testhost",
    )


def passing_validators(configuration: InstallationConfiguration) -> list[Validator]:
    return [StaticValidator("debian_version", CheckResult.passed("debian_version", "ok"))]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def ctx() -> RunContext:
    return RunContext()


@pytest.fixture
def package_manager() -> FakePackageManager:
    return FakePackageManager()


@pytest.fixture
def service_manager() -> FakeServiceManager:
    return FakeServiceManager()


@pytest.fixture
def deployer() -> FakeDeployer:
    return FakeDeployer()


@pytest.fixture
def history() -> MemoryHistoryRecorder:
    return MemoryHistoryRecorder()


@pytest.fixture
def applied_store() -> MemoryAppliedConfigurationStore:
    return MemoryAppliedConfigurationStore()


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    return Settings(
        backup_dir=str(temp_dir / "backups"),
        history_path=str(temp_dir / "history.jsonl"),
        wallpaper_dir=str(temp_dir / "wallpapers"),
    )


@pytest.fixture
def make_pipeline(package_manager, deployer, history, applied_store):
    """Factory for pipelines wired to the fakes; override any collaborator."""

    def _create(**overrides) -> InstallationPipeline:
        disk = overrides.pop("disk", DiskSpace(50 * GB, 10 * GB))
        values = {
            "package_manager": package_manager,
            "deployer": deployer,
            "history": history,
            "preflight_factory": passing_validators,
            "applied_store": applied_store,
            "measure_disk": lambda: disk,
            "system_context": system_context,
            "template_variables": {
                "config_dir": "/home/tester/.config",
                "home_dir": "/home/tester",
            },
        }
        values.update(overrides)
        return InstallationPipeline(**values)

    return _create


@pytest.fixture
def mock_tty() -> Generator[None, None, None]:
    """Mock sys.stdin.isatty to return True."""
    with patch("sys.stdin.isatty", return_value=True):
        yield


@pytest.fixture
def mock_no_tty() -> Generator[None, None, None]:
    """Mock sys.stdin.isatty to return False."""
    with patch("sys.stdin.isatty", return_value=False):
        yield
