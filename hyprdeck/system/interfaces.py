"""Contracts for the host collaborators the engine drives."""

from dataclasses import dataclass, field
from typing import Protocol

from hyprdeck.errors import HyprdeckError
from hyprdeck.orchestration.context import RunContext


class CommandError(HyprdeckError):
    """A host command (apt, systemctl, ...) exited unsuccessfully."""

    def __init__(self, command: str, returncode: int, output: str = ""):
        detail = output.strip().splitlines()[-1] if output.strip() else "no output"
        super().__init__(f"'{command}' exited with {returncode}: {detail}")
        self.command = command
        self.returncode = returncode
        self.output = output


class PackageManager(Protocol):
    async def install(self, ctx: RunContext, *names: str) -> None: ...

    async def remove(self, ctx: RunContext, *names: str) -> None: ...

    async def is_installed(self, ctx: RunContext, name: str) -> bool: ...

    async def installed_version(self, ctx: RunContext, name: str) -> str | None: ...


class ServiceManager(Protocol):
    async def enable(self, ctx: RunContext, service: str) -> None: ...

    async def disable(self, ctx: RunContext, service: str) -> None: ...

    async def start(self, ctx: RunContext, service: str) -> None: ...

    async def stop(self, ctx: RunContext, service: str) -> None: ...

    async def is_enabled(self, ctx: RunContext, service: str) -> bool: ...

    async def is_active(self, ctx: RunContext, service: str) -> bool: ...


@dataclass(frozen=True)
class FileSpec:
    """One configuration file a component deploys."""

    component: str
    target: str
    template: str
    mode: int = 0o644


@dataclass
class DeployResult:
    success: bool
    target: str
    backup_id: str | None = None
    backup_path: str | None = None
    warnings: list[str] = field(default_factory=list)


class ConfigDeployer(Protocol):
    async def deploy_with_backup(
        self, ctx: RunContext, spec: FileSpec, variables: dict[str, str]
    ) -> DeployResult: ...

    async def undo(self, ctx: RunContext, result: DeployResult) -> None: ...


__all__ = [
    "CommandError",
    "PackageManager",
    "ServiceManager",
    "FileSpec",
    "DeployResult",
    "ConfigDeployer",
]
