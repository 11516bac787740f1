"""Installer operations used by the installation pipeline."""

import logging
from typing import Any

from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Installer
from hyprdeck.orchestration.results import OperationResult, SetupStatus
from hyprdeck.system.interfaces import (
    CommandError,
    ConfigDeployer,
    DeployResult,
    FileSpec,
    PackageManager,
)

from .catalog import CatalogEntry
from .resolution import ConflictResolution, ResolutionAction

_logging = logging.getLogger(__name__)


class PackageInstallOperation(Installer):
    """Install or upgrade the packages of one component."""

    def __init__(
        self,
        entry: CatalogEntry,
        resolution: ConflictResolution,
        package_manager: PackageManager,
    ):
        self.entry = entry
        self.resolution = resolution
        self.package_manager = package_manager
        self.component = entry.component.value
        self.name = f"{resolution.action.value} {self.component}"

    async def execute(self, ctx: RunContext) -> OperationResult:
        result = OperationResult.start(self.component, f"Installing {self.component}")
        packages = list(self.entry.packages)
        try:
            await self.package_manager.install(ctx, *packages)
        except CommandError as e:
            return result.with_error(e).with_details(str(e)).complete(
                SetupStatus.FAILED, f"Failed to install {self.component}"
            )

        verb = "Upgraded" if self.resolution.action == ResolutionAction.UPGRADE else "Installed"
        return result.with_details(f"{verb} {', '.join(packages)}").complete(
            SetupStatus.COMPLETED, f"{verb} {self.component}"
        )

    async def verify(self, ctx: RunContext) -> bool:
        for package in self.entry.packages:
            if not await self.package_manager.is_installed(ctx, package):
                return False
        return True

    async def rollback(self, ctx: RunContext) -> None:
        if self.resolution.action != ResolutionAction.INSTALL:
            _logging.info(f"Not removing {self.component}: it was installed before this run")
            return
        await self.package_manager.remove(ctx, *self.entry.packages)

    def rollback_intent(self) -> dict[str, Any]:
        if self.resolution.action != ResolutionAction.INSTALL:
            return {
                "action": "none",
                "component": self.component,
                "reason": "upgrades are not reverted",
            }
        return {
            "action": "remove_packages",
            "component": self.component,
            "packages": list(self.entry.packages),
        }


class ConfigDeployOperation(Installer):
    """Deploy one configuration file, backing up what it replaces."""

    def __init__(self, spec: FileSpec, variables: dict[str, str], deployer: ConfigDeployer):
        self.spec = spec
        self.variables = variables
        self.deployer = deployer
        filename = spec.target.rsplit("/", 1)[-1]
        self.component = f"{spec.component}:{filename}"
        self.name = f"deploy {self.component}"
        self.deployed: DeployResult | None = None

    async def execute(self, ctx: RunContext) -> OperationResult:
        result = OperationResult.start(self.component, f"Deploying {self.spec.target}")
        try:
            deployed = await self.deployer.deploy_with_backup(ctx, self.spec, self.variables)
        except OSError as e:
            return result.with_error(e).with_details(str(e)).complete(
                SetupStatus.FAILED, f"Failed to deploy {self.spec.target}"
            )

        if not deployed.success:
            return result.with_details(*deployed.warnings).complete(
                SetupStatus.FAILED, f"Failed to deploy {deployed.target}"
            )

        self.deployed = deployed
        result = result.with_details(f"Wrote {deployed.target}")
        if deployed.backup_id:
            result = result.with_details(f"Backup {deployed.backup_id} at {deployed.backup_path}")
        if deployed.warnings:
            result = result.with_details(*(f"warning: {w}" for w in deployed.warnings))
        return result.complete(SetupStatus.COMPLETED, f"Deployed {deployed.target}")

    async def rollback(self, ctx: RunContext) -> None:
        if self.deployed is not None:
            await self.deployer.undo(ctx, self.deployed)

    def rollback_intent(self) -> dict[str, Any]:
        if self.deployed is not None and self.deployed.backup_id:
            return {
                "action": "restore_backup",
                "component": self.component,
                "backup_id": self.deployed.backup_id,
            }
        target = self.deployed.target if self.deployed is not None else self.spec.target
        return {"action": "remove_file", "component": self.component, "target": target}


__all__ = ["PackageInstallOperation", "ConfigDeployOperation"]
