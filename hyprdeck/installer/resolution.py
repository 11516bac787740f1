"""Install / upgrade / skip decisions against the current host state."""

import logging
from dataclasses import dataclass
from enum import Enum

from hyprdeck.orchestration.context import RunContext
from hyprdeck.system.interfaces import PackageManager
from hyprdeck.versions import compare_versions

from .catalog import get_entry
from .models import ComponentName, ComponentSelection

_logging = logging.getLogger(__name__)

LATEST = "latest"


class ResolutionAction(Enum):
    INSTALL = "install"
    UPGRADE = "upgrade"
    SKIP = "skip"


@dataclass(frozen=True)
class ConflictResolution:
    component: ComponentName
    action: ResolutionAction
    reason: str
    requested_version: str
    installed_version: str | None = None

    @property
    def needs_work(self) -> bool:
        return self.action != ResolutionAction.SKIP

    def to_dict(self) -> dict:
        return {
            "component": self.component.value,
            "action": self.action.value,
            "reason": self.reason,
            "requested_version": self.requested_version,
            "installed_version": self.installed_version,
        }


def resolve(
    component: ComponentName, requested_version: str, installed_version: str | None
) -> ConflictResolution:
    """Decide what to do for one component. Never downgrades."""
    if installed_version is None:
        return ConflictResolution(
            component, ResolutionAction.INSTALL, "not installed", requested_version
        )

    if requested_version == LATEST:
        return ConflictResolution(
            component,
            ResolutionAction.SKIP,
            f"already installed ({installed_version})",
            requested_version,
            installed_version,
        )

    comparison = compare_versions(installed_version, requested_version)
    if comparison < 0:
        return ConflictResolution(
            component,
            ResolutionAction.UPGRADE,
            f"installed {installed_version} is older than {requested_version}",
            requested_version,
            installed_version,
        )
    if comparison == 0:
        reason = "already at requested version"
    else:
        reason = f"installed {installed_version} is newer than {requested_version}"
    return ConflictResolution(
        component, ResolutionAction.SKIP, reason, requested_version, installed_version
    )


class ConflictResolver:
    """Resolves selections using read-only package manager queries."""

    def __init__(self, package_manager: PackageManager):
        self.package_manager = package_manager

    async def resolve_selection(
        self, ctx: RunContext, selection: ComponentSelection
    ) -> ConflictResolution:
        entry = get_entry(selection.component)
        installed = await self.package_manager.installed_version(ctx, entry.primary_package)

        for extra in entry.packages[1:]:
            if not await self.package_manager.is_installed(ctx, extra):
                return ConflictResolution(
                    selection.component,
                    ResolutionAction.INSTALL,
                    f"{extra} not installed",
                    selection.version,
                    installed,
                )
        return resolve(selection.component, selection.version, installed)

    async def plan(
        self, ctx: RunContext, selections: list[ComponentSelection] | tuple[ComponentSelection, ...]
    ) -> list[ConflictResolution]:
        resolutions = []
        for selection in selections:
            resolution = await self.resolve_selection(ctx, selection)
            if ctx.debug:
                _logging.debug(
                    f"{selection.component.value}: {resolution.action.value} ({resolution.reason})"
                )
            resolutions.append(resolution)
        return resolutions


__all__ = [
    "LATEST",
    "ResolutionAction",
    "ConflictResolution",
    "resolve",
    "ConflictResolver",
]
