"""Turn requests into configurations and render installation plans."""

from .catalog import get_entry
from .models import (
    DRIVER_FOR_VENDOR,
    ComponentName,
    ComponentSelection,
    DiskSpace,
    GPUSupport,
    InstallationConfiguration,
    InstallationRequest,
)
from .resolution import ConflictResolution, ResolutionAction


def build_configuration(
    request: InstallationRequest, disk: DiskSpace | None = None
) -> InstallationConfiguration:
    """Build a validated configuration from a request.

    A GPU that needs a driver pulls the matching driver component in.

    Raises:
        InvalidConfigurationError: If the result would violate the
            configuration invariants (e.g. no core component)
    """
    request.validate()
    selections = [
        ComponentSelection(ComponentName.parse(c.name), c.version) for c in request.components
    ]

    gpu = None
    if request.gpu_vendor:
        gpu = GPUSupport(request.gpu_vendor, requires_driver=request.requires_driver)
        if gpu.requires_driver and gpu.driver not in [s.component for s in selections]:
            selections.append(ComponentSelection(DRIVER_FOR_VENDOR[gpu.vendor]))

    return InstallationConfiguration.build(
        selections, gpu=gpu, disk=disk, merge_existing=request.merge_existing
    )


_ACTION_ICONS = {
    ResolutionAction.INSTALL: "📦",
    ResolutionAction.UPGRADE: "🔄",
    ResolutionAction.SKIP: "⏭️",
}


def render_plan(
    configuration: InstallationConfiguration,
    resolutions: list[ConflictResolution] | None = None,
) -> str:
    """Human readable summary of what an installation will do."""
    by_component = {r.component: r for r in resolutions or []}
    lines = ["Installation plan:", ""]

    for i, selection in enumerate(configuration.components, 1):
        entry = get_entry(selection.component)
        resolution = by_component.get(selection.component)
        if resolution is None:
            lines.append(f"  {i}. {selection.component.value} ({selection.version})")
        else:
            icon = _ACTION_ICONS[resolution.action]
            lines.append(
                f"  {i}. {icon} {selection.component.value}: "
                f"{resolution.action.value} ({resolution.reason})"
            )
        lines.append(f"     packages: {', '.join(entry.packages)}")
        for spec in entry.files:
            lines.append(f"     config:   {spec.target}")

    if configuration.gpu is not None:
        lines.append("")
        gpu = configuration.gpu
        note = " (proprietary driver)" if gpu.is_proprietary else ""
        lines.append(f"GPU: {gpu.vendor}{note}")

    if configuration.disk.required_bytes:
        lines.append(
            f"Disk: {configuration.disk.available_bytes / 1024**3:.1f} GB available, "
            f"{configuration.disk.required_bytes / 1024**3:.1f} GB required"
        )
    return "\n".join(lines)


__all__ = ["build_configuration", "render_plan"]
