"""Combine a previously applied configuration with a new request."""

from pathlib import Path

from hyprdeck.system.deploy import should_backup_existing

from .models import DRIVER_FOR_VENDOR, ComponentSelection, InstallationConfiguration


class ConfigurationMerger:
    def merge(
        self,
        existing: InstallationConfiguration | None,
        requested: InstallationConfiguration,
    ) -> InstallationConfiguration:
        """Merge requested on top of existing.

        Requested components come first, in their own order, followed by
        components only the existing configuration had. A component present
        in both takes the requested version. GPU support and the merge flag
        carry over from existing unless requested declares them; disk space
        is the requested measurement unless that one was never taken. A
        driver carried over from existing is dropped when the GPU changed.
        """
        if existing is None:
            return requested

        gpu = requested.gpu if requested.gpu is not None else existing.gpu
        expected_driver = DRIVER_FOR_VENDOR[gpu.vendor] if gpu else None

        requested_names = set(requested.component_names())
        selections: list[ComponentSelection] = list(requested.components)
        for selection in existing.components:
            if selection.component in requested_names:
                continue
            if (
                selection.component in DRIVER_FOR_VENDOR.values()
                and selection.component != expected_driver
            ):
                continue
            selections.append(selection)

        merge_flag = (
            requested.merge_existing
            if requested.merge_existing is not None
            else existing.merge_existing
        )
        disk = requested.disk if requested.disk.is_measured else existing.disk

        return InstallationConfiguration.build(
            selections, gpu=gpu, disk=disk, merge_existing=merge_flag
        )

    def should_backup_existing(self, path: str | Path) -> bool:
        return should_backup_existing(Path(path).expanduser())


__all__ = ["ConfigurationMerger"]
