"""Data models for installation configurations and requests."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from hyprdeck.errors import InvalidConfigurationError, ValidationError, format_field_error


class ComponentName(Enum):
    HYPRLAND = "hyprland"
    HYPRPAPER = "hyprpaper"
    HYPRLOCK = "hyprlock"
    WAYBAR = "waybar"
    FUZZEL = "fuzzel"
    ROFI = "rofi"
    KITTY = "kitty"
    AMD_DRIVER = "amd_driver"
    NVIDIA_DRIVER = "nvidia_driver"
    INTEL_DRIVER = "intel_driver"

    @classmethod
    def parse(cls, value: str) -> "ComponentName":
        try:
            return cls(value.strip().lower())
        except ValueError:
            known = ", ".join(c.value for c in cls)
            raise ValidationError(f"unknown component '{value}' (known: {known})")


CORE_COMPONENT = ComponentName.HYPRLAND

GPU_VENDORS = ("amd", "nvidia", "intel")

DRIVER_FOR_VENDOR = {
    "amd": ComponentName.AMD_DRIVER,
    "nvidia": ComponentName.NVIDIA_DRIVER,
    "intel": ComponentName.INTEL_DRIVER,
}


@dataclass(frozen=True)
class PackageInfo:
    name: str
    version: str
    size_bytes: int = 0
    description: str = ""


@dataclass(frozen=True)
class ComponentSelection:
    component: ComponentName
    version: str = "latest"
    package: PackageInfo | None = None

    def __post_init__(self):
        if not self.version or not self.version.strip():
            raise InvalidConfigurationError(
                format_field_error(f"Component '{self.component.value}'", "version", "is required")
            )


@dataclass(frozen=True)
class GPUSupport:
    vendor: str
    requires_driver: bool = False
    driver: ComponentName | None = None

    def __post_init__(self):
        vendor = (self.vendor or "").strip().lower()
        object.__setattr__(self, "vendor", vendor)
        if vendor not in GPU_VENDORS:
            raise InvalidConfigurationError(
                f"GPU vendor must be one of: {', '.join(GPU_VENDORS)}"
            )
        if self.requires_driver and self.driver is None:
            object.__setattr__(self, "driver", DRIVER_FOR_VENDOR[vendor])
        if self.driver is not None and self.driver != DRIVER_FOR_VENDOR[vendor]:
            raise InvalidConfigurationError(
                f"driver '{self.driver.value}' does not match GPU vendor '{vendor}'"
            )

    @property
    def is_proprietary(self) -> bool:
        return self.vendor == "nvidia"


@dataclass(frozen=True)
class DiskSpace:
    available_bytes: int = 0
    required_bytes: int = 0

    def __post_init__(self):
        if self.available_bytes < 0 or self.required_bytes < 0:
            raise InvalidConfigurationError("disk space values must not be negative")

    @property
    def is_measured(self) -> bool:
        return self.available_bytes > 0

    def is_sufficient(self) -> bool:
        return self.available_bytes >= self.required_bytes


@dataclass(frozen=True)
class InstallationConfiguration:
    """What an installation should put on the host.

    Always non-empty and always contains the core component. It never
    holds two selections for the same component, and a driver component
    is only present for the GPU it belongs to.
    """

    components: tuple[ComponentSelection, ...]
    gpu: GPUSupport | None = None
    disk: DiskSpace = field(default_factory=DiskSpace)
    merge_existing: bool | None = None

    def __post_init__(self):
        if not self.components:
            raise InvalidConfigurationError("configuration must contain at least one component")
        names = [s.component for s in self.components]
        if len(set(names)) != len(names):
            raise InvalidConfigurationError("configuration contains duplicate components")
        if CORE_COMPONENT not in names:
            raise InvalidConfigurationError(
                f"configuration must include the core component '{CORE_COMPONENT.value}'"
            )
        expected_driver = DRIVER_FOR_VENDOR[self.gpu.vendor] if self.gpu else None
        for name in names:
            if name in DRIVER_FOR_VENDOR.values() and name != expected_driver:
                raise InvalidConfigurationError(
                    f"driver '{name.value}' selected without a matching GPU"
                )

    @classmethod
    def build(
        cls,
        selections: list[ComponentSelection],
        gpu: GPUSupport | None = None,
        disk: DiskSpace | None = None,
        merge_existing: bool | None = None,
    ) -> "InstallationConfiguration":
        """Build a configuration, letting the last selection for a component win."""
        by_name: dict[ComponentName, ComponentSelection] = {}
        for selection in selections:
            by_name[selection.component] = selection
        return cls(
            components=tuple(by_name.values()),
            gpu=gpu,
            disk=disk or DiskSpace(),
            merge_existing=merge_existing,
        )

    def component_names(self) -> list[ComponentName]:
        return [s.component for s in self.components]

    def selection_for(self, component: ComponentName) -> ComponentSelection | None:
        return next((s for s in self.components if s.component == component), None)

    def to_dict(self) -> dict:
        return {
            "components": [
                {"name": s.component.value, "version": s.version} for s in self.components
            ],
            "gpu": (
                {
                    "vendor": self.gpu.vendor,
                    "requires_driver": self.gpu.requires_driver,
                    "driver": self.gpu.driver.value if self.gpu.driver else None,
                }
                if self.gpu
                else None
            ),
            "disk": {
                "available_bytes": self.disk.available_bytes,
                "required_bytes": self.disk.required_bytes,
            },
            "merge_existing": self.merge_existing,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InstallationConfiguration":
        gpu = data.get("gpu")
        disk = data.get("disk") or {}
        return cls.build(
            [
                ComponentSelection(ComponentName.parse(c["name"]), c.get("version", "latest"))
                for c in data.get("components", [])
            ],
            gpu=(
                GPUSupport(
                    vendor=gpu["vendor"],
                    requires_driver=gpu.get("requires_driver", False),
                    driver=ComponentName.parse(gpu["driver"]) if gpu.get("driver") else None,
                )
                if gpu
                else None
            ),
            disk=DiskSpace(disk.get("available_bytes", 0), disk.get("required_bytes", 0)),
            merge_existing=data.get("merge_existing"),
        )


@dataclass(frozen=True)
class ComponentRequest:
    name: str
    version: str = "latest"


@dataclass(frozen=True)
class InstallationRequest:
    """A caller's request to install components, before validation."""

    components: tuple[ComponentRequest, ...]
    gpu_vendor: str | None = None
    requires_driver: bool = False
    merge_existing: bool | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "InstallationRequest":
        """Validate a JSON-like request body.

        Raises:
            ValidationError: naming the first offending field
        """
        if not isinstance(data, dict):
            raise ValidationError("request must be an object")
        components = data.get("components")
        if not isinstance(components, list) or not components:
            raise ValidationError("at least one component is required")

        parsed = []
        for i, item in enumerate(components):
            if isinstance(item, str):
                item = {"name": item}
            if not isinstance(item, dict):
                raise ValidationError(f"components[{i}] must be an object")
            name = item.get("name")
            if not isinstance(name, str) or not name.strip():
                raise ValidationError(format_field_error(f"components[{i}]", "name", "is required"))
            version = item.get("version", "latest")
            if not isinstance(version, str) or not version.strip():
                raise ValidationError(
                    format_field_error(f"Component '{name}'", "version", "is required")
                )
            parsed.append(ComponentRequest(name.strip(), version.strip()))

        gpu = data.get("gpu") or {}
        if not isinstance(gpu, dict):
            raise ValidationError("gpu must be an object")
        vendor = gpu.get("vendor")
        if vendor is not None and not isinstance(vendor, str):
            raise ValidationError(format_field_error("gpu", "vendor", "must be a string"))
        requires_driver = gpu.get("requires_driver", False)
        if not isinstance(requires_driver, bool):
            raise ValidationError(
                format_field_error("gpu", "requires_driver", "must be a boolean")
            )
        merge = data.get("merge_existing")
        if merge is not None and not isinstance(merge, bool):
            raise ValidationError("merge_existing must be a boolean")

        return cls(
            components=tuple(parsed),
            gpu_vendor=vendor,
            requires_driver=requires_driver,
            merge_existing=merge,
        )

    def validate(self) -> None:
        if not self.components:
            raise ValidationError("at least one component is required")
        for component in self.components:
            ComponentName.parse(component.name)
            if not component.version.strip():
                raise ValidationError(
                    format_field_error(f"Component '{component.name}'", "version", "is required")
                )
        if self.gpu_vendor is not None and self.gpu_vendor.strip().lower() not in GPU_VENDORS:
            raise ValidationError(f"GPU vendor must be one of: {', '.join(GPU_VENDORS)}")


__all__ = [
    "ComponentName",
    "CORE_COMPONENT",
    "GPU_VENDORS",
    "DRIVER_FOR_VENDOR",
    "PackageInfo",
    "ComponentSelection",
    "GPUSupport",
    "DiskSpace",
    "InstallationConfiguration",
    "ComponentRequest",
    "InstallationRequest",
]
