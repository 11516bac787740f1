"""Installation engine: models, planning, resolution and the pipeline."""

from .models import (
    CORE_COMPONENT,
    DRIVER_FOR_VENDOR,
    GPU_VENDORS,
    ComponentName,
    ComponentRequest,
    ComponentSelection,
    DiskSpace,
    GPUSupport,
    InstallationConfiguration,
    InstallationRequest,
    PackageInfo,
)
from .catalog import (
    CatalogEntry,
    default_components,
    get_catalog,
    get_entry,
    template_variables,
)
from .resolution import ConflictResolution, ConflictResolver, ResolutionAction, resolve
from .merging import ConfigurationMerger
from .planning import build_configuration, render_plan
from .operations import ConfigDeployOperation, PackageInstallOperation
from .repository import (
    AppliedConfigurationStore,
    JsonAppliedConfigurationStore,
    MemoryAppliedConfigurationStore,
    MemorySessionRepository,
    SessionRepository,
)
from .pipeline import Installation, InstallationPipeline, PipelineState
from .service import InstallationService

__all__ = [
    "CORE_COMPONENT",
    "DRIVER_FOR_VENDOR",
    "GPU_VENDORS",
    "ComponentName",
    "ComponentRequest",
    "ComponentSelection",
    "DiskSpace",
    "GPUSupport",
    "InstallationConfiguration",
    "InstallationRequest",
    "PackageInfo",
    "CatalogEntry",
    "default_components",
    "get_catalog",
    "get_entry",
    "template_variables",
    "ConflictResolution",
    "ConflictResolver",
    "ResolutionAction",
    "resolve",
    "ConfigurationMerger",
    "build_configuration",
    "render_plan",
    "ConfigDeployOperation",
    "PackageInstallOperation",
    "AppliedConfigurationStore",
    "JsonAppliedConfigurationStore",
    "MemoryAppliedConfigurationStore",
    "MemorySessionRepository",
    "SessionRepository",
    "Installation",
    "InstallationPipeline",
    "PipelineState",
    "InstallationService",
]
