"""Assemble and run the post-install installers."""

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from hyprdeck.config import DISPLAY_MANAGERS, SHELLS, ConfigError, Settings
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Installer
from hyprdeck.orchestration.orchestrator import Orchestrator, StepCallback
from hyprdeck.orchestration.results import OperationResult, SetupStatus
from hyprdeck.orchestration.session import Session
from hyprdeck.system.interfaces import PackageManager, ServiceManager

from .installers import (
    WAYLAND_SESSIONS,
    AudioInstaller,
    DisplayManagerInstaller,
    NetworkInstaller,
    ShellInstaller,
    WallpaperCacheInstaller,
)


@dataclass
class PostInstallRequest:
    display_manager: str = "sddm"
    shell: str = "zsh"
    shell_theme: str | None = None
    audio: bool = True
    network: bool = True
    wallpaper_cache: bool = True

    def __post_init__(self):
        if self.display_manager not in DISPLAY_MANAGERS:
            raise ConfigError(
                f"display_manager must be one of {', '.join(DISPLAY_MANAGERS)}, "
                f"got '{self.display_manager}'"
            )
        if self.shell not in SHELLS:
            raise ConfigError(f"shell must be one of {', '.join(SHELLS)}, got '{self.shell}'")

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "PostInstallRequest":
        values = {
            "display_manager": settings.display_manager,
            "shell": settings.shell,
            "shell_theme": settings.shell_theme,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def build_installers(
    request: PostInstallRequest,
    settings: Settings,
    packages: PackageManager,
    services: ServiceManager,
    home_dir: Path,
    sessions_dir: Path = WAYLAND_SESSIONS,
) -> list[Installer]:
    """Installers in run order: display manager first, wallpaper cache last."""
    installers: list[Installer] = [
        DisplayManagerInstaller(request.display_manager, packages, services, sessions_dir),
        ShellInstaller(request.shell, packages, home_dir, request.shell_theme),
    ]
    if request.audio:
        installers.append(AudioInstaller(packages))
    if request.network:
        installers.append(NetworkInstaller(packages, services))
    if request.wallpaper_cache:
        wallpaper_dir = Path(settings.wallpaper_dir).expanduser()
        installers.append(
            WallpaperCacheInstaller(wallpaper_dir, Path(home_dir) / ".cache" / "hyprdeck")
        )
    return installers


@dataclass
class PostInstallReport:
    session: Session

    @property
    def results(self) -> list[OperationResult]:
        return [r for r in self.session.results() if isinstance(r, OperationResult)]

    def _status_of(self, component: str) -> SetupStatus | None:
        result = self.session.result_for(component)
        return result.status if isinstance(result, OperationResult) else None

    @property
    def success(self) -> bool:
        return not any(r.is_failure() for r in self.results) and not self.session.cancelled

    @property
    def display_manager_configured(self) -> bool:
        return self._status_of("display_manager") == SetupStatus.COMPLETED

    @property
    def shell_configured(self) -> bool:
        return self._status_of("shell") == SetupStatus.COMPLETED

    @property
    def audio_configured(self) -> bool:
        return self._status_of("audio") == SetupStatus.COMPLETED

    @property
    def network_configured(self) -> bool:
        return self._status_of("network") == SetupStatus.COMPLETED

    def recommendations(self) -> list[str]:
        recs = []
        for result in self.results:
            if result.is_failure():
                recs.append(f"Re-run 'hyprdeck postinstall' after fixing {result.component}")
        if self.display_manager_configured or self.network_configured:
            recs.append("Reboot to start the display manager and network services")
        if self.shell_configured:
            recs.append("Log out and back in to use the new shell configuration")
        return recs

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "display_manager_configured": self.display_manager_configured,
            "shell_configured": self.shell_configured,
            "audio_configured": self.audio_configured,
            "network_configured": self.network_configured,
            "results": [r.to_dict() for r in self.results],
            "recommendations": self.recommendations(),
            "duration_ms": int(self.session.duration.total_seconds() * 1000),
        }


async def run_post_install(
    ctx: RunContext,
    installers: Sequence[Installer],
    on_step: StepCallback | None = None,
) -> PostInstallReport:
    session = await Orchestrator().run_with_progress(ctx, installers, on_step)
    return PostInstallReport(session)


__all__ = ["PostInstallRequest", "PostInstallReport", "build_installers", "run_post_install"]
