"""Post-install component installers run after the desktop packages."""

import json
import logging
from pathlib import Path
from typing import Any

from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Installer
from hyprdeck.orchestration.results import OperationResult, SetupStatus
from hyprdeck.system.interfaces import CommandError, PackageManager, ServiceManager

_logging = logging.getLogger(__name__)

WAYLAND_SESSIONS = Path("/usr/share/wayland-sessions")

HYPRLAND_DESKTOP_ENTRY = """\
[Desktop Entry]
Name=Hyprland
Comment=An intelligent dynamic tiling Wayland compositor
Exec=Hyprland
Type=Application
"""

# display manager -> (package, systemd unit)
DISPLAY_MANAGERS = {
    "sddm": ("sddm", "sddm"),
    "gdm": ("gdm3", "gdm"),
}

SHELL_RC_FILES = {
    "zsh": ".zshrc",
    "bash": ".bashrc",
    "fish": ".config/fish/config.fish",
}

AUDIO_PACKAGES = ("pipewire", "pipewire-pulse", "wireplumber")
NETWORK_PACKAGES = ("network-manager", "network-manager-gnome")
NETWORK_SERVICE = "NetworkManager"

WALLPAPER_SUFFIXES = {".png", ".jpg", ".jpeg", ".webp"}


def _failed(result: OperationResult, message: str, error: Exception) -> OperationResult:
    return result.with_error(error).with_details(str(error)).complete(SetupStatus.FAILED, message)


class DisplayManagerInstaller(Installer):
    name = "Display manager"
    component = "display_manager"

    def __init__(
        self,
        manager: str,
        packages: PackageManager,
        services: ServiceManager,
        sessions_dir: Path = WAYLAND_SESSIONS,
    ):
        self.manager = manager
        self.packages = packages
        self.services = services
        self.sessions_dir = Path(sessions_dir)
        self._enabled_service: str | None = None
        self._created_entry: Path | None = None

    async def execute(self, ctx: RunContext) -> OperationResult:
        result = OperationResult.start(self.component, f"Configuring {self.manager}")
        if self.manager == "none":
            return result.complete(SetupStatus.SKIPPED, "No display manager requested")

        try:
            entry = self._ensure_session_entry()
            if entry is not None:
                result = result.with_details(f"Created {entry}")
        except OSError as e:
            return _failed(result, "Could not create the Hyprland session entry", e)

        if self.manager == "tty":
            return result.with_details("Start Hyprland from a console with 'Hyprland'").complete(
                SetupStatus.COMPLETED, "Hyprland will start from the console"
            )

        package, service = DISPLAY_MANAGERS[self.manager]
        try:
            await self.packages.install(ctx, package)
            already_enabled = await self.services.is_enabled(ctx, service)
            if not already_enabled:
                await self.services.enable(ctx, service)
                self._enabled_service = service
        except CommandError as e:
            return _failed(result, f"Failed to set up {self.manager}", e)

        return result.with_details(f"Installed {package}", f"Enabled {service}").complete(
            SetupStatus.COMPLETED, f"{self.manager} configured"
        )

    def _ensure_session_entry(self) -> Path | None:
        entry = self.sessions_dir / "hyprland.desktop"
        if entry.exists():
            return None
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        entry.write_text(HYPRLAND_DESKTOP_ENTRY)
        self._created_entry = entry
        return entry

    async def verify(self, ctx: RunContext) -> bool:
        if self.manager in ("none", "tty"):
            return True
        _, service = DISPLAY_MANAGERS[self.manager]
        return await self.services.is_enabled(ctx, service)

    async def rollback(self, ctx: RunContext) -> None:
        if self._enabled_service:
            await self.services.disable(ctx, self._enabled_service)
        if self._created_entry is not None:
            self._created_entry.unlink(missing_ok=True)

    def rollback_intent(self) -> dict[str, Any]:
        return {
            "action": "disable_service",
            "component": self.component,
            "service": self._enabled_service,
            "remove": str(self._created_entry) if self._created_entry else None,
        }


class ShellInstaller(Installer):
    name = "Shell"
    component = "shell"

    def __init__(
        self,
        shell: str,
        packages: PackageManager,
        home_dir: Path,
        theme: str | None = None,
    ):
        self.shell = shell
        self.packages = packages
        self.home_dir = Path(home_dir)
        self.theme = theme
        self._appended: str | None = None

    @property
    def rc_file(self) -> Path:
        return self.home_dir / SHELL_RC_FILES[self.shell]

    def theme_block(self) -> str:
        if self.shell == "zsh":
            line = f'ZSH_THEME="{self.theme}"'
        elif self.shell == "fish":
            line = f"set -g hyprdeck_theme {self.theme}"
        else:
            line = f'export HYPRDECK_THEME="{self.theme}"'
        return f"\n# hyprdeck theme\n{line}\n"

    async def execute(self, ctx: RunContext) -> OperationResult:
        result = OperationResult.start(self.component, f"Setting up {self.shell}")
        try:
            if self.shell != "bash":
                await self.packages.install(ctx, self.shell)
                result = result.with_details(f"Installed {self.shell}")
        except CommandError as e:
            return _failed(result, f"Failed to install {self.shell}", e)

        if self.theme:
            block = self.theme_block()
            try:
                self.rc_file.parent.mkdir(parents=True, exist_ok=True)
                existing = self.rc_file.read_text() if self.rc_file.exists() else ""
                if block not in existing:
                    with open(self.rc_file, "a", encoding="utf-8") as f:
                        f.write(block)
                    self._appended = block
                result = result.with_details(f"Theme '{self.theme}' set in {self.rc_file}")
            except OSError as e:
                return _failed(result, f"Failed to write {self.rc_file}", e)

        result = result.with_details(
            f"Make it your login shell with: chsh -s $(which {self.shell})"
        )
        return result.complete(SetupStatus.COMPLETED, f"{self.shell} ready")

    async def verify(self, ctx: RunContext) -> bool:
        return await self.packages.is_installed(ctx, self.shell)

    async def rollback(self, ctx: RunContext) -> None:
        if not self._appended or not self.rc_file.exists():
            return
        text = self.rc_file.read_text()
        self.rc_file.write_text(text.replace(self._appended, "", 1))

    def rollback_intent(self) -> dict[str, Any]:
        return {
            "action": "remove_theme_block" if self._appended else "none",
            "component": self.component,
            "file": str(self.rc_file),
        }


class AudioInstaller(Installer):
    name = "Audio"
    component = "audio"

    def __init__(self, packages: PackageManager):
        self.packages = packages

    async def execute(self, ctx: RunContext) -> OperationResult:
        result = OperationResult.start(self.component, "Installing PipeWire")
        try:
            await self.packages.install(ctx, *AUDIO_PACKAGES)
        except CommandError as e:
            return _failed(result, "Failed to install PipeWire", e)
        return result.with_details(f"Installed {', '.join(AUDIO_PACKAGES)}").complete(
            SetupStatus.COMPLETED, "PipeWire audio installed"
        )

    async def verify(self, ctx: RunContext) -> bool:
        return await self.packages.is_installed(ctx, "pipewire")

    async def rollback(self, ctx: RunContext) -> None:
        # Removing the sound server would break other desktops sharing it.
        _logging.info("Leaving PipeWire installed")

    def rollback_intent(self) -> dict[str, Any]:
        return {"action": "none", "component": self.component}


class NetworkInstaller(Installer):
    name = "Network"
    component = "network"

    def __init__(self, packages: PackageManager, services: ServiceManager):
        self.packages = packages
        self.services = services
        self._enabled = False

    async def execute(self, ctx: RunContext) -> OperationResult:
        result = OperationResult.start(self.component, "Setting up NetworkManager")
        try:
            await self.packages.install(ctx, *NETWORK_PACKAGES)
            if not await self.services.is_enabled(ctx, NETWORK_SERVICE):
                await self.services.enable(ctx, NETWORK_SERVICE)
                self._enabled = True
            if not await self.services.is_active(ctx, NETWORK_SERVICE):
                await self.services.start(ctx, NETWORK_SERVICE)
        except CommandError as e:
            return _failed(result, "Failed to set up NetworkManager", e)
        return result.with_details(
            f"Installed {', '.join(NETWORK_PACKAGES)}", f"{NETWORK_SERVICE} running"
        ).complete(SetupStatus.COMPLETED, "NetworkManager configured")

    async def verify(self, ctx: RunContext) -> bool:
        return await self.services.is_active(ctx, NETWORK_SERVICE)

    async def rollback(self, ctx: RunContext) -> None:
        if self._enabled:
            await self.services.disable(ctx, NETWORK_SERVICE)

    def rollback_intent(self) -> dict[str, Any]:
        return {
            "action": "disable_service" if self._enabled else "none",
            "component": self.component,
            "service": NETWORK_SERVICE,
        }


class WallpaperCacheInstaller(Installer):
    """Index the wallpaper directory so hyprpaper and pickers start fast."""

    name = "Wallpaper cache"
    component = "wallpaper"

    def __init__(self, wallpaper_dir: Path, cache_dir: Path):
        self.wallpaper_dir = Path(wallpaper_dir)
        self.cache_dir = Path(cache_dir)

    @property
    def index_path(self) -> Path:
        return self.cache_dir / "wallpapers.json"

    async def execute(self, ctx: RunContext) -> OperationResult:
        result = OperationResult.start(self.component, "Building wallpaper cache")
        if not self.wallpaper_dir.is_dir():
            return result.complete(
                SetupStatus.SKIPPED, f"No wallpaper directory at {self.wallpaper_dir}"
            )

        images = sorted(
            str(p)
            for p in self.wallpaper_dir.iterdir()
            if p.is_file() and p.suffix.lower() in WALLPAPER_SUFFIXES
        )
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self.index_path.write_text(json.dumps({"wallpapers": images}, indent=2))
        except OSError as e:
            return _failed(result, "Could not write the wallpaper cache", e)

        return result.with_details(f"Indexed {len(images)} image(s)").complete(
            SetupStatus.COMPLETED, "Wallpaper cache generated"
        )

    async def verify(self, ctx: RunContext) -> bool:
        return self.index_path.is_file()

    async def rollback(self, ctx: RunContext) -> None:
        self.index_path.unlink(missing_ok=True)

    def rollback_intent(self) -> dict[str, Any]:
        return {
            "action": "remove_file",
            "component": self.component,
            "target": str(self.index_path),
        }


__all__ = [
    "DisplayManagerInstaller",
    "ShellInstaller",
    "AudioInstaller",
    "NetworkInstaller",
    "WallpaperCacheInstaller",
]
