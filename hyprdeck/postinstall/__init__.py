"""Post-install setup: display manager, shell, audio, network and wallpapers."""

from .installers import (
    AudioInstaller,
    DisplayManagerInstaller,
    NetworkInstaller,
    ShellInstaller,
    WallpaperCacheInstaller,
)
from .runner import PostInstallReport, PostInstallRequest, build_installers, run_post_install

__all__ = [
    "AudioInstaller",
    "DisplayManagerInstaller",
    "NetworkInstaller",
    "ShellInstaller",
    "WallpaperCacheInstaller",
    "PostInstallReport",
    "PostInstallRequest",
    "build_installers",
    "run_post_install",
]
