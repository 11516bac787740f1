"""Color themes for the deployed desktop configuration."""

from .operations import THEME_FILES, ActiveThemeOperation, build_theme_operations
from .service import ThemeChange, ThemeService
from .state import ThemeState, ThemeStateStore
from .themes import DEFAULT_THEME, PALETTE_KEYS, Theme, ThemeVariant, get_theme, get_themes

__all__ = [
    "THEME_FILES",
    "ActiveThemeOperation",
    "build_theme_operations",
    "ThemeChange",
    "ThemeService",
    "ThemeState",
    "ThemeStateStore",
    "DEFAULT_THEME",
    "PALETTE_KEYS",
    "Theme",
    "ThemeVariant",
    "get_theme",
    "get_themes",
]
