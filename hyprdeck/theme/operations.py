"""Installer operations that switch the desktop to another theme."""

import logging
from typing import Any

from hyprdeck.installer.operations import ConfigDeployOperation
from hyprdeck.orchestration.context import RunContext
from hyprdeck.orchestration.operations import Installer
from hyprdeck.orchestration.results import OperationResult, SetupStatus
from hyprdeck.system.interfaces import ConfigDeployer, FileSpec

from .state import ThemeState, ThemeStateStore
from .themes import PALETTE_KEYS, Theme

_logging = logging.getLogger(__name__)

HYPR_COLORS = "# Managed by hyprdeck: $theme_display_name\n" + "".join(
    f"$${key} = rgb($theme_{key}_hex)\n" for key in PALETTE_KEYS
)

WAYBAR_COLORS = "/* Managed by hyprdeck: $theme_display_name */\n" + "".join(
    f"@define-color {key} $theme_{key};\n" for key in PALETTE_KEYS
)

KITTY_THEME = """\
# Managed by hyprdeck: $theme_display_name
foreground $theme_text
background $theme_base
selection_foreground $theme_base
selection_background $theme_rosewater
cursor $theme_rosewater
url_color $theme_rosewater
active_border_color $theme_lavender
inactive_border_color $theme_overlay
active_tab_foreground $theme_base
active_tab_background $theme_mauve
inactive_tab_foreground $theme_text
inactive_tab_background $theme_surface
color0 $theme_overlay
color1 $theme_red
color2 $theme_green
color3 $theme_yellow
color4 $theme_blue
color5 $theme_pink
color6 $theme_teal
color7 $theme_subtext
color8 $theme_surface
color9 $theme_maroon
color10 $theme_green
color11 $theme_peach
color12 $theme_sapphire
color13 $theme_mauve
color14 $theme_sky
color15 $theme_text
"""

THEME_FILES = (
    FileSpec(component="theme", target="$config_dir/hypr/colors.conf", template=HYPR_COLORS),
    FileSpec(component="theme", target="$config_dir/waybar/colors.css", template=WAYBAR_COLORS),
    FileSpec(component="theme", target="$config_dir/kitty/theme.conf", template=KITTY_THEME),
)


class ActiveThemeOperation(Installer):
    """Record a theme as active; rollback restores the previous record."""

    def __init__(self, theme: Theme, history: list[str], store: ThemeStateStore):
        self.theme = theme
        self.history = history
        self.store = store
        self.component = "theme:state"
        self.name = f"activate theme {theme.name}"
        self.previous: ThemeState | None = None

    async def execute(self, ctx: RunContext) -> OperationResult:
        result = OperationResult.start(self.component, f"Activating {self.theme.name}")
        previous = self.store.load()
        try:
            self.store.record(self.theme.name, self.history)
        except OSError as e:
            return result.with_error(e).with_details(str(e)).complete(
                SetupStatus.FAILED, f"Failed to record theme {self.theme.name}"
            )
        self.previous = previous
        return result.complete(
            SetupStatus.COMPLETED, f"Activated {self.theme.display_name}"
        )

    async def verify(self, ctx: RunContext) -> bool:
        return self.store.load().active == self.theme.name

    async def rollback(self, ctx: RunContext) -> None:
        if self.previous is not None:
            self.store.save(self.previous)
            _logging.info(f"Restored theme {self.previous.active}")

    def rollback_intent(self) -> dict[str, Any]:
        previous = self.previous.active if self.previous is not None else None
        return {"action": "restore_theme", "component": self.component, "theme": previous}


def build_theme_operations(
    theme: Theme,
    history: list[str],
    base_variables: dict[str, str],
    deployer: ConfigDeployer,
    store: ThemeStateStore,
) -> list[Installer]:
    """Color files first, then the active-theme record."""
    variables = {**base_variables, **theme.template_variables()}
    operations: list[Installer] = [
        ConfigDeployOperation(spec, variables, deployer) for spec in THEME_FILES
    ]
    operations.append(ActiveThemeOperation(theme, history, store))
    return operations


__all__ = ["THEME_FILES", "ActiveThemeOperation", "build_theme_operations"]
