"""Built-in registry of components, their packages and configuration files."""

from dataclasses import dataclass

from hyprdeck.system.interfaces import FileSpec

from .models import ComponentName

HYPRLAND_CONF = """\
# Managed by hyprdeck for $username. Local changes are backed up on redeploy.
monitor = , preferred, auto, 1

$$terminal = $terminal
$$menu = $launcher_command

exec-once = waybar
exec-once = hyprpaper

input {
    kb_layout = us
    follow_mouse = 1
}

general {
    gaps_in = 4
    gaps_out = 8
    border_size = 2
    layout = dwindle
}

$$mainMod = SUPER
bind = $$mainMod, Return, exec, $$terminal
bind = $$mainMod, D, exec, $$menu
bind = $$mainMod, Q, killactive,
bind = $$mainMod, L, exec, hyprlock
"""

HYPRPAPER_CONF = """\
preload = $wallpaper_dir/default.png
wallpaper = , $wallpaper_dir/default.png
splash = false
"""

HYPRLOCK_CONF = """\
general {
    hide_cursor = true
}

background {
    path = screenshot
    blur_passes = 2
}

input-field {
    size = 240, 48
    placeholder_text = Password for $username
}
"""

WAYBAR_CONFIG = """\
{
    "layer": "top",
    "position": "top",
    "modules-left": ["hyprland/workspaces"],
    "modules-center": ["clock"],
    "modules-right": ["pulseaudio", "network", "battery", "tray"],
    "clock": {"format": "{:%a %d %b  %H:%M}"},
    "network": {"format-wifi": "{essid}", "format-ethernet": "wired"}
}
"""

WAYBAR_STYLE = """\
* {
    font-family: monospace;
    font-size: 13px;
}

window#waybar {
    background: rgba(30, 30, 46, 0.9);
    color: #cdd6f4;
}
"""

KITTY_CONF = """\
font_size 11.0
confirm_os_window_close 0
enable_audio_bell no
"""

FUZZEL_INI = """\
[main]
terminal=$terminal
layer=overlay

[colors]
background=1e1e2edd
text=cdd6f4ff
"""

ROFI_RASI = """\
configuration {
    modi: "drun,run";
    terminal: "$terminal";
    show-icons: true;
}
"""


@dataclass(frozen=True)
class CatalogEntry:
    component: ComponentName
    description: str
    packages: tuple[str, ...]
    files: tuple[FileSpec, ...] = ()
    core: bool = False

    @property
    def primary_package(self) -> str:
        return self.packages[0]


def _file(component: ComponentName, target: str, template: str) -> FileSpec:
    return FileSpec(component=component.value, target=target, template=template)


_C = ComponentName

_BUILTIN_CATALOG: list[CatalogEntry] = [
    CatalogEntry(
        _C.HYPRLAND,
        "Hyprland Wayland compositor",
        ("hyprland",),
        (_file(_C.HYPRLAND, "$config_dir/hypr/hyprland.conf", HYPRLAND_CONF),),
        core=True,
    ),
    CatalogEntry(
        _C.HYPRPAPER,
        "Wallpaper daemon",
        ("hyprpaper",),
        (_file(_C.HYPRPAPER, "$config_dir/hypr/hyprpaper.conf", HYPRPAPER_CONF),),
    ),
    CatalogEntry(
        _C.HYPRLOCK,
        "Screen locker",
        ("hyprlock",),
        (_file(_C.HYPRLOCK, "$config_dir/hypr/hyprlock.conf", HYPRLOCK_CONF),),
    ),
    CatalogEntry(
        _C.WAYBAR,
        "Status bar",
        ("waybar",),
        (
            _file(_C.WAYBAR, "$config_dir/waybar/config.jsonc", WAYBAR_CONFIG),
            _file(_C.WAYBAR, "$config_dir/waybar/style.css", WAYBAR_STYLE),
        ),
    ),
    CatalogEntry(
        _C.FUZZEL,
        "Application launcher (fuzzel)",
        ("fuzzel",),
        (_file(_C.FUZZEL, "$config_dir/fuzzel/fuzzel.ini", FUZZEL_INI),),
    ),
    CatalogEntry(
        _C.ROFI,
        "Application launcher (rofi)",
        ("rofi",),
        (_file(_C.ROFI, "$config_dir/rofi/config.rasi", ROFI_RASI),),
    ),
    CatalogEntry(
        _C.KITTY,
        "Terminal emulator",
        ("kitty",),
        (_file(_C.KITTY, "$config_dir/kitty/kitty.conf", KITTY_CONF),),
    ),
    CatalogEntry(_C.AMD_DRIVER, "AMD graphics driver", ("xserver-xorg-video-amdgpu",)),
    CatalogEntry(_C.NVIDIA_DRIVER, "NVIDIA proprietary driver", ("nvidia-driver",)),
    CatalogEntry(_C.INTEL_DRIVER, "Intel graphics driver", ("xserver-xorg-video-intel",)),
]

LAUNCHER_COMMANDS = {
    "fuzzel": "fuzzel",
    "rofi": "rofi -show drun",
}


def get_catalog() -> dict[ComponentName, CatalogEntry]:
    return {entry.component: entry for entry in _BUILTIN_CATALOG}


def get_entry(component: ComponentName) -> CatalogEntry:
    return get_catalog()[component]


def default_components(launcher: str = "fuzzel") -> list[ComponentName]:
    """The components a plain ``hyprdeck install`` selects."""
    chosen = ComponentName.ROFI if launcher == "rofi" else ComponentName.FUZZEL
    return [
        ComponentName.HYPRLAND,
        ComponentName.HYPRPAPER,
        ComponentName.HYPRLOCK,
        ComponentName.WAYBAR,
        chosen,
        ComponentName.KITTY,
    ]


def template_variables(
    username: str, home_dir: str, launcher: str = "fuzzel", wallpaper_dir: str | None = None
) -> dict[str, str]:
    config_dir = f"{home_dir.rstrip('/')}/.config"
    return {
        "username": username,
        "home_dir": home_dir,
        "config_dir": config_dir,
        "terminal": "kitty",
        "launcher_command": LAUNCHER_COMMANDS.get(launcher, launcher),
        "wallpaper_dir": wallpaper_dir or f"{home_dir.rstrip('/')}/Pictures/wallpapers",
    }


__all__ = [
    "CatalogEntry",
    "LAUNCHER_COMMANDS",
    "get_catalog",
    "get_entry",
    "default_components",
    "template_variables",
]
