"""Built-in color themes."""

import re
from dataclasses import dataclass
from enum import Enum

from hyprdeck.errors import InvalidConfigurationError, ValidationError

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")

PALETTE_KEYS = (
    "base",
    "surface",
    "overlay",
    "text",
    "subtext",
    "rosewater",
    "flamingo",
    "pink",
    "mauve",
    "red",
    "maroon",
    "peach",
    "yellow",
    "green",
    "teal",
    "sky",
    "sapphire",
    "blue",
    "lavender",
)

DEFAULT_THEME = "mocha"


class ThemeVariant(Enum):
    DARK = "dark"
    LIGHT = "light"


@dataclass(frozen=True)
class Theme:
    name: str
    display_name: str
    author: str
    variant: ThemeVariant
    colors: dict[str, str]
    description: str = ""

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise InvalidConfigurationError("theme name cannot be empty")
        if not self.display_name:
            raise InvalidConfigurationError(f"theme '{self.name}' needs a display name")
        if not self.author:
            raise InvalidConfigurationError(f"theme '{self.name}' needs an author")
        missing = [key for key in PALETTE_KEYS if key not in self.colors]
        if missing:
            raise InvalidConfigurationError(
                f"theme '{self.name}' is missing colors: {', '.join(missing)}"
            )
        for key, value in self.colors.items():
            if not isinstance(value, str) or not HEX_COLOR.match(value):
                raise InvalidConfigurationError(
                    f"theme '{self.name}' color '{key}' must be in format #RRGGBB"
                )

    @property
    def is_dark(self) -> bool:
        return self.variant == ThemeVariant.DARK

    def template_variables(self) -> dict[str, str]:
        """``theme_<color>`` (``#rrggbb``) and ``theme_<color>_hex`` (``rrggbb``) values."""
        variables = {
            "theme_name": self.name,
            "theme_display_name": self.display_name,
            "theme_variant": self.variant.value,
        }
        for key in PALETTE_KEYS:
            value = self.colors[key].lower()
            variables[f"theme_{key}"] = value
            variables[f"theme_{key}_hex"] = value[1:]
        return variables

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "author": self.author,
            "description": self.description,
            "variant": self.variant.value,
            "colors": {key: self.colors[key] for key in PALETTE_KEYS},
        }


def _catppuccin(name, flavor, variant, base, surface, overlay, text, subtext, accents):
    colors = dict(base=base, surface=surface, overlay=overlay, text=text, subtext=subtext)
    colors.update(zip(PALETTE_KEYS[5:], accents))
    return Theme(
        name=name,
        display_name=f"Catppuccin {flavor}",
        author="Catppuccin",
        variant=variant,
        colors=colors,
        description="Soothing pastel theme",
    )


_MOCHA_ACCENTS = (
    "#f5e0dc", "#f2cdcd", "#f5c2e7", "#cba6f7", "#f38ba8", "#eba0ac", "#fab387",
    "#f9e2af", "#a6e3a1", "#94e2d5", "#89dceb", "#74c7ec", "#89b4fa", "#b4befe",
)  # fmt: skip

_BUILTIN_THEMES = [
    _catppuccin(
        "mocha", "Mocha", ThemeVariant.DARK,
        "#1e1e2e", "#313244", "#45475a", "#cdd6f4", "#bac2de", _MOCHA_ACCENTS,
    ),
    _catppuccin(
        "latte", "Latte", ThemeVariant.LIGHT,
        "#eff1f5", "#e6e9ef", "#dce0e8", "#4c4f69", "#5c5f77",
        ("#dc8a78", "#dd7878", "#ea76cb", "#8839ef", "#d20f39", "#e64553", "#fe640b",
         "#df8e1d", "#40a02b", "#179299", "#04a5e5", "#209fb5", "#1e66f5", "#7287fd"),
    ),
    _catppuccin(
        "frappe", "Frappe", ThemeVariant.DARK,
        "#303446", "#414559", "#51576d", "#c6d0f5", "#b5bfe2",
        ("#f2d5cf", "#eebebe", "#f4b8e4", "#ca9ee6", "#e78284", "#ea999c", "#ef9f76",
         "#e5c890", "#a6d189", "#81c8be", "#99d1db", "#85c1dc", "#8caaee", "#babbf1"),
    ),
    _catppuccin(
        "macchiato", "Macchiato", ThemeVariant.DARK,
        "#24273a", "#363a4f", "#494d64", "#cad3f5", "#b8c0e0",
        ("#f4dbd6", "#f0c6c6", "#f5bde6", "#c6a0f6", "#ed8796", "#ee99a0", "#f5a97f",
         "#eed49f", "#a6da95", "#8bd5ca", "#91d7e3", "#7dc4e4", "#8aadf4", "#b7bdf8"),
    ),
    Theme(
        name="hyprdeck",
        display_name="Hyprdeck",
        author="hyprdeck",
        variant=ThemeVariant.DARK,
        colors=dict(
            zip(
                PALETTE_KEYS,
                ("#1e1e2e", "#313244", "#45475a", "#cdd6f4", "#bac2de") + _MOCHA_ACCENTS,
            )
        ),
        description="Mocha base with the hyprdeck accents",
    ),
]  # fmt: skip


def get_themes() -> dict[str, Theme]:
    return {theme.name: theme for theme in _BUILTIN_THEMES}


def get_theme(name: str) -> Theme:
    """Look up a built-in theme by name.

    Raises:
        ValidationError: If no theme has that name
    """
    themes = get_themes()
    theme = themes.get(name.strip().lower())
    if theme is None:
        raise ValidationError(f"unknown theme '{name}' (known: {', '.join(themes)})")
    return theme


__all__ = [
    "DEFAULT_THEME",
    "PALETTE_KEYS",
    "Theme",
    "ThemeVariant",
    "get_theme",
    "get_themes",
]
