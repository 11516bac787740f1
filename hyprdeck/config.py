"""Settings loading, JSON-ish preprocessing and validation."""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

from hyprdeck.errors import format_field_error
from hyprdeck.paths import get_config_path


class ConfigError(Exception):
    """Raised when settings loading or parsing fails.

    Syntax errors carry the line number, column and a caret indicator.
    """


DISPLAY_MANAGERS = ("sddm", "gdm", "tty", "none")
SHELLS = ("zsh", "bash", "fish")
LAUNCHERS = ("fuzzel", "rofi")


@dataclass
class Settings:
    """Effective runtime settings for one hyprdeck invocation."""

    required_disk_gb: int = 10
    supported_releases: list[str] = field(default_factory=lambda: ["trixie", "sid"])
    connectivity_host: str = "deb.debian.org"
    install_timeout: int = 600
    backup_retention_days: int = 30
    backup_keep_minimum: int = 3
    history_retention_days: int = 365
    progress_buffer: int = 64
    launcher: str = "fuzzel"
    display_manager: str = "sddm"
    shell: str = "zsh"
    shell_theme: str | None = None
    wallpaper_dir: str = "~/Pictures/wallpapers"
    merge_existing: bool = True
    backup_dir: str | None = None
    history_path: str | None = None

    def __post_init__(self):
        if not isinstance(self.required_disk_gb, int) or self.required_disk_gb < 1:
            raise ValueError("required_disk_gb must be a positive integer")
        if not self.supported_releases or not all(
            isinstance(r, str) and r for r in self.supported_releases
        ):
            raise ValueError("supported_releases must be a non-empty list of strings")
        if not self.connectivity_host or not isinstance(self.connectivity_host, str):
            raise ValueError("connectivity_host must be a non-empty string")
        if not isinstance(self.install_timeout, int) or self.install_timeout < 1:
            raise ValueError("install_timeout must be a positive integer")
        if not isinstance(self.backup_retention_days, int) or self.backup_retention_days < 0:
            raise ValueError("backup_retention_days must not be negative")
        if not isinstance(self.backup_keep_minimum, int) or self.backup_keep_minimum < 0:
            raise ValueError("backup_keep_minimum must not be negative")
        if not isinstance(self.history_retention_days, int) or self.history_retention_days < 1:
            raise ValueError("history_retention_days must be at least 1")
        if not isinstance(self.progress_buffer, int) or self.progress_buffer < 1:
            raise ValueError("progress_buffer must be a positive integer")
        if self.launcher not in LAUNCHERS:
            raise ValueError(f"launcher must be one of: {', '.join(LAUNCHERS)}")
        if self.display_manager not in DISPLAY_MANAGERS:
            raise ValueError(
                f"display_manager must be one of: {', '.join(DISPLAY_MANAGERS)}"
            )
        if self.shell not in SHELLS:
            raise ValueError(f"shell must be one of: {', '.join(SHELLS)}")

    @property
    def required_disk_bytes(self) -> int:
        return self.required_disk_gb * 1024**3


def validate_settings(data: dict) -> Settings:
    """Validate a raw dict and convert it to Settings.

    Unknown keys are rejected so typos do not silently fall back to defaults.

    Raises:
        ConfigError: If validation fails, naming the offending field
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Settings must be a JSON object, got {type(data).__name__}")

    known = {f.name for f in fields(Settings)}
    for key in data:
        if key not in known:
            raise ConfigError(format_field_error("Settings", key, "is not recognized"))

    try:
        return Settings(**data)
    except ValueError as e:
        raise ConfigError(f"Settings: {e}") from e


def preprocess_jsonish(text: str) -> str:
    """
    Preprocess JSON-ish text into strict JSON.

    Strips // line comments and trailing commas before ] or }, leaving
    string literals untouched. Removed characters become spaces so line
    and column positions in later error messages still match the input.
    """
    out = list(text)
    n = len(text)
    i = 0
    in_string = False

    while i < n:
        char = text[i]
        if in_string:
            if char == "\\":
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
        elif char == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                out[i] = " "
                i += 1
            continue
        elif char == "," and _closes_after(text, i + 1):
            out[i] = " "
        i += 1

    return "".join(out)


def _closes_after(text: str, start: int) -> bool:
    """Whether only whitespace and comments separate start from ] or }."""
    j = start
    n = len(text)
    while j < n:
        if text[j] in " \t\r\n":
            j += 1
        elif text.startswith("//", j):
            while j < n and text[j] != "\n":
                j += 1
        else:
            return text[j] in "]}"
    return False


def _format_syntax_error(original_text: str, error: json.JSONDecodeError) -> str:
    lines = original_text.split("\n")
    parts = [f"Settings syntax error at line {error.lineno}, col {error.colno}: {error.msg}"]
    if 1 <= error.lineno <= len(lines):
        parts.append(lines[error.lineno - 1])
        parts.append(" " * (error.colno - 1) + "^")
    return "\n".join(parts)


def load_config(path_or_text: Path | str) -> dict:
    """Load and parse a JSON-ish settings document.

    Args:
        path_or_text: Either a Path to a file, or a string containing
            JSON or JSON-ish text

    Returns:
        The parsed object

    Raises:
        ConfigError: If the file cannot be read or contains syntax errors.
        TypeError: If path_or_text is neither Path nor str.
    """
    if isinstance(path_or_text, Path):
        try:
            original_text = path_or_text.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigError(f"Settings file not found: {path_or_text}")
        except PermissionError:
            raise ConfigError(f"Permission denied reading settings file: {path_or_text}")
        except UnicodeDecodeError:
            raise ConfigError(f"Settings file is not valid UTF-8: {path_or_text}")
        except OSError as e:
            raise ConfigError(f"Error reading settings file {path_or_text}: {e}")
    elif isinstance(path_or_text, str):
        original_text = path_or_text
    else:
        raise TypeError(
            f"path_or_text must be Path or str, got {type(path_or_text).__name__}"
        )

    try:
        result = json.loads(preprocess_jsonish(original_text))
    except json.JSONDecodeError as e:
        raise ConfigError(_format_syntax_error(original_text, e)) from e

    if not isinstance(result, dict):
        raise ConfigError(f"Settings must be a JSON object, got {type(result).__name__}")
    return result


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from disk, falling back to defaults when no file exists."""
    if path is None:
        path = get_config_path()
    if not path.exists():
        return Settings()
    return validate_settings(load_config(path))


def render_settings(settings: Settings) -> str:
    return json.dumps(asdict(settings), indent=2) + "\n"


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    if path is None:
        path = get_config_path(create=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_settings(settings), encoding="utf-8")
    return path


__all__ = [
    "ConfigError",
    "Settings",
    "DISPLAY_MANAGERS",
    "SHELLS",
    "LAUNCHERS",
    "validate_settings",
    "preprocess_jsonish",
    "load_config",
    "load_settings",
    "render_settings",
    "save_settings",
]
