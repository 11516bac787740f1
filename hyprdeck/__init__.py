"""hyprdeck: provision and maintain a Hyprland desktop on Debian hosts."""

import logging
import sys

__version__ = "0.4.0"

_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s: %(message)s"
_FMT_MINIMAL = "%(levelname)s: %(message)s"


def setup_logging(debug: bool = False) -> None:
    """Configure the hyprdeck logger hierarchy.

    Debug mode logs everything to stderr with timestamps; otherwise only
    warnings and errors are shown. Calling it again replaces the handler.
    """
    level = logging.DEBUG if debug else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(_FMT_DEBUG if debug else _FMT_MINIMAL, datefmt="%H:%M:%S")
    )

    logger = logging.getLogger("hyprdeck")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


from hyprdeck.config import (  # noqa: E402
    ConfigError,
    Settings,
    load_config,
    load_settings,
    preprocess_jsonish,
    validate_settings,
)
from hyprdeck.errors import (  # noqa: E402
    HyprdeckError,
    SessionNotFoundError,
    ValidationError,
    format_error,
    format_field_error,
    format_suggestion,
)
from hyprdeck.execution import (  # noqa: E402
    DEFAULT_TIMEOUT,
    INSTALL_TIMEOUT,
    SERVICE_TIMEOUT,
    run_command_async,
)
from hyprdeck.paths import get_config_dir, get_config_path, get_state_dir  # noqa: E402

__all__ = [
    "__version__",
    "setup_logging",
    "ConfigError",
    "Settings",
    "load_config",
    "load_settings",
    "preprocess_jsonish",
    "validate_settings",
    "HyprdeckError",
    "SessionNotFoundError",
    "ValidationError",
    "format_error",
    "format_field_error",
    "format_suggestion",
    "DEFAULT_TIMEOUT",
    "INSTALL_TIMEOUT",
    "SERVICE_TIMEOUT",
    "run_command_async",
    "get_config_dir",
    "get_config_path",
    "get_state_dir",
]
