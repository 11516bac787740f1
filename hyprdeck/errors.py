"""Error types and message formatting for hyprdeck.

All user-facing errors should be rendered with the helpers below.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Field errors use structured format: '<entity> field '<field>' <issue>'
- Use present tense: 'must be', 'is required'
- Avoid emojis in error messages (keep in progress displays only)
- Include actionable hints where helpful
"""


class HyprdeckError(Exception):
    """Base class for errors raised across the orchestration boundary."""

    status_code = 500


class ValidationError(HyprdeckError):
    """A request was malformed and was rejected before any side effect."""

    status_code = 400


class InvalidConfigurationError(ValidationError):
    """An installation configuration violates its invariants."""


class SessionNotFoundError(HyprdeckError):
    status_code = 404

    def __init__(self, session_id: str):
        super().__init__(f"session '{session_id}' not found")
        self.session_id = session_id


class InvalidStateTransitionError(HyprdeckError):
    """The installation pipeline was asked to move to an illegal state."""

    status_code = 409


class OperationCancelledError(HyprdeckError):
    """Raised by run contexts when work is attempted after cancellation."""


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("session 'abc' not found")
        "Error: session 'abc' not found"
    """
    return f"Error: {message}"


def format_field_error(entity: str, field: str, issue: str) -> str:
    """Format a field validation error with structured format.

    Args:
        entity: Name of the entity being validated (e.g., "Component 'waybar'")
        field: Name of the field that failed validation
        issue: Description of the issue (e.g., "must be a non-empty string")

    Returns:
        Formatted field error message

    Examples:
        >>> format_field_error("Component 'waybar'", "version", "is required")
        "Component 'waybar' field 'version' is required"
    """
    return f"{entity} field '{field}' {issue}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("settings file not found", "run 'hyprdeck config init' to create one")
        "Error: settings file not found. Hint: run 'hyprdeck config init' to create one"
    """
    return f"{format_error(message)}. Hint: {suggestion}"


__all__ = [
    "HyprdeckError",
    "ValidationError",
    "InvalidConfigurationError",
    "SessionNotFoundError",
    "InvalidStateTransitionError",
    "OperationCancelledError",
    "format_error",
    "format_field_error",
    "format_suggestion",
]
