"""Error types and formatting utilities for consistent error messages.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Use present tense: 'must be', 'is required'
- Include actionable hints where helpful
- Terminal capability problems are not errors: the TUI falls back to plain
  output instead of raising
"""


class JshError(Exception):
    """Base class for errors reported to the user by the CLI."""


class ConfigError(JshError):
    """Raised when the config file cannot be loaded or fails validation."""


class DeclarationError(JshError):
    """Raised when the package declaration file is unreadable or malformed."""


class ApplyError(JshError):
    """Raised by a collaborator when declaring or uninstalling one package fails.

    The selector records it against the item and keeps processing the rest.
    """

    def __init__(self, label: str, message: str):
        super().__init__(f"{label}: {message}")
        self.label = label
        self.message = message


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("taskfile not found")
        'Error: taskfile not found'
    """
    return f"Error: {message}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("brew not found", "install it from https://brew.sh")
        'Error: brew not found. Hint: install it from https://brew.sh'
    """
    return f"{format_error(message)}. Hint: {suggestion}"


__all__ = [
    "JshError",
    "ConfigError",
    "DeclarationError",
    "ApplyError",
    "format_error",
    "format_suggestion",
]
