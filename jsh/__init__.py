"""jsh: shell environment manager with a raw-terminal progress and selection UI."""

import logging
import sys

from .config import JshConfig, TuiSettings, load_config
from .errors import (
    ApplyError,
    ConfigError,
    DeclarationError,
    JshError,
    format_error,
    format_suggestion,
)
from .execution import INSTALL_TIMEOUT, run_command_async, stream_command

__version__ = "0.1.0"

TUI_DEBUG_FORMAT = "[tui:debug] %(message)s"


def setup_logging(debug: bool = False, settings: TuiSettings | None = None) -> None:
    """Configure stderr logging for the CLI.

    --debug turns on DEBUG for every jsh logger. DEBUG_TUI turns on DEBUG
    for the jsh.tui loggers only, tagged "[tui:debug]" like the shell version.
    Without either flag only warnings and errors are shown, so falling back
    from the TUI to plain output stays silent.
    """
    settings = settings or TuiSettings.from_env()

    root = logging.getLogger("jsh")
    if not any(getattr(h, "_jsh_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
        handler._jsh_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.WARNING)

    tui = logging.getLogger("jsh.tui")
    for h in list(tui.handlers):
        if getattr(h, "_jsh_handler", False):
            tui.removeHandler(h)
    if settings.debug_tui:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(TUI_DEBUG_FORMAT))
        handler._jsh_handler = True  # type: ignore[attr-defined]
        tui.addHandler(handler)
        tui.setLevel(logging.DEBUG)
        tui.propagate = False
    else:
        tui.setLevel(logging.NOTSET)
        tui.propagate = True


__all__ = [
    "__version__",
    "ApplyError",
    "ConfigError",
    "DeclarationError",
    "JshConfig",
    "JshError",
    "TuiSettings",
    "TUI_DEBUG_FORMAT",
    "INSTALL_TIMEOUT",
    "format_error",
    "format_suggestion",
    "load_config",
    "run_command_async",
    "setup_logging",
    "stream_command",
]
