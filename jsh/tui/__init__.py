"""Terminal UI engine for jsh.

This package is split into submodules:
- capability: decide once whether the terminal can host the TUI
- terminal: acquire and restore the terminal (scroll region, raw mode)
- render: progress bar, spinner and status line text
- progress: status bar controller with plain-output fallback
- animator: background redraw while a command runs
- keys: keystroke and arrow-sequence parsing
- selector: full-screen package selector
- prompts: per-item prompts when the full-screen selector is unavailable

The public API is re-exported from this __init__ file.
"""

from .capability import (
    CapabilityDetector,
    Support,
    get_detector,
    is_supported,
    reset_detection,
)
from .terminal import (
    GuardState,
    SessionMode,
    TerminalGeometry,
    TerminalGuard,
    raw_mode,
)
from .render import (
    Spinner,
    compose_status,
    estimate_remaining,
    format_elapsed,
    format_eta,
    progress_bar,
    spinner_char,
    truncate,
)
from .animator import AnimatorState, StatusAnimator
from .progress import ProgressDisplay, ProgressState, open_progress
from .keys import EscapeParser, Key, KeyEvent, TerminalInput, read_key
from .models import Action, ApplyResult, PackageKind, SelectionPlan, SelectorItem
from .selector import (
    InteractiveSelector,
    SelectionOutcome,
    SelectorPhase,
    SelectorSession,
    confirm_and_apply,
    render_screen,
    select_and_apply,
)
from .prompts import select_actions_prompt

__all__ = [
    "CapabilityDetector",
    "Support",
    "get_detector",
    "is_supported",
    "reset_detection",
    "GuardState",
    "SessionMode",
    "TerminalGeometry",
    "TerminalGuard",
    "raw_mode",
    "Spinner",
    "compose_status",
    "estimate_remaining",
    "format_elapsed",
    "format_eta",
    "progress_bar",
    "spinner_char",
    "truncate",
    "AnimatorState",
    "StatusAnimator",
    "ProgressDisplay",
    "ProgressState",
    "open_progress",
    "EscapeParser",
    "Key",
    "KeyEvent",
    "TerminalInput",
    "read_key",
    "Action",
    "ApplyResult",
    "PackageKind",
    "SelectionPlan",
    "SelectorItem",
    "InteractiveSelector",
    "SelectionOutcome",
    "SelectorPhase",
    "SelectorSession",
    "confirm_and_apply",
    "render_screen",
    "select_and_apply",
    "select_actions_prompt",
]
