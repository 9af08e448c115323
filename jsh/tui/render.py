"""Progress bar, spinner and status-line composition.

Everything here is pure: callers pass the clock reading and the spinner
frame, so the same functions serve the foreground status bar and the
background animator.
"""

from dataclasses import dataclass

import click

FULL_GLYPH = "█"
EMPTY_GLYPH = "░"
SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"

DEFAULT_BAR_WIDTH = 20


def progress_bar(current: int, total: int, width: int = DEFAULT_BAR_WIDTH) -> str:
    """Render a fixed-width bar like "████████░░░░░░░░░░░░".

    A total of 0 means the amount of work is unknown and yields an empty bar.
    current is clamped to [0, total] so the result is always width glyphs.
    """
    width = max(0, width)
    if total <= 0:
        return EMPTY_GLYPH * width

    current = min(max(current, 0), total)
    filled = current * width // total
    return FULL_GLYPH * filled + EMPTY_GLYPH * (width - filled)


def spinner_char(frame: int) -> str:
    """Return the spinner glyph for a frame index; cycles every 10 frames."""
    return SPINNER_FRAMES[frame % len(SPINNER_FRAMES)]


class Spinner:
    """Frame counter for the indeterminate-progress spinner."""

    def __init__(self, frame: int = 0):
        self.frame = frame

    def advance(self) -> str:
        self.frame += 1
        return self.char

    @property
    def char(self) -> str:
        return spinner_char(self.frame)

    def reset(self) -> None:
        self.frame = 0


def format_duration(seconds: int) -> str:
    seconds = max(0, int(seconds))
    if seconds >= 60:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds}s"


def format_elapsed(seconds: float) -> str:
    """Format elapsed time as "42s" under a minute, "3m 5s" otherwise."""
    return format_duration(int(seconds))


def estimate_remaining(elapsed: float, current: int, total: int) -> int | None:
    """Estimate seconds left from the average time per finished item.

    Returns None when there is nothing to extrapolate from.
    """
    if total <= 0 or current <= 0:
        return None
    remaining_items = max(0, total - current)
    # centisecond precision, same integer maths as the shell version
    avg_per_item = int(elapsed) * 100 // current
    return remaining_items * avg_per_item // 100


def format_eta(seconds: int | None) -> str:
    if not seconds or seconds <= 0:
        return ""
    return f"~{format_duration(seconds)} remaining"


@dataclass
class StatusParts:
    """Pieces of one status line before styling."""
    operation: str
    gauge: str
    item: str = ""
    timing: str = ""

    def plain(self) -> str:
        text = f"{self.operation} {self.gauge}"
        if self.item:
            text += f" {self.item}"
        if self.timing:
            text += f" ({self.timing})"
        return text

    def styled(self, color: bool = True) -> str:
        if not color:
            return self.plain()
        text = click.style(self.operation, fg="cyan") + f" {self.gauge}"
        if self.item:
            text += " " + click.style(self.item, bold=True)
        if self.timing:
            text += " " + click.style(f"({self.timing})", fg="yellow")
        return text


def truncate(text: str, width: int, ellipsis: str = "…") -> str:
    """Cut text to width characters, marking the cut with an ellipsis."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width <= len(ellipsis):
        return text[:width]
    return text[: width - len(ellipsis)] + ellipsis


def build_status_parts(
    operation: str,
    current: int,
    total: int,
    item: str,
    elapsed: float | None,
    spinner: str,
    bar_width: int = DEFAULT_BAR_WIDTH,
    show_eta: bool = False,
) -> StatusParts:
    if total > 0:
        gauge = f"[{progress_bar(current, total, bar_width)}] {current}/{total}"
    else:
        gauge = f"[{spinner}]"

    timing = ""
    if elapsed is not None:
        if show_eta:
            timing = format_eta(estimate_remaining(elapsed, current, total))
        if not timing:
            timing = format_elapsed(elapsed)

    return StatusParts(operation=operation, gauge=gauge, item=item, timing=timing)


def compose_status(
    operation: str,
    current: int,
    total: int,
    item: str,
    elapsed: float | None,
    spinner: str,
    width: int,
    bar_width: int = DEFAULT_BAR_WIDTH,
    show_eta: bool = False,
    color: bool = True,
) -> str:
    """Compose the status-bar text, shortening the item to fit width columns."""
    parts = build_status_parts(
        operation, current, total, item, elapsed, spinner, bar_width, show_eta
    )
    overflow = len(parts.plain()) - width
    if overflow > 0 and parts.item:
        room = len(parts.item) - overflow
        parts.item = truncate(parts.item, room) if room > 1 else ""
    if len(parts.plain()) > width:
        # Still too wide: drop styling and hard-cut
        return truncate(parts.plain(), width)
    return parts.styled(color)


__all__ = [
    "FULL_GLYPH",
    "EMPTY_GLYPH",
    "SPINNER_FRAMES",
    "DEFAULT_BAR_WIDTH",
    "progress_bar",
    "spinner_char",
    "Spinner",
    "format_duration",
    "format_elapsed",
    "estimate_remaining",
    "format_eta",
    "StatusParts",
    "truncate",
    "build_status_parts",
    "compose_status",
]
