"""Status bar controller: cargo-style progress under a scrolling log.

    display = ProgressDisplay()
    display.init()          # False -> plain line output, still usable
    display.start("Installing packages", len(packages))
    for pkg in packages:
        display.next(pkg)
        display.run_animated(f"brew install {pkg}")
    display.complete()
    display.cleanup()
"""

import logging
import sys
import time
from dataclasses import dataclass
from typing import Callable, TextIO

import click

from ..execution import stream_command
from .animator import DEFAULT_INTERVAL, AnimatorState, StatusAnimator
from .render import DEFAULT_BAR_WIDTH, Spinner, compose_status
from .terminal import CLEAR_LINE, RESTORE_CURSOR, SAVE_CURSOR, TerminalGuard, move_to

_logging = logging.getLogger(__name__)

MESSAGE_TAGS = {
    "log": ("[*]", "blue"),
    "info": ("[i]", "cyan"),
    "success": ("[✓]", "green"),
    "warn": ("[!]", "yellow"),
    "error": ("[✗]", "red"),
}

FINISH_MARKS = {
    "success": ("✓", "green"),
    "warn": ("!", "yellow"),
}


@dataclass
class ProgressState:
    operation: str = ""
    current: int = 0
    total: int = 0
    current_item: str = ""
    start_time: float = 0.0
    spinner_frame: int = 0

    @property
    def active(self) -> bool:
        return bool(self.operation)

    def reset(self) -> None:
        self.operation = ""
        self.current = 0
        self.total = 0
        self.current_item = ""
        self.start_time = 0.0
        self.spinner_frame = 0


class ProgressDisplay:
    """Owns the status line of one terminal session.

    Works in two modes: with an initialised TerminalGuard the status bar is
    redrawn in place; otherwise every call prints one plain line.
    """

    def __init__(
        self,
        guard: TerminalGuard | None = None,
        output: TextIO | None = None,
        clock: Callable[[], float] = time.time,
        bar_width: int = DEFAULT_BAR_WIDTH,
        animate: bool = False,
        animation_interval: float = DEFAULT_INTERVAL,
        color: bool = True,
    ):
        if guard is None:
            guard = TerminalGuard(output=output)
        self.guard = guard
        self.output = output if output is not None else guard.output
        self.clock = clock
        self.bar_width = bar_width
        self.animate = animate
        self.color = color
        self.state = ProgressState()
        self.spinner = Spinner()
        self.animator = StatusAnimator(
            self.output,
            lock=guard.lock,
            interval=animation_interval,
            clock=clock,
            bar_width=bar_width,
            color=color,
        )

    @property
    def enabled(self) -> bool:
        return self.guard.active

    def init(self, status_lines: int = 1) -> bool:
        if not self.guard.init(status_lines):
            return False
        self.guard.add_cleanup_hook(self.animator.stop)
        return True

    def cleanup(self) -> None:
        self.animator.stop()
        self.guard.cleanup()
        self.state.reset()

    def __enter__(self) -> "ProgressDisplay":
        self.init()
        return self

    def __exit__(self, *exc) -> None:
        self.cleanup()

    # Progress operations

    def start(self, operation: str, total: int = 0) -> None:
        """Begin an operation; total=0 shows a spinner instead of a bar.

        Starting while another operation runs replaces it.
        """
        self.state = ProgressState(
            operation=operation,
            total=max(0, total),
            start_time=self.clock(),
        )
        self.spinner.reset()
        _logging.debug(f"progress start: {operation} ({total})")

        if not self.enabled:
            self._plain(click.style(f"==> {operation}", bold=True))
            return

        if self.animate:
            self.animator.start(self._snapshot())
        self._publish()
        self.render()

    def next(self, item: str = "") -> None:
        """Advance by one item. Going past total is allowed."""
        self.state.current += 1
        self.state.current_item = item

        if not self.enabled:
            self._plain(self._counted(item))
            return

        self._publish()
        self.render()

    def update(self, current: int, item: str = "") -> None:
        """Jump to an absolute position, e.g. when resuming."""
        self.state.current = current
        if item:
            self.state.current_item = item

        if not self.enabled:
            self._plain(self._counted(item or "processing..."))
            return

        self._publish()
        self.render()

    def complete(self, message: str = "") -> None:
        default = f"{self.state.operation} complete" if self.state.operation else ""
        self._finish("success", message or default)

    def fail(self, message: str = "") -> None:
        default = f"{self.state.operation} failed" if self.state.operation else ""
        self._finish("warn", message or default)

    def _finish(self, kind: str, text: str) -> None:
        self.animator.stop()
        _logging.debug(f"progress {kind}: {self.state.operation}")
        if self.enabled:
            self.guard.clear_status_line()
        if text:
            mark, color = FINISH_MARKS[kind]
            self._line(click.style(mark, fg=color) + f" {text}", redraw=False)
        self.state.reset()

    def _counted(self, item: str) -> str:
        if self.state.total > 0:
            return f"[{self.state.current}/{self.state.total}] {item}".rstrip()
        return item

    # Rendering

    def render(self) -> None:
        """Redraw the status line without moving the scroll-region cursor."""
        geometry = self.guard.geometry
        if not self.enabled or geometry is None:
            return

        frame = SAVE_CURSOR + move_to(geometry.status_line) + CLEAR_LINE
        if self.state.active:
            if self.state.total <= 0:
                self.spinner.advance()
                self.state.spinner_frame = self.spinner.frame
            elapsed = None
            if self.state.start_time > 0:
                elapsed = self.clock() - self.state.start_time
            frame += compose_status(
                self.state.operation,
                self.state.current,
                self.state.total,
                self.state.current_item,
                elapsed,
                self.spinner.char,
                width=geometry.cols,
                bar_width=self.bar_width,
                color=self.color,
            )
        frame += RESTORE_CURSOR
        self.guard.write(frame)

    def _snapshot(self) -> AnimatorState:
        geometry = self.guard.geometry
        return AnimatorState(
            operation=self.state.operation,
            current=self.state.current,
            total=self.state.total,
            item=self.state.current_item,
            start_time=self.state.start_time,
            term_width=geometry.cols if geometry else 80,
            status_line=geometry.status_line if geometry else 1,
            scroll_bottom=geometry.scroll_bottom if geometry else 1,
        )

    def _publish(self) -> None:
        self.animator.publish(self._snapshot())

    # Scroll-region output

    def log(self, message: str) -> None:
        self._message("log", message)

    def info(self, message: str) -> None:
        self._message("info", message)

    def success(self, message: str) -> None:
        self._message("success", message)

    def warn(self, message: str) -> None:
        self._message("warn", message)

    def error(self, message: str) -> None:
        """Report an error line; unlike a fatal error this does not exit."""
        self._message("error", message)

    def _message(self, kind: str, message: str, redraw: bool = True) -> None:
        tag, color = MESSAGE_TAGS[kind]
        self._line(click.style(tag, fg=color) + f" {message}", redraw=redraw)

    def _line(self, line: str, redraw: bool = True) -> None:
        if not self.enabled:
            self._plain(line)
            return
        self.guard.write(line + "\n")
        if redraw:
            self.render()

    def _plain(self, text: str) -> None:
        click.echo(text, file=self.output)

    # Commands

    def run_animated(self, command: str) -> int:
        """Run a shell command, streaming its output above the status bar.

        The animator keeps the spinner and timer moving while this thread
        is blocked reading the command's output.
        """
        if not self.enabled:
            return stream_command(command, self._plain)

        started_here = not self.animator.running
        if started_here:
            self.animator.start(self._snapshot())
        try:
            code = stream_command(command, self._stream_line)
        finally:
            if started_here:
                self.animator.stop()
        self.render()
        return code

    def _stream_line(self, line: str) -> None:
        if line.strip():
            tag, color = MESSAGE_TAGS["log"]
            self.guard.write(click.style(tag, fg=color) + f" {line}\n")


def open_progress(
    output: TextIO | None = None,
    animate: bool = False,
    bar_width: int = DEFAULT_BAR_WIDTH,
    animation_interval: float = DEFAULT_INTERVAL,
) -> ProgressDisplay:
    """Create a display on stdout and try to enter TUI mode."""
    display = ProgressDisplay(
        guard=TerminalGuard(output=output or sys.stdout),
        animate=animate,
        bar_width=bar_width,
        animation_interval=animation_interval,
    )
    display.init()
    return display


__all__ = [
    "FINISH_MARKS",
    "MESSAGE_TAGS",
    "ProgressState",
    "ProgressDisplay",
    "open_progress",
]
