"""Terminal state guard: geometry, raw mode, scrolling region and cleanup.

The guard owns one terminal session at a time, either the progress layout
(scrolling region above a fixed status line) or the full-screen layout used
by the selector. Cleanup is a one-shot state machine so that an exit hook,
a signal handler and an explicit call can all race to it safely.
"""

import atexit
import logging
import os
import re
import select
import shutil
import signal
import sys
import termios
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, TextIO

from .capability import CapabilityDetector, get_detector

_logging = logging.getLogger(__name__)

DEFAULT_ROWS = 24
DEFAULT_COLS = 80
CURSOR_QUERY_TIMEOUT = 0.1

HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
SAVE_CURSOR = "\x1b7"
RESTORE_CURSOR = "\x1b8"
CLEAR_LINE = "\x1b[2K"
CLEAR_SCREEN = "\x1b[2J"
HOME = "\x1b[H"
RESET_SCROLL_REGION = "\x1b[r"
RESET_ATTRIBUTES = "\x1b[0m"
ENTER_ALT_SCREEN = "\x1b[?1049h"
EXIT_ALT_SCREEN = "\x1b[?1049l"
CURSOR_POSITION_QUERY = "\x1b[6n"

_CURSOR_REPORT = re.compile(r"\x1b\[(\d+);(\d+)R")


def move_to(row: int, col: int = 1) -> str:
    return f"\x1b[{row};{col}H"


def set_scroll_region(top: int, bottom: int) -> str:
    """DECSTBM: confine scrolling to rows top..bottom (1-indexed)."""
    return f"\x1b[{top};{bottom}r"


def _as_dimension(value: object, default: int) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


@dataclass(frozen=True)
class TerminalGeometry:
    """Row layout of a progress session, 1-indexed like the escape codes."""
    rows: int
    cols: int
    scroll_top: int
    scroll_bottom: int
    status_line: int

    @classmethod
    def from_size(cls, rows: object, cols: object, status_lines: int = 1) -> "TerminalGeometry":
        """Build the layout; unreadable sizes fall back to 24x80."""
        rows = _as_dimension(rows, DEFAULT_ROWS)
        cols = _as_dimension(cols, DEFAULT_COLS)
        status_lines = min(max(status_lines, 1), max(rows - 1, 1))
        return cls(
            rows=rows,
            cols=cols,
            scroll_top=1,
            scroll_bottom=max(1, rows - status_lines),
            status_line=rows,
        )

    @classmethod
    def detect(
        cls,
        status_lines: int = 1,
        get_size: Callable[..., os.terminal_size] = shutil.get_terminal_size,
    ) -> "TerminalGeometry":
        try:
            size = get_size((DEFAULT_COLS, DEFAULT_ROWS))
            return cls.from_size(size.lines, size.columns, status_lines)
        except (OSError, ValueError, AttributeError):
            return cls.from_size(DEFAULT_ROWS, DEFAULT_COLS, status_lines)


def _make_raw(fd: int) -> None:
    """No echo, no line buffering. ISIG stays on so Ctrl-C still interrupts."""
    attrs = termios.tcgetattr(fd)
    attrs[3] &= ~(termios.ICANON | termios.ECHO | termios.IEXTEN)
    attrs[1] &= ~(termios.IXON | termios.ICRNL | termios.INLCR | termios.IGNCR)
    attrs[6][termios.VMIN] = 1
    attrs[6][termios.VTIME] = 0
    termios.tcsetattr(fd, termios.TCSANOW, attrs)


@contextmanager
def raw_mode(fd: int) -> Iterator[None]:
    """Put fd in raw mode for the duration of the block, then restore it."""
    saved = termios.tcgetattr(fd)
    try:
        _make_raw(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


def parse_cursor_report(reply: str) -> int | None:
    """Extract the row from a "ESC [ row ; col R" cursor position report."""
    match = _CURSOR_REPORT.search(reply)
    if not match:
        return None
    return int(match.group(1))


def query_cursor_row(
    input_fd: int | None, output: TextIO, timeout: float = CURSOR_QUERY_TIMEOUT
) -> int | None:
    """Ask the terminal where the cursor is. Best effort: None on no reply."""
    if input_fd is None:
        return None
    try:
        if not os.isatty(input_fd):
            return None
        with raw_mode(input_fd):
            output.write(CURSOR_POSITION_QUERY)
            output.flush()
            reply = ""
            deadline = time.monotonic() + timeout
            while not reply.endswith("R"):
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                ready, _, _ = select.select([input_fd], [], [], remaining)
                if not ready:
                    return None
                chunk = os.read(input_fd, 32)
                if not chunk:
                    return None
                reply += chunk.decode(errors="ignore")
    except (OSError, ValueError, termios.error) as e:
        _logging.debug(f"cursor position query failed: {e}")
        return None
    return parse_cursor_report(reply)


def _stdin_fd() -> int | None:
    try:
        return sys.stdin.fileno()
    except (AttributeError, ValueError, OSError):
        return None


class GuardState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    CLEANING = "cleaning"
    DONE = "done"


class SessionMode(Enum):
    PROGRESS = "progress"
    FULLSCREEN = "fullscreen"


class TerminalGuard:
    """Acquire the terminal for one session and always give it back."""

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(
        self,
        output: TextIO | None = None,
        input_fd: int | None = None,
        detector: CapabilityDetector | None = None,
        get_size: Callable[..., os.terminal_size] = shutil.get_terminal_size,
        install_signals: bool = True,
        lock=None,
    ):
        self.output = output if output is not None else sys.stdout
        self._input_fd = input_fd
        self.detector = detector or get_detector()
        self._get_size = get_size
        self.install_signals = install_signals
        self.lock = lock or threading.RLock()
        self.state = GuardState.IDLE
        self.mode: SessionMode | None = None
        self.geometry: TerminalGeometry | None = None
        self._hooks: list[Callable[[], None]] = []
        self._previous_handlers: dict[int, object] = {}
        self._saved_termios: list | None = None
        self._armed = False

    @property
    def active(self) -> bool:
        return self.state is GuardState.ACTIVE

    @property
    def input_fd(self) -> int | None:
        if self._input_fd is None:
            return _stdin_fd()
        return self._input_fd

    def write(self, text: str) -> None:
        with self.lock:
            self.output.write(text)
            self.output.flush()

    def _try_write(self, text: str) -> bool:
        try:
            self.write(text)
            return True
        except (OSError, ValueError) as e:
            _logging.debug(f"terminal write failed during cleanup: {e}")
            return False

    def add_cleanup_hook(self, hook: Callable[[], None]) -> None:
        """Run hook at the start of cleanup, before the terminal is reset."""
        self._hooks.append(hook)

    # Progress layout

    def init(self, status_lines: int = 1) -> bool:
        """Set up the scrolling region and status line.

        Returns False, leaving the terminal untouched, when the terminal
        cannot host the TUI; callers then use plain line output.
        """
        if self.active:
            return True
        if not self.detector.is_supported():
            _logging.debug("TUI not supported, using fallback")
            return False

        geometry = TerminalGeometry.detect(status_lines, self._get_size)
        self.geometry = geometry
        self.mode = SessionMode.PROGRESS
        self.state = GuardState.ACTIVE
        try:
            self.write(HIDE_CURSOR)
            # Push existing content up to make room for the session
            self.write("\n" * geometry.rows)
            self.write(HOME)
            self.write(set_scroll_region(geometry.scroll_top, geometry.scroll_bottom))
            self.write(move_to(geometry.scroll_top))
            self.clear_status_line()
        except (OSError, ValueError) as e:
            _logging.debug(f"TUI init failed: {e}")
            self.cleanup()
            return False

        self._arm()
        _logging.debug(
            f"TUI initialized: {geometry.cols}x{geometry.rows}, scroll region "
            f"{geometry.scroll_top}-{geometry.scroll_bottom}, status at row {geometry.status_line}"
        )
        return True

    def clear_status_line(self) -> None:
        if self.geometry is None:
            return
        self.write(
            SAVE_CURSOR + move_to(self.geometry.status_line) + CLEAR_LINE + RESTORE_CURSOR
        )

    # Full-screen layout

    @contextmanager
    def fullscreen(self) -> Iterator["TerminalGuard"]:
        """Alternate screen plus raw input for the length of the block.

        Every mode is restored on the way out, whether the block returns,
        raises, or the process is interrupted.
        """
        if self.active:
            raise RuntimeError("terminal session already active")
        fd = self.input_fd
        if fd is None:
            raise RuntimeError("full-screen mode requires a terminal on stdin")
        self._saved_termios = termios.tcgetattr(fd)
        self.geometry = TerminalGeometry.detect(1, self._get_size)
        self.mode = SessionMode.FULLSCREEN
        self.state = GuardState.ACTIVE
        self._arm()
        try:
            self.write(ENTER_ALT_SCREEN + HIDE_CURSOR)
            _make_raw(fd)
            _logging.debug("entered full-screen mode")
            yield self
        finally:
            self.cleanup()

    # Cleanup

    def cleanup(self) -> None:
        """Restore the terminal. Safe to call any number of times."""
        if self.state is not GuardState.ACTIVE:
            return
        self.state = GuardState.CLEANING

        self._disarm()
        hooks, self._hooks = self._hooks, []
        for hook in reversed(hooks):
            try:
                hook()
            except Exception as e:
                _logging.warning(f"cleanup hook failed: {type(e).__name__}: {e}")

        if self.mode is SessionMode.FULLSCREEN:
            self._restore_fullscreen()
        else:
            self._restore_progress()

        self.state = GuardState.DONE
        _logging.debug("TUI cleanup complete")

    def _restore_progress(self) -> None:
        geometry = self.geometry or TerminalGeometry.from_size(DEFAULT_ROWS, DEFAULT_COLS)
        row = query_cursor_row(self.input_fd, self.output)
        self._try_write(RESET_SCROLL_REGION)
        self._try_write(move_to(geometry.status_line) + CLEAR_LINE)
        self._try_write(move_to(row if row else geometry.scroll_bottom))
        self._try_write(SHOW_CURSOR)

    def _restore_fullscreen(self) -> None:
        self._try_write(RESET_ATTRIBUTES)
        self._try_write(RESET_SCROLL_REGION)
        self._try_write(EXIT_ALT_SCREEN)
        self._try_write(SHOW_CURSOR)
        fd = self.input_fd
        if self._saved_termios is not None and fd is not None:
            try:
                termios.tcsetattr(fd, termios.TCSADRAIN, self._saved_termios)
            except (OSError, termios.error) as e:
                _logging.debug(f"failed to restore terminal modes: {e}")
        self._saved_termios = None

    # Exit and signal hooks

    def _arm(self) -> None:
        if self._armed:
            return
        atexit.register(self.cleanup)
        if self.install_signals and threading.current_thread() is threading.main_thread():
            for signum in self.SIGNALS:
                self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)
        self._armed = True

    def _disarm(self) -> None:
        if not self._armed:
            return
        atexit.unregister(self.cleanup)
        for signum, previous in self._previous_handlers.items():
            try:
                signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
            except (OSError, ValueError) as e:
                _logging.debug(f"failed to restore handler for signal {signum}: {e}")
        self._previous_handlers = {}
        self._armed = False

    def _handle_signal(self, signum, frame) -> None:
        _logging.debug(f"received signal {signum}, restoring terminal")
        self.cleanup()
        raise SystemExit(128 + signum)


__all__ = [
    "TerminalGeometry",
    "TerminalGuard",
    "GuardState",
    "SessionMode",
    "raw_mode",
    "move_to",
    "set_scroll_region",
    "parse_cursor_report",
    "query_cursor_row",
    "HIDE_CURSOR",
    "SHOW_CURSOR",
    "SAVE_CURSOR",
    "RESTORE_CURSOR",
    "CLEAR_LINE",
    "CLEAR_SCREEN",
    "HOME",
    "RESET_SCROLL_REGION",
    "RESET_ATTRIBUTES",
    "ENTER_ALT_SCREEN",
    "EXIT_ALT_SCREEN",
]
