"""Background redraw of the status bar while the foreground is blocked."""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, TextIO

from .render import DEFAULT_BAR_WIDTH, Spinner, compose_status
from .terminal import CLEAR_LINE, RESTORE_CURSOR, SAVE_CURSOR, move_to

_logging = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.1


@dataclass(frozen=True)
class AnimatorState:
    """What the animator needs to draw one frame."""
    operation: str = ""
    current: int = 0
    total: int = 0
    item: str = ""
    start_time: float = 0.0
    term_width: int = 80
    status_line: int = 1
    scroll_bottom: int = 1

    @property
    def active(self) -> bool:
        return bool(self.operation)


class StatusAnimator:
    """Keep the spinner and timer moving on a daemon thread.

    The foreground publishes immutable snapshots through a queue; the thread
    only ever draws the newest one. stop() joins the thread, so once it
    returns no further frame is written.
    """

    def __init__(
        self,
        output: TextIO,
        lock=None,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.time,
        bar_width: int = DEFAULT_BAR_WIDTH,
        color: bool = True,
    ):
        self.output = output
        self.lock = lock or threading.RLock()
        self.interval = interval
        self.clock = clock
        self.bar_width = bar_width
        self.color = color
        self.frames_drawn = 0
        self._updates: queue.Queue[AnimatorState] = queue.Queue()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, state: AnimatorState) -> None:
        if self.running:
            return
        self._stop.clear()
        self._updates = queue.Queue()
        self._updates.put(state)
        self._thread = threading.Thread(
            target=self._run, name="jsh-status-animator", daemon=True
        )
        self._thread.start()
        _logging.debug("animation started")

    def publish(self, state: AnimatorState) -> None:
        if self.running:
            self._updates.put(state)

    def stop(self) -> None:
        thread = self._thread
        if thread is None:
            return
        self._stop.set()
        thread.join()
        self._thread = None
        _logging.debug("animation stopped")

    def _latest(self, current: AnimatorState) -> AnimatorState:
        try:
            while True:
                current = self._updates.get_nowait()
        except queue.Empty:
            return current

    def _run(self) -> None:
        state = AnimatorState()
        spinner = Spinner()
        while not self._stop.is_set():
            state = self._latest(state)
            if state.active:
                self._draw(state, spinner.char)
                spinner.advance()
            self._stop.wait(self.interval)

    def _draw(self, state: AnimatorState, spinner: str) -> None:
        elapsed = self.clock() - state.start_time if state.start_time > 0 else None
        status = compose_status(
            state.operation,
            state.current,
            state.total,
            state.item,
            elapsed,
            spinner,
            width=state.term_width,
            bar_width=self.bar_width,
            show_eta=True,
            color=self.color,
        )
        frame = SAVE_CURSOR + move_to(state.status_line) + CLEAR_LINE + status + RESTORE_CURSOR
        # A signal handler may run cleanup on the thread that holds the lock
        # and then join this one, so never wait for the lock past a stop.
        while not self.lock.acquire(timeout=self.interval):
            if self._stop.is_set():
                return
        try:
            # stop() may have been requested while this frame was composed.
            if self._stop.is_set():
                return
            try:
                self.output.write(frame)
                self.output.flush()
            except (OSError, ValueError) as e:
                _logging.debug(f"animator write failed: {e}")
                self._stop.set()
                return
            self.frames_drawn += 1
        finally:
            self.lock.release()


__all__ = [
    "DEFAULT_INTERVAL",
    "AnimatorState",
    "StatusAnimator",
]
