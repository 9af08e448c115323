"""Terminal capability detection for the TUI engine."""

import logging
import os
import shutil
import subprocess
import sys
from enum import Enum
from typing import Callable, Mapping, TextIO

from ..config import TuiSettings

_logging = logging.getLogger(__name__)

PROBE_TIMEOUT = 2


class Support(Enum):
    UNKNOWN = "unknown"
    YES = "yes"
    NO = "no"


class CapabilityDetector:
    """Decide once whether the controlling terminal can host the TUI.

    The answer is cached in a tri-state so the probes (which spawn tput and
    touch the scrolling region) run at most once per detector.
    """

    def __init__(
        self,
        settings: TuiSettings | None = None,
        stream: TextIO | None = None,
        environ: Mapping[str, str] | None = None,
        which: Callable[[str], str | None] = shutil.which,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self._settings = settings
        self._stream = stream
        self._environ = environ
        self._which = which
        self._run = run
        self.support = Support.UNKNOWN

    @property
    def settings(self) -> TuiSettings:
        if self._settings is None:
            self._settings = TuiSettings.from_env(self._environ)
        return self._settings

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def is_supported(self) -> bool:
        if self.support is Support.UNKNOWN:
            reason = self._detect()
            self.support = Support.NO if reason else Support.YES
            if reason:
                _logging.debug(f"TUI not supported ({reason}), using fallback")
            else:
                _logging.debug("TUI supported")
        return self.support is Support.YES

    def reset(self) -> None:
        self.support = Support.UNKNOWN

    def _detect(self) -> str | None:
        """Run the checks in order; return the first failure reason or None."""
        settings = self.settings
        if settings.no_tui:
            return "disabled by NO_TUI"

        if not settings.force_tui and not _isatty(self.stream):
            return "stdout is not a terminal"

        env = os.environ if self._environ is None else self._environ
        term = env.get("TERM", "")
        if not term or term == "dumb":
            return f"unusable TERM {term!r}"

        if not self._which("tput"):
            return "tput not found"

        lines = self._tput("lines")
        cols = self._tput("cols")
        if not _is_number(lines) or not _is_number(cols):
            return "terminal size unavailable"

        if not self._probe_scroll_region(lines):
            return "scrolling region not supported"

        return None

    def _tput(self, *args: str) -> str | None:
        try:
            result = self._run(
                ["tput", *args],
                capture_output=True,
                text=True,
                timeout=PROBE_TIMEOUT,
            )
        except (OSError, subprocess.SubprocessError) as e:
            _logging.debug(f"tput {' '.join(args)} failed: {e}")
            return None
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def _probe_scroll_region(self, lines: str | None) -> bool:
        """Check DECSTBM support, always resetting to the full screen after."""
        supported = False
        used_tput = False
        try:
            if self._tput("csr", "0", "10") is not None:
                supported = True
                used_tput = True
            else:
                self.stream.write("\x1b[1;10r")
                self.stream.flush()
                supported = True
        except (OSError, ValueError) as e:
            _logging.debug(f"scrolling region probe failed: {e}")
        finally:
            self._reset_scroll_region(lines, used_tput)
        return supported

    def _reset_scroll_region(self, lines: str | None, used_tput: bool) -> None:
        if used_tput and _is_number(lines):
            if self._tput("csr", "0", str(int(lines) - 1)) is not None:
                return
        try:
            self.stream.write("\x1b[r")
            self.stream.flush()
        except (OSError, ValueError):
            pass


def _isatty(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def _is_number(value: str | None) -> bool:
    return bool(value) and value.isdigit() and int(value) > 0


_detector = CapabilityDetector()


def get_detector() -> CapabilityDetector:
    return _detector


def is_supported() -> bool:
    """Process-wide capability check; the first answer sticks."""
    return _detector.is_supported()


def reset_detection(detector: CapabilityDetector | None = None) -> None:
    """Forget the cached answer, optionally swapping in a new detector."""
    global _detector
    if detector is not None:
        _detector = detector
    else:
        _detector.reset()


__all__ = [
    "Support",
    "CapabilityDetector",
    "get_detector",
    "is_supported",
    "reset_detection",
]
