"""Pytest fixtures and utilities for jsh tests."""

import io
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import pytest

from jsh.config import TuiSettings
from jsh.tui import capability
from jsh.tui.capability import CapabilityDetector, Support
from jsh.tui.terminal import TerminalGeometry, TerminalGuard


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def taskfile(temp_dir: Path) -> Path:
    """A taskfile declaring one formula and one cask."""
    path = temp_dir / "taskfile.yaml"
    path.write_text(
        "version: '3'\n"
        "vars:\n"
        "  formulae:\n"
        "    - jq\n"
        "  casks:\n"
        "    - slack\n"
        "tasks:\n"
        "  install:\n"
        "    cmds:\n"
        "      - brew bundle\n"
    )
    return path


def make_detector(supported: bool) -> CapabilityDetector:
    detector = CapabilityDetector(settings=TuiSettings())
    detector.support = Support.YES if supported else Support.NO
    return detector


def fixed_size(cols: int = 80, rows: int = 24):
    def get_size(fallback=(80, 24)):
        return os.terminal_size((cols, rows))

    return get_size


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def tui_guard(output: io.StringIO) -> Generator[TerminalGuard, None, None]:
    """A guard that believes it owns a 80x24 terminal writing to a StringIO."""
    guard = TerminalGuard(
        output=output,
        detector=make_detector(True),
        get_size=fixed_size(),
        install_signals=False,
    )
    yield guard
    guard.cleanup()


@pytest.fixture
def plain_guard(output: io.StringIO) -> TerminalGuard:
    """A guard on a terminal that cannot host the TUI."""
    return TerminalGuard(
        output=output,
        detector=make_detector(False),
        get_size=fixed_size(),
        install_signals=False,
    )


@pytest.fixture
def no_tui_detector() -> Generator[CapabilityDetector, None, None]:
    """Swap the process-wide detector for one that always says no."""
    original = capability.get_detector()
    detector = make_detector(False)
    capability.reset_detection(detector)
    yield detector
    capability.reset_detection(original)


class ScriptedKeys:
    """Character source fed from a string, for driving the selector.

    Once the script runs out, timed reads return None (as a quiet terminal
    would) and blocking reads raise EOFError.
    """

    def __init__(self, script: str):
        self.pending = list(script)
        self.reads = 0

    def read_char(self, timeout: float | None = None) -> str | None:
        self.reads += 1
        if self.pending:
            return self.pending.pop(0)
        if timeout is not None:
            return None
        raise EOFError("script exhausted")


class FakeScreenGuard:
    """Stands in for TerminalGuard in selector tests; no real terminal."""

    def __init__(self, rows: int = 24, cols: int = 80):
        self.output = io.StringIO()
        self.geometry = TerminalGeometry.from_size(rows, cols)
        self.input_fd = None
        self.entered = 0
        self.exited = 0

    @contextmanager
    def fullscreen(self):
        self.entered += 1
        try:
            yield self
        finally:
            self.exited += 1

    def write(self, text: str) -> None:
        self.output.write(text)


class CallLog:
    """Records collaborator calls; results maps label -> bool or exception."""

    def __init__(self, results: dict | None = None):
        self.calls: list[tuple[str, str, object]] = []
        self.results = results or {}

    def recorder(self, name: str):
        def record(label, kind):
            self.calls.append((name, label, kind))
            result = self.results.get(label, True)
            if isinstance(result, Exception):
                raise result
            return result

        return record
