"""Tests for the status bar controller."""

import threading
import time
from unittest.mock import patch

import click
import pytest

from jsh.tui import progress as progress_module
from jsh.tui.progress import ProgressDisplay
from jsh.tui.render import SPINNER_FRAMES
from jsh.tui.terminal import SAVE_CURSOR, GuardState, move_to


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def fake_stream(lines, code=0):
    def stream(command, on_line):
        for line in lines:
            on_line(line)
        return code

    return stream


@pytest.fixture
def plain_display(plain_guard, output):
    display = ProgressDisplay(guard=plain_guard, output=output, color=False)
    display.init()
    return display


@pytest.fixture
def tui_display(tui_guard, output):
    clock = FakeClock()
    display = ProgressDisplay(guard=tui_guard, output=output, clock=clock, color=False)
    assert display.init()
    display.clock_control = clock
    yield display
    display.cleanup()


class TestFallbackOutput:
    def test_not_enabled(self, plain_display):
        assert plain_display.enabled is False

    def test_operation_lines(self, plain_display, output):
        plain_display.start("Installing", 3)
        plain_display.next("jq")
        plain_display.update(2)
        plain_display.complete()
        lines = output.getvalue().splitlines()
        assert lines == [
            "==> Installing",
            "[1/3] jq",
            "[2/3] processing...",
            "✓ Installing complete",
        ]

    def test_fail_default_message(self, plain_display, output):
        plain_display.start("Upgrading", 2)
        plain_display.fail()
        assert output.getvalue().splitlines()[-1] == "! Upgrading failed"
        assert not plain_display.state.active

    def test_custom_completion_message(self, plain_display, output):
        plain_display.start("Installing", 1)
        plain_display.complete("All done")
        assert output.getvalue().splitlines()[-1] == "✓ All done"

    def test_messages(self, plain_display, output):
        plain_display.log("working")
        plain_display.info("note")
        plain_display.success("yay")
        plain_display.warn("careful")
        plain_display.error("broken")
        assert output.getvalue().splitlines() == [
            "[*] working",
            "[i] note",
            "[✓] yay",
            "[!] careful",
            "[✗] broken",
        ]

    def test_indeterminate_next(self, plain_display, output):
        plain_display.start("Scanning")
        plain_display.next("home")
        assert output.getvalue().splitlines()[-1] == "home"

    def test_run_animated_streams_lines(self, plain_display, output):
        with patch.object(progress_module, "stream_command", fake_stream(["one", "two"])):
            code = plain_display.run_animated("brew install jq")
        assert code == 0
        assert output.getvalue().splitlines() == ["one", "two"]

    def test_run_animated_real_command(self, plain_display, output):
        code = plain_display.run_animated("echo hello; exit 3")
        assert code == 3
        assert "hello" in output.getvalue()


class TestStatusBar:
    def test_start_draws_status_line(self, tui_display, output):
        tui_display.start("Installing", 2)
        written = output.getvalue()
        assert SAVE_CURSOR + move_to(24) in written
        assert "Installing" in written
        assert "0/2" in written

    def test_next_advances(self, tui_display, output):
        tui_display.start("Installing", 2)
        tui_display.next("jq")
        assert tui_display.state.current == 1
        assert "1/2 jq" in output.getvalue()

    def test_next_beyond_total(self, tui_display, output):
        tui_display.start("Installing", 1)
        tui_display.next("a")
        tui_display.next("b")
        assert tui_display.state.current == 2
        assert "2/1 b" in output.getvalue()

    def test_elapsed_time(self, tui_display, output):
        tui_display.start("Installing", 2)
        tui_display.clock_control.now += 65
        tui_display.next("jq")
        assert "(1m 5s)" in output.getvalue()

    def test_spinner_advances_when_indeterminate(self, tui_display, output):
        tui_display.start("Scanning")
        first = tui_display.state.spinner_frame
        tui_display.render()
        assert tui_display.state.spinner_frame == first + 1
        assert f"[{SPINNER_FRAMES[first]}]" in output.getvalue()
        assert f"[{SPINNER_FRAMES[first + 1]}]" in output.getvalue()

    def test_restart_replaces_operation(self, tui_display):
        tui_display.start("First", 5)
        tui_display.next()
        tui_display.start("Second", 2)
        assert tui_display.state.operation == "Second"
        assert tui_display.state.current == 0

    def test_complete_clears_state(self, tui_display, output):
        tui_display.start("Installing", 1)
        tui_display.complete()
        assert not tui_display.state.active
        written = click.unstyle(output.getvalue())
        assert "✓ Installing complete\n" in written
        assert "[✓]" not in written

    def test_messages_redraw_status(self, tui_display, output):
        tui_display.start("Installing", 2)
        before = output.getvalue().count(SAVE_CURSOR)
        tui_display.info("fetching")
        written = output.getvalue()
        assert "fetching\n" in written
        assert written.count(SAVE_CURSOR) == before + 1

    def test_run_animated_tags_lines(self, tui_display, output):
        tui_display.start("Installing", 1)
        with patch.object(progress_module, "stream_command", fake_stream(["==> Pouring", ""])):
            code = tui_display.run_animated("brew install jq")
        assert code == 0
        assert not tui_display.animator.running
        assert "[*] ==> Pouring\n" in click.unstyle(output.getvalue())

    def test_run_animated_keeps_running_animator(self, tui_guard, output):
        display = ProgressDisplay(guard=tui_guard, output=output, animate=True, animation_interval=0.01)
        display.init()
        display.start("Installing", 1)
        assert display.animator.running
        with patch.object(progress_module, "stream_command", fake_stream(["line"])):
            display.run_animated("brew install jq")
        assert display.animator.running
        display.complete()
        assert not display.animator.running
        display.cleanup()

    def test_cleanup_stops_everything(self, tui_guard, output):
        display = ProgressDisplay(guard=tui_guard, output=output, animate=True, animation_interval=0.01)
        display.init()
        display.start("Installing", 3)
        display.cleanup()
        assert not display.animator.running
        assert tui_guard.state is GuardState.DONE
        assert not display.state.active
        display.cleanup()

    def test_cleanup_while_write_lock_held(self, tui_guard, output):
        display = ProgressDisplay(guard=tui_guard, output=output, animate=True, animation_interval=0.01)
        display.init()
        display.start("Installing", 0)
        assert display.animator.running

        def interrupted_write():
            with tui_guard.lock:
                time.sleep(0.05)
                tui_guard.cleanup()

        worker = threading.Thread(target=interrupted_write, daemon=True)
        worker.start()
        worker.join(timeout=2.0)
        assert not worker.is_alive()
        assert tui_guard.state is GuardState.DONE
        assert not display.animator.running

    def test_context_manager(self, tui_guard, output):
        with ProgressDisplay(guard=tui_guard, output=output) as display:
            assert display.enabled
        assert tui_guard.state is GuardState.DONE
