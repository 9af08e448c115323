"""Tests for the background status animator."""

import io
import threading
import time

from jsh.tui.animator import AnimatorState, StatusAnimator
from jsh.tui.terminal import SAVE_CURSOR, RESTORE_CURSOR, move_to


def wait_for(condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.005)
    return False


def active_state(**kwargs):
    values = dict(
        operation="Installing",
        current=1,
        total=4,
        item="jq",
        start_time=time.time(),
        term_width=80,
        status_line=24,
        scroll_bottom=23,
    )
    values.update(kwargs)
    return AnimatorState(**values)


class TestStatusAnimator:
    def test_draws_at_status_line(self):
        out = io.StringIO()
        animator = StatusAnimator(out, interval=0.01, color=False)
        animator.start(active_state())
        try:
            assert wait_for(lambda: animator.frames_drawn > 0)
        finally:
            animator.stop()
        written = out.getvalue()
        assert written.startswith(SAVE_CURSOR + move_to(24))
        assert "Installing" in written
        assert "1/4" in written
        assert written.endswith(RESTORE_CURSOR)

    def test_stop_while_caller_holds_lock(self):
        out = io.StringIO()
        lock = threading.RLock()
        animator = StatusAnimator(out, lock=lock, interval=0.01)
        animator.start(active_state())
        assert wait_for(lambda: animator.frames_drawn > 0)

        def stop_under_lock():
            with lock:
                time.sleep(0.05)
                animator.stop()

        worker = threading.Thread(target=stop_under_lock, daemon=True)
        worker.start()
        worker.join(timeout=2.0)
        assert not worker.is_alive()
        assert not animator.running

    def test_stop_is_synchronous(self):
        out = io.StringIO()
        animator = StatusAnimator(out, interval=0.01)
        animator.start(active_state())
        assert wait_for(lambda: animator.frames_drawn > 0)
        animator.stop()
        assert not animator.running
        frames, size = animator.frames_drawn, len(out.getvalue())
        time.sleep(0.05)
        assert animator.frames_drawn == frames
        assert len(out.getvalue()) == size

    def test_inactive_state_draws_nothing(self):
        out = io.StringIO()
        animator = StatusAnimator(out, interval=0.01)
        animator.start(AnimatorState())
        time.sleep(0.05)
        animator.stop()
        assert animator.frames_drawn == 0
        assert out.getvalue() == ""

    def test_draws_latest_published_state(self):
        out = io.StringIO()
        animator = StatusAnimator(out, interval=0.01, color=False)
        animator.start(active_state())
        try:
            animator.publish(active_state(operation="Upgrading", current=3))
            assert wait_for(lambda: "Upgrading" in out.getvalue())
        finally:
            animator.stop()

    def test_writes_wait_for_lock(self):
        out = io.StringIO()
        animator = StatusAnimator(out, interval=0.01)
        animator.start(active_state())
        try:
            assert wait_for(lambda: animator.frames_drawn > 0)
            with animator.lock:
                frames = animator.frames_drawn
                time.sleep(0.05)
                assert animator.frames_drawn == frames
        finally:
            animator.stop()

    def test_stop_without_start(self):
        animator = StatusAnimator(io.StringIO())
        animator.stop()
        assert not animator.running

    def test_start_twice_keeps_one_thread(self):
        animator = StatusAnimator(io.StringIO(), interval=0.01)
        animator.start(active_state())
        thread = animator._thread
        animator.start(active_state())
        assert animator._thread is thread
        animator.stop()

    def test_publish_when_stopped_is_ignored(self):
        out = io.StringIO()
        animator = StatusAnimator(out, interval=0.01)
        animator.publish(active_state())
        assert out.getvalue() == ""

    def test_write_failure_stops_drawing(self):
        out = io.StringIO()
        out.close()
        animator = StatusAnimator(out, interval=0.01)
        animator.start(active_state())
        assert wait_for(lambda: not animator.running)
        animator.stop()
        assert animator.frames_drawn == 0
