"""Tests for command execution helpers."""

import asyncio

from jsh.execution import run_command_async, stream_command


class TestRunCommandAsync:
    def test_output_and_code(self):
        assert asyncio.run(run_command_async("echo hello")) == ("hello", 0)

    def test_stderr_is_merged(self):
        output, code = asyncio.run(run_command_async("echo oops >&2; exit 2"))
        assert output == "oops"
        assert code == 2

    def test_timeout(self):
        output, code = asyncio.run(run_command_async("sleep 5", timeout=0.1))
        assert code == 1
        assert "timed out" in output


class TestStreamCommand:
    def test_lines_arrive_in_order(self):
        lines = []
        code = stream_command("echo one; echo two >&2; echo three", lines.append)
        assert code == 0
        assert lines == ["one", "two", "three"]

    def test_exit_code(self):
        assert stream_command("exit 4", lambda line: None) == 4
