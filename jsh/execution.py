"""Command execution utilities."""

import asyncio
import logging
import subprocess
from typing import Callable, Tuple

DEFAULT_TIMEOUT = 30
INSTALL_TIMEOUT = 600

_logging = logging.getLogger(__name__)


async def run_command_async(
    command: str, timeout: int = DEFAULT_TIMEOUT
) -> Tuple[str, int]:
    """Run a command asynchronously and return output and return code."""
    process = None
    try:
        _logging.debug(f"Running command: {command}")
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
            output = stdout.decode(errors="replace").strip()
            return output, process.returncode if process.returncode is not None else 1
        except asyncio.TimeoutError:
            process.kill()
            _ = await process.wait()
            _logging.error(f"Command timed out after {timeout} seconds: {command}")
            return f"Command timed out after {timeout} seconds", 1
    except Exception as e:
        _logging.error(f"Command execution failed: {type(e).__name__}: {e} | Command: {command}")
        return f"Error: {str(e)}", 1
    finally:
        if process:
            transport = getattr(process, "_transport", None)
            if transport:
                transport.close()


def stream_command(command: str, on_line: Callable[[str], None]) -> int:
    """Run a shell command, passing each output line to on_line as it arrives.

    stderr is merged into stdout. Blocks until the command exits and returns
    its exit code.
    """
    _logging.debug(f"Streaming command: {command}")
    try:
        process = subprocess.Popen(
            command,
            shell=True,
            text=True,
            errors="replace",
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            bufsize=1,
        )
    except OSError as e:
        _logging.error(f"Command execution failed: {type(e).__name__}: {e} | Command: {command}")
        on_line(f"Error: {e}")
        return 1

    with process:
        for line in process.stdout or []:
            on_line(line.rstrip("\n"))
        process.wait()

    _logging.debug(f"Command exited with {process.returncode}: {command}")
    return process.returncode


__all__ = [
    "DEFAULT_TIMEOUT",
    "INSTALL_TIMEOUT",
    "run_command_async",
    "stream_command",
]
