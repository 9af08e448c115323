"""Homebrew commands used by the align and install commands."""

import asyncio
import logging
import shlex
import shutil

import click

from .execution import DEFAULT_TIMEOUT, INSTALL_TIMEOUT, run_command_async
from .tui.models import PackageKind

_logging = logging.getLogger(__name__)

LIST_COMMANDS = {
    PackageKind.FORMULA: "brew list --formula --installed-on-request -1",
    PackageKind.CASK: "brew list --cask -1",
}


def brew_available() -> bool:
    return shutil.which("brew") is not None


async def list_installed_async(kind: PackageKind, timeout: int = DEFAULT_TIMEOUT) -> list[str]:
    output, returncode = await run_command_async(LIST_COMMANDS[kind], timeout=timeout)
    if returncode != 0:
        _logging.debug(f"brew list for {kind.plural} failed: {output}")
        return []
    return [line.strip() for line in output.splitlines() if line.strip()]


def list_installed(kind: PackageKind) -> list[str]:
    """Names of installed packages of one kind; empty if brew fails."""
    return asyncio.run(list_installed_async(kind))


def install_command(name: str, kind: PackageKind) -> str:
    if kind is PackageKind.CASK:
        return f"brew install --cask {shlex.quote(name)}"
    return f"brew install {shlex.quote(name)}"


def uninstall_command(name: str, kind: PackageKind) -> str:
    if kind is PackageKind.CASK:
        return f"brew uninstall --cask {shlex.quote(name)}"
    # Other formulae may still depend on it; the user asked for it gone
    return f"brew uninstall --ignore-dependencies {shlex.quote(name)}"


async def uninstall_async(
    name: str, kind: PackageKind, timeout: int = INSTALL_TIMEOUT
) -> bool:
    output, returncode = await run_command_async(uninstall_command(name, kind), timeout=timeout)
    for line in output.splitlines():
        click.echo(f"  {line}")
    return returncode == 0


def uninstall(name: str, kind: PackageKind) -> bool:
    """Uninstall one package, echoing brew's output indented."""
    return asyncio.run(uninstall_async(name, kind))


__all__ = [
    "LIST_COMMANDS",
    "brew_available",
    "list_installed",
    "list_installed_async",
    "install_command",
    "uninstall_command",
    "uninstall",
    "uninstall_async",
]
