"""Align command implementation."""

import logging
import sys
from pathlib import Path

import click

from jsh import JshError, format_error, format_suggestion, load_config, setup_logging
from jsh import brew
from jsh.align import find_extras
from jsh.declarations import DeclarationStore
from jsh.tui.models import PackageKind, SelectorItem
from jsh.tui.selector import select_and_apply

_logging = logging.getLogger(__name__)


@click.command()
@click.option(
    "--interactive",
    "-i",
    is_flag=True,
    help="Choose an action for each extra package in a full-screen list",
)
@click.option(
    "--taskfile",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Taskfile holding the declared packages",
)
@click.pass_context
def align(ctx, interactive: bool, taskfile: Path | None):
    """Find installed Homebrew packages that are not declared."""
    debug = ctx.obj.get("debug", False)
    setup_logging(debug)
    try:
        run_align(interactive, taskfile)
    except JshError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except RuntimeError as e:
        click.echo(format_suggestion(str(e), "run 'jsh align' without --interactive"), err=True)
        sys.exit(1)


def _print_extras(extras: list[SelectorItem]) -> None:
    click.secho(
        f"⚠️  Found {len(extras)} extra package(s) not declared in taskfiles:",
        fg="yellow",
    )
    for kind in PackageKind:
        names = [item.label for item in extras if item.kind is kind]
        if not names:
            continue
        click.echo("")
        click.secho(f"{kind.title} ({len(names)}):", fg="yellow")
        for name in names:
            click.echo(f"  - {name}")
    click.echo("")


def run_align(interactive: bool, taskfile: Path | None) -> None:
    config = load_config()
    store = DeclarationStore(taskfile or config.taskfile)

    if not brew.brew_available():
        click.echo(
            format_suggestion("Homebrew is not installed", "install it from https://brew.sh"),
            err=True,
        )
        sys.exit(1)

    click.secho("🔍 Checking Homebrew package alignment...", fg="cyan")
    declared = {kind: store.declared(kind) for kind in PackageKind}
    installed = {kind: brew.list_installed(kind) for kind in PackageKind}
    for kind in PackageKind:
        click.secho(f"✓ Declared {kind.plural}: {len(declared[kind])}", fg="green")
    for kind in PackageKind:
        click.secho(f"ℹ Installed {kind.plural}: {len(installed[kind])}", fg="cyan")
    click.echo("")

    extras = find_extras(installed, declared)
    if not extras:
        click.secho("✅ All installed packages are declared in taskfiles!", fg="green")
        return

    _print_extras(extras)

    if interactive:
        _logging.debug(f"launching selector for {len(extras)} packages")
        outcome = select_and_apply(extras, store.declare, brew.uninstall)
        if outcome.failures:
            sys.exit(1)
        return

    if not click.confirm(
        "Would you like to uninstall these packages to align with your declarations?",
        default=False,
    ):
        click.secho("Skipping package removal.", fg="yellow")
        return

    failed = 0
    for item in extras:
        click.echo(f"  {click.style('✗', fg='red')} Uninstalling: {item.label}")
        if not brew.uninstall(item.label, item.kind):
            failed += 1

    if failed:
        click.secho(f"! {failed} of {len(extras)} packages could not be removed", fg="yellow")
        sys.exit(1)
    click.secho("✅ Package cleanup complete!", fg="green")


__all__ = [
    "align",
    "run_align",
]
