"""Install command implementation."""

import logging
import sys
from pathlib import Path

import click

from jsh import JshError, format_error, format_suggestion, load_config, setup_logging
from jsh import brew
from jsh.declarations import DeclarationStore
from jsh.tui.models import PackageKind
from jsh.tui.progress import open_progress

_logging = logging.getLogger(__name__)

KIND_CHOICES = {
    "formula": (PackageKind.FORMULA,),
    "cask": (PackageKind.CASK,),
    "all": (PackageKind.FORMULA, PackageKind.CASK),
}


@click.command()
@click.option(
    "--kind",
    type=click.Choice(sorted(KIND_CHOICES)),
    default="all",
    help="Which declared packages to install",
)
@click.option(
    "--animate/--no-animate",
    default=True,
    help="Keep the status bar spinner moving while brew runs",
)
@click.option(
    "--taskfile",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Taskfile holding the declared packages",
)
@click.pass_context
def install(ctx, kind: str, animate: bool, taskfile: Path | None):
    """Install every declared Homebrew package."""
    debug = ctx.obj.get("debug", False)
    setup_logging(debug)
    try:
        failed = run_install(KIND_CHOICES[kind], animate, taskfile)
    except JshError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    if failed:
        sys.exit(1)


def run_install(
    kinds: tuple[PackageKind, ...], animate: bool, taskfile: Path | None
) -> list[str]:
    """Install the declared packages, returning the names that failed."""
    config = load_config()
    store = DeclarationStore(taskfile or config.taskfile)

    if not brew.brew_available():
        click.echo(
            format_suggestion("Homebrew is not installed", "install it from https://brew.sh"),
            err=True,
        )
        sys.exit(1)

    packages = [(name, kind) for kind in kinds for name in store.declared(kind)]
    if not packages:
        click.echo("No declared packages to install.")
        return []

    failed: list[str] = []
    display = open_progress(
        animate=animate,
        bar_width=config.bar_width,
        animation_interval=config.animation_interval,
    )
    try:
        display.start("Installing packages", len(packages))
        for name, package_kind in packages:
            display.next(name)
            code = display.run_animated(brew.install_command(name, package_kind))
            if code != 0:
                _logging.debug(f"brew install {name} exited with {code}")
                display.error(f"Failed to install {name}")
                failed.append(name)
        if failed:
            display.fail(f"{len(failed)} of {len(packages)} packages failed")
        else:
            display.complete(f"Installed {len(packages)} packages")
    finally:
        display.cleanup()

    return failed


__all__ = [
    "install",
    "run_install",
]
