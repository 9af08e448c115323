"""CLI command definitions for jsh."""

import click

from jsh import __version__
from jsh.commands.align import align
from jsh.commands.install import install


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.version_option(__version__, prog_name="jsh")
@click.pass_context
def cli(ctx, debug):
    """Manage a declared shell environment."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


cli.add_command(align)
cli.add_command(install)

__all__ = [
    "cli",
]


if __name__ == "__main__":
    cli()
