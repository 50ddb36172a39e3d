from __future__ import annotations

import typer

from relprep import __version__
from relprep.cli.context import build_context
from relprep.core.result import Err
from relprep.output.errors import prepare_error_exit_code, print_prepare_error
from relprep.release.preparer import prepare_release


app = typer.Typer(
    add_completion=False,
    rich_markup_mode="rich",
    help="Bump the version, regenerate the changelog, then commit and tag the release.",
)


@app.command()
def prepare(
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Prepare the next release of the repository in the current directory."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    ctx = build_context()
    result = prepare_release(ctx)
    if isinstance(result, Err):
        print_prepare_error(result.error, ctx.console)
        raise typer.Exit(code=prepare_error_exit_code(result.error))


def main() -> None:
    app()
