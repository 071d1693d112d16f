from __future__ import annotations

import typer

from reltool import __version__
from reltool.cli.commands.build_cmd import build
from reltool.cli.commands.merge_cmd import merge
from reltool.cli.commands.sign_cmd import sign

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Merge, build and sign project releases.",
)


# Commands
app.command()(merge)
app.command()(build)
app.command()(sign)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_show_version,
        is_eager=True,
    ),
) -> None:
    pass


def main() -> None:
    app()
