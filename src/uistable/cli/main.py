"""uistable CLI entry point."""

import typer

app = typer.Typer(
    name="uistable",
    help="uistable — detect when a UI tree has settled",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    if value:
        from uistable import __version__

        typer.echo(f"uistable {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """uistable — detect when a UI tree has settled."""


# -- Register commands --------------------------------------------------------

from uistable.cli.commands.compare_cmd import compare_command  # noqa: E402
from uistable.cli.commands.config_cmd import config_app  # noqa: E402
from uistable.cli.commands.fingerprint_cmd import fingerprint_command  # noqa: E402
from uistable.cli.commands.wait_cmd import wait_command  # noqa: E402

app.command(name="fingerprint")(fingerprint_command)
app.command(name="compare")(compare_command)
app.command(name="wait")(wait_command)
app.add_typer(config_app, name="config")
