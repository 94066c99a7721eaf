"""CLI application for running browser test fleets on Sauce Labs."""

import typer

from saucefleet.cli.commands.fleet import platforms, run

app = typer.Typer(
    help="saucefleet - run browser test fleets through a Sauce Connect tunnel",
    no_args_is_help=True,
)

app.command(help="Run the test page on every platform.")(run)
app.command(help="List the built-in platforms.")(platforms)


if __name__ == "__main__":
    app()
