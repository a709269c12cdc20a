"""opkit command line."""

import typer

from .commands import store, unit

app = typer.Typer(help="Build, inspect and call opkit units", no_args_is_help=True)

app.command()(unit.run)
app.command()(unit.describe)
app.command()(unit.call)
app.add_typer(store.app, name="config")


def main() -> None:
    app()
