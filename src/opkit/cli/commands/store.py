"""Key/value store commands."""

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from opkit.config import UnitConfig
from opkit.store.config_store import ConfigStore, ConfigStoreError

app = typer.Typer(help="Unit key/value store")
console = Console()


def _store(unit_id: str) -> ConfigStore:
    try:
        return ConfigStore.for_unit(unit_id, UnitConfig.load())
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def get(
    unit_id: str = typer.Argument(..., help="Unit id"),
    key: str = typer.Argument(..., help="Key to read"),
):
    """
    Print the value stored under a key.

    Exits with status 1 if the key is not set.

    Examples:
        opkit config get notes api-url
    """
    try:
        value = _store(unit_id).get(key)
    except ConfigStoreError as e:
        console.print(f"[red]Error reading store:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if value is None:
        console.print(f"[yellow]Key '{escape(key)}' is not set for {escape(unit_id)}[/yellow]")
        raise typer.Exit(1)
    typer.echo(value)


@app.command("set")
def set_value(
    unit_id: str = typer.Argument(..., help="Unit id"),
    key: str = typer.Argument(..., help="Key to write"),
    value: str = typer.Argument(..., help="Value to store"),
):
    """
    Store a value under a key, replacing any previous value.

    Examples:
        opkit config set notes api-url https://example.com
    """
    try:
        _store(unit_id).set(key, value)
    except ValueError as e:
        console.print(f"[red]Invalid entry:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except ConfigStoreError as e:
        console.print(f"[red]Error writing store:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    console.print(f"[green]Set {escape(key)} for {escape(unit_id)}[/green]")


@app.command("list")
def list_values(
    unit_id: str = typer.Argument(..., help="Unit id"),
):
    """
    Show every key stored for a unit.

    Examples:
        opkit config list notes
    """
    try:
        values = _store(unit_id).as_map()
    except ConfigStoreError as e:
        console.print(f"[red]Error reading store:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not values:
        console.print(f"[yellow]No values stored for {escape(unit_id)}[/yellow]")
        return

    table = Table(title=f"Store: {unit_id}")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key, value)
    console.print(table)
