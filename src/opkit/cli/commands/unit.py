"""Unit commands: run, describe and call."""

import importlib
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from opkit.core.cron import summarize_cron
from opkit.core.manifest import MANIFEST_FORMATS, render_manifest
from opkit.core.registry import OperationKind
from opkit.units.base import BaseUnit

console = Console()

DEFAULT_ATTRIBUTE = "unit"


def load_unit(target: str) -> BaseUnit:
    """
    Import a unit from a ``module:attribute`` target.

    The attribute defaults to ``unit`` and may name a unit instance or a
    zero-argument factory returning one.

    Raises:
        ValueError: If the module or attribute can't be loaded, or isn't a unit
    """
    module_name, _, attribute = target.partition(":")
    attribute = attribute or DEFAULT_ATTRIBUTE
    if not module_name:
        raise ValueError(f"Invalid target '{target}'. Expected 'module:attribute'.")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Could not import module '{module_name}': {e}") from e

    try:
        obj = getattr(module, attribute)
    except AttributeError:
        raise ValueError(f"Module '{module_name}' has no attribute '{attribute}'")

    if callable(obj) and not isinstance(obj, BaseUnit):
        obj = obj()
    if not isinstance(obj, BaseUnit):
        raise ValueError(f"'{target}' is not a unit (got {type(obj).__name__})")
    return obj


def _load_or_exit(target: str) -> BaseUnit:
    try:
        return load_unit(target)
    except ValueError as e:
        console.print(f"[red]Error loading unit:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def run(
    target: str = typer.Argument(..., help="Unit to serve, as module:attribute"),
):
    """
    Serve one request on stdin/stdout.

    This is what a host executes. The exit status is the unit's own
    (non-zero only for errors in strict output mode).

    Examples:
        printf 'describe\\n---\\n' | opkit run notes.unit:unit
    """
    unit = _load_or_exit(target)
    raise typer.Exit(unit.respond())


def describe(
    target: str = typer.Argument(..., help="Unit to describe, as module:attribute"),
    fmt: Optional[str] = typer.Option(None, "--format", help="Manifest format: json or yaml (overrides config)"),
    table: bool = typer.Option(False, "--table", help="Show registered operations as a table"),
):
    """
    Print a unit's manifest.

    Examples:
        opkit describe notes.unit:unit
        opkit describe notes.unit:unit --format yaml
        opkit describe notes.unit:unit --table
    """
    unit = _load_or_exit(target)

    if table:
        table_view = Table(title=f"{unit.name} ({unit.id})")
        table_view.add_column("Id", style="cyan")
        table_view.add_column("Kind")
        table_view.add_column("Index", justify="right")
        table_view.add_column("Description")
        table_view.add_column("Schedule")
        for descriptor in unit.registry:
            schedule = summarize_cron(descriptor.cron) if descriptor.kind is OperationKind.CRON_ACTION else ""
            table_view.add_row(
                descriptor.id,
                descriptor.kind.value,
                str(descriptor.index),
                descriptor.description,
                schedule,
            )
        console.print(table_view)
        return

    fmt = fmt or unit.config.manifest_format
    if fmt not in MANIFEST_FORMATS:
        console.print(f"[red]Invalid format '{escape(fmt)}'.[/red] Must be 'json' or 'yaml'.")
        raise typer.Exit(1)

    try:
        typer.echo(render_manifest(unit.describe(), fmt))
    except Exception as e:
        console.print(f"[red]Error rendering manifest:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def call(
    target: str = typer.Argument(..., help="Unit to call, as module:attribute"),
    operation: str = typer.Argument(..., help="Operation id"),
    payload: str = typer.Option("", help="Request payload"),
    payload_file: Optional[Path] = typer.Option(None, help="Read the payload from a file"),
):
    """
    Invoke one operation and print its output.

    Examples:
        opkit call notes.unit:unit list-notes
        opkit call notes.unit:unit read-file --payload '{"dir": "", "name": "a.txt"}'
    """
    unit = _load_or_exit(target)

    if payload_file is not None:
        try:
            payload = payload_file.read_text(encoding="utf-8")
        except OSError as e:
            console.print(f"[red]Error reading payload file:[/red] {escape(str(e))}")
            raise typer.Exit(1)

    result = unit.run(unit.payload(operation, payload))
    if not result.ok:
        console.print(f"[red]{escape(result.error.message)}[/red]")
        raise typer.Exit(1)

    typer.echo(result.output)
