"""udb classes / udb show commands - read-only views of stored rows."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from universaldb.config.loader import get_database_path
from universaldb.db import UniversalDb


def _open_existing(root: Path) -> UniversalDb:
    db_path = get_database_path(root)
    if not db_path.exists():
        raise click.ClickException(f"No database at {db_path}. Run 'udb init' first.")
    return UniversalDb.open(db_path)


async def _collect_classes(db: UniversalDb) -> list[dict[str, Any]]:
    classes = (await db.schema.try_get_all_classes()).unwrap()
    names = {entry.id: entry.name for entry in classes}
    rows: list[dict[str, Any]] = []
    for entry in classes:
        props = (await db.schema.try_get_properties_by_class_id(entry.id)).unwrap()  # type: ignore[arg-type]
        rows.append(
            {
                "id": entry.id,
                "name": entry.name,
                "super": names.get(entry.super_id) if entry.super_id is not None else None,
                "properties": {p.name: p.type for p in props},
            }
        )
    return rows


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def classes_command(path: Path, as_json: bool) -> None:
    """List stored classes and their properties.

    PATH is the project root (default: current directory).
    """
    db = _open_existing(path.resolve())
    try:
        rows = asyncio.run(_collect_classes(db))
    finally:
        db.close()

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return
    if not rows:
        click.echo("No classes stored.")
        return
    Console().print(_make_classes_table(rows))


def _make_classes_table(rows: list[dict[str, Any]]) -> Table:
    table = Table(box=None, padding=(0, 1), pad_edge=False)
    table.add_column("id", style="dim", justify="right")
    table.add_column("class", style="cyan")
    table.add_column("extends", style="cyan")
    table.add_column("properties")
    for row in rows:
        props = ", ".join(f"{name}: {type_name}" for name, type_name in row["properties"].items())
        table.add_row(str(row["id"]), row["name"], row["super"] or "", props)
    return table


@click.command()
@click.argument("object_id", type=int)
@click.option(
    "--path",
    "path",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project root (default: current directory)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show_command(object_id: int, path: Path, as_json: bool) -> None:
    """Show a stored object and everything it references."""
    db = _open_existing(path.resolve())
    try:
        dump = asyncio.run(db.describe(object_id))
    finally:
        db.close()

    if dump is None:
        raise click.ClickException(f"Object {object_id} not found")
    if as_json:
        click.echo(json.dumps(dump, indent=2))
        return
    _echo_object(dump, indent=0)


def _echo_object(dump: dict[str, Any], indent: int) -> None:
    pad = "  " * indent
    click.echo(f"{pad}{dump['class']} #{dump['id']}")
    for name, value in dump["values"].items():
        if isinstance(value, dict) and {"id", "class", "values"} <= value.keys():
            click.echo(f"{pad}  {name}:")
            _echo_object(value, indent + 2)
        else:
            click.echo(f"{pad}  {name} = {json.dumps(value)}")
