"""udb init command - create the database and project config."""

import asyncio
from pathlib import Path

import click
import yaml

from universaldb.config.loader import PROJECT_CONFIG_DIR, get_database_path
from universaldb.db import UniversalDb

CONFIG_HEADER = """\
# UniversalDb configuration
# Env vars override this file: UNIVERSALDB__DATABASE__PATH, UNIVERSALDB__LOGGING__LEVEL

"""


def initialize_project(root: Path, *, force: bool = False) -> bool:
    """Write .universaldb/config.yaml and create the tables, returning True on success."""
    config_dir = root / PROJECT_CONFIG_DIR
    config_path = config_dir / "config.yaml"

    if config_path.exists() and not force:
        click.echo(f"Already initialized: {config_dir}")
        click.echo("Use --force to rewrite the config")
        return False

    config_dir.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        CONFIG_HEADER + yaml.dump({"database": {"path": "universal.db"}}, sort_keys=False)
    )

    db_path = get_database_path(root)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = UniversalDb.open(db_path)
    try:
        classes = asyncio.run(db.schema.try_get_all_classes()).unwrap()
    finally:
        db.close()

    click.echo(f"Database ready: {db_path} ({len(classes)} classes)")
    return True


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--force", is_flag=True, help="Rewrite an existing config")
def init_command(path: Path, force: bool) -> None:
    """Initialize a UniversalDb project.

    PATH is the project root (default: current directory).
    """
    initialize_project(path.resolve(), force=force)
