from __future__ import annotations

import importlib
import os
import sys
from typing import Optional

import typer

from rowgate.config import get_settings
from rowgate.infrastructure.db import Db
from rowgate.seeder import Seeder, collect_table_classes
from rowgate.utils.logging import configure_logging

app = typer.Typer(help="rowgate data-access layer CLI.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DSN={settings.db_dsn} user={settings.db_user or '-'} | "
        f"env={settings.app_env} log_level={settings.log_level} "
        f"seed_module={settings.seed_module}"
    )


@app.command()
def seed(
    module: Optional[str] = typer.Argument(
        None,
        help="Python module exposing SEED_DATA (default from settings).",
    ),
    fresh: bool = typer.Option(
        False,
        "--fresh",
        "-f",
        help="Truncate every seeded table (children first) before inserting.",
    ),
    dsn: Optional[str] = typer.Option(
        None,
        "--dsn",
        help="Override the DSN from settings.",
    ),
) -> None:
    """
    Load SEED_DATA from a module and insert it.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    module_name = module or settings.seed_module

    # Seed modules live in the project being seeded, not in rowgate.
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())
    try:
        seed_module = importlib.import_module(module_name)
    except ModuleNotFoundError:
        typer.echo(f"Seed module not found: {module_name}", err=True)
        raise typer.Exit(code=1)

    data = getattr(seed_module, "SEED_DATA", None)
    if not isinstance(data, dict):
        typer.echo(f"{module_name}.SEED_DATA must be a dict of Table classes.", err=True)
        raise typer.Exit(code=1)

    if dsn is not None:
        db = Db(dsn, user=settings.db_user, password=settings.db_password, options=settings.db_options)
    else:
        db = Db.from_settings(settings)

    with db:
        seeder = Seeder(db)
        if fresh:
            typer.echo("Truncating tables...")
            seeder.truncate(reversed(collect_table_classes(data)))

        typer.echo("Running seeders...")
        counts = seeder.seed(data)
        for table_class, count in counts.items():
            typer.echo(f"  {table_class.__name__}: {count} records")
        typer.echo(f"Seeding complete. {sum(counts.values())} records inserted.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
