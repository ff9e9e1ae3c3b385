# File: dosage/scripts/cli.py
import json
import logging
from datetime import datetime
from pathlib import Path

import typer

from dosage.scripts import settings
from dosage.scripts.destination import init_daily_table
from dosage.scripts.errors import DosageImportError
from dosage.scripts.export_reports import export_reports
from dosage.scripts.importer import import_workbook
from dosage.scripts.mapping import load_column_mapping
from dosage.scripts.store import SqliteStore

APP = typer.Typer(help="Dosage workbook ingestion and report export.")


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@APP.command("import")
def cmd_import(
    src: str = typer.Argument(..., help="Path to the submitted .xlsx workbook"),
    db: str = typer.Option(settings.DB_PATH, help="sqlite database file"),
    mapping: str = typer.Option(settings.COLUMN_MAPPING, help="Column mapping YAML"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    _configure_logging(verbose)
    path = Path(src).expanduser().resolve()
    if not path.exists():
        raise typer.BadParameter(f"Workbook not found: {path}")

    try:
        with open(path, "rb") as f, SqliteStore(db) as store:
            summary = import_workbook(f, mapping=load_column_mapping(mapping), store=store)
    except DosageImportError as exc:
        typer.echo(f"[error] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(summary.to_dict(), indent=2))


@APP.command("export")
def cmd_export(
    data_type: str = typer.Option(..., help="Result data type to export"),
    calculated_from: str = typer.Option(..., help="Calculation start date, YYYY-MM-DD"),
    market: str = typer.Option("all", help="Market name, or 'all'"),
    out_dir: str = typer.Option(settings.TEMP_DIR, help="Scratch directory for the reports"),
    db: str = typer.Option(settings.DB_PATH, help="sqlite database file"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    _configure_logging(verbose)
    try:
        start = datetime.strptime(calculated_from, "%Y-%m-%d").date()
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {calculated_from!r}")

    with SqliteStore(db) as store:
        zip_path = export_reports(store, data_type, market, start, out_dir)
    if zip_path is None:
        typer.echo("[error] Export failed; see log for details", err=True)
        raise typer.Exit(code=1)
    typer.echo(str(zip_path))


@APP.command("init-db")
def cmd_init_db(
    db: str = typer.Option(settings.DB_PATH, help="sqlite database file"),
    mapping: str = typer.Option(settings.COLUMN_MAPPING, help="Column mapping YAML"),
):
    _configure_logging(False)
    with SqliteStore(db) as store:
        table = init_daily_table(store, load_column_mapping(mapping))
    typer.echo(table)


if __name__ == "__main__":
    APP()
