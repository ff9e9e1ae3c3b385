# File: dosage/scripts/importer.py
"""Drive one ingestion run over a submitted workbook.

Period sheets (MTH, MAT) are loaded into a fresh ``BIZ_<period><MMDD>``
table each; the DAILYDOSAGE sheet replaces the DailyDosage table; every other
sheet is ignored. Sheets are processed in workbook order and nothing is
rolled back when a later sheet fails.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import BinaryIO, Dict, List
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from dosage.scripts import settings
from dosage.scripts.daily import import_daily
from dosage.scripts.destination import create_destination_table
from dosage.scripts.errors import DosageImportError, StoreError, WorkbookFormatError
from dosage.scripts.mapping import ColumnMapping, load_column_mapping
from dosage.scripts.materialize import build_table, fill_table
from dosage.scripts.schema import resolve_schema
from dosage.scripts.store import SqliteStore, Store

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    tables: Dict[str, int] = field(default_factory=dict)
    daily_rows: int | None = None
    skipped_sheets: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "tables": dict(self.tables),
            "daily_rows": self.daily_rows,
            "skipped_sheets": list(self.skipped_sheets),
        }


def classify_sheet(name: str) -> str | None:
    """Return the period code, the daily marker, or None for sheets to skip."""
    code = name.strip().upper()
    if code in settings.PERIOD_SHEETS or code == settings.DAILY_DOSAGE_SHEET:
        return code
    return None


def open_workbook(stream: BinaryIO):
    try:
        return load_workbook(stream, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError) as exc:
        logger.error("please check whether the file is a valid excel workbook, message: %s", exc)
        raise WorkbookFormatError("the uploaded file is not a valid Excel workbook") from exc


def load_period_sheet(
    period: str,
    sheet,
    mapping: ColumnMapping,
    store: Store,
    today: date | None = None,
    logger: logging.Logger = logger,
) -> tuple[str, int] | None:
    schema = resolve_schema(period, sheet, mapping, logger=logger)
    fields = schema.fields()
    table = fill_table(build_table(fields), fields, sheet, logger=logger)
    if table.empty:
        logger.warning("Sheet %s has no data rows; no table created", sheet.title)
        return None

    table_name = create_destination_table(
        store, period, schema.columns, schema.derived_columns, today=today, logger=logger
    )
    return table_name, store.bulk_load(table_name, table)


def _run(workbook, mapping: ColumnMapping, store: Store, today: date | None, logger: logging.Logger) -> ImportSummary:
    summary = ImportSummary()
    sheets = [(sheet, classify_sheet(sheet.title)) for sheet in workbook.worksheets]

    # Every period sheet needs its range spec before anything touches the store
    for _, kind in sheets:
        if kind in settings.PERIOD_SHEETS:
            mapping.period(kind)

    temp_cleaned = False
    for sheet, kind in sheets:
        if kind is None:
            logger.info("Skipping sheet %s", sheet.title)
            summary.skipped_sheets.append(sheet.title)
            continue

        if kind == settings.DAILY_DOSAGE_SHEET:
            summary.daily_rows = import_daily(mapping.daily_columns, sheet, store, logger=logger)
            continue

        try:
            if not temp_cleaned:
                store.call_procedure(settings.CLEAN_TEMP_PROCEDURE)
                temp_cleaned = True
            loaded = load_period_sheet(kind, sheet, mapping, store, today=today, logger=logger)
        except StoreError as exc:
            logger.error("error occurred while communicating with database for sheet %s, message: %s", sheet.title, exc)
            raise DosageImportError(
                f"error occurred while loading sheet {sheet.title}, please contact support!"
            ) from exc
        except DosageImportError:
            raise
        except Exception as exc:
            logger.exception("Unexpected failure while loading sheet %s: %s", sheet.title, exc)
            raise DosageImportError(
                f"error occurred while loading sheet {sheet.title}, please contact support!"
            ) from exc
        if loaded:
            summary.tables[loaded[0]] = loaded[1]

    try:
        store.call_procedure(settings.POST_LOAD_PROCEDURE)
    except StoreError as exc:
        logger.error("Post-load procedure %s failed: %s", settings.POST_LOAD_PROCEDURE, exc)
        raise DosageImportError("error occurred while processing imported data, please contact support!") from exc
    return summary


def import_workbook(
    stream: BinaryIO,
    mapping: ColumnMapping | None = None,
    store: Store | None = None,
    logger: logging.Logger = logger,
    today: date | None = None,
) -> ImportSummary:
    """Import every recognized sheet of the workbook in ``stream``.

    Raises DosageImportError (or a subclass) with an operator-safe message.
    """
    mapping = mapping or load_column_mapping()
    workbook = open_workbook(stream)
    try:
        if store is None:
            with SqliteStore() as owned:
                return _run(workbook, mapping, owned, today, logger)
        return _run(workbook, mapping, store, today, logger)
    except DosageImportError as exc:
        logger.error("Import aborted: %s", exc)
        raise
    finally:
        workbook.close()
