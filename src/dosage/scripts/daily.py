# File: dosage/scripts/daily.py
import logging
from typing import Sequence

import pandas as pd

from dosage.scripts import settings
from dosage.scripts.cells import cell_text, to_decimal
from dosage.scripts.errors import DosageImportError
from dosage.scripts.mapping import ColumnKind, DailyColumnSpec
from dosage.scripts.store import Store

logger = logging.getLogger(__name__)

SUPPORT_MESSAGE = "error occurred, please contact support!"


def read_daily_rows(columns: Sequence[DailyColumnSpec], sheet) -> pd.DataFrame:
    """One row per sheet row from row 2; sheet column ``j + 1`` feeds ``columns[j]``.

    Empty cells stay NULL. Decimal columns raise ValueError on non-numeric text.
    """
    if not columns:
        raise ValueError("no daily dosage columns configured")
    rows = []
    width = len(columns)
    for values in sheet.iter_rows(min_row=2, max_col=width, values_only=True):
        row = [None] * width
        for j, value in enumerate(values):
            if value is None:
                continue
            if columns[j].kind is ColumnKind.DECIMAL:
                row[j] = to_decimal(value)
            else:
                row[j] = cell_text(value)
        rows.append(row)
    return pd.DataFrame(rows, columns=[c.name for c in columns], dtype="object")


def import_daily(columns: Sequence[DailyColumnSpec], sheet, store: Store, logger: logging.Logger = logger) -> int:
    """Replace the contents of the DailyDosage table with ``sheet``."""
    try:
        frame = read_daily_rows(columns, sheet)
        store.truncate(settings.DAILY_DOSAGE_TABLE)
        loaded = store.bulk_load(settings.DAILY_DOSAGE_TABLE, frame)
    except Exception as exc:
        logger.exception("Daily dosage import from sheet %s failed: %s", sheet.title, exc)
        raise DosageImportError(SUPPORT_MESSAGE) from exc
    logger.info("Replaced %s with %d rows", settings.DAILY_DOSAGE_TABLE, loaded)
    return loaded
