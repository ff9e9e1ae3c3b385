# File: dosage/scripts/materialize.py
import logging
from typing import List

import pandas as pd

from dosage.scripts.cells import cell_text, to_decimal
from dosage.scripts.errors import CellCoercionError, WorkbookFormatError
from dosage.scripts.mapping import ColumnKind
from dosage.scripts.schema import TableField

logger = logging.getLogger(__name__)


def build_table(fields: List[TableField]) -> pd.DataFrame:
    """Empty table with one object column per field (text or Decimal values)."""
    return pd.DataFrame({f.name: pd.Series(dtype="object") for f in fields})


def fill_table(table: pd.DataFrame, fields: List[TableField], sheet, logger: logging.Logger = logger) -> pd.DataFrame:
    """Read rows 2..max_row of ``sheet`` into a copy of ``table``.

    Sheet column ``c`` lands in field ``c - 1``. A value that cannot be
    coerced into its decimal field aborts the whole sheet.
    """
    width = sheet.max_column
    if width > len(fields):
        raise WorkbookFormatError(
            f"Sheet {sheet.title} has {width} columns but its layout defines {len(fields)}"
        )

    rows = []
    for r, values in enumerate(sheet.iter_rows(min_row=2, max_col=width, values_only=True), start=2):
        row: List[object] = [None] * len(fields)
        for c, value in enumerate(values, start=1):
            field = fields[c - 1]
            if field.kind is ColumnKind.DECIMAL:
                try:
                    row[c - 1] = to_decimal(value)
                except ValueError as exc:
                    logger.error(
                        "Invalid cast for sheet %s at Cells[%d, %d], target field %s (%s), cell value: %r, message: %s",
                        sheet.title, r, c, field.name, field.kind.value, value, exc,
                    )
                    raise CellCoercionError(sheet.title, r, c, value) from exc
            else:
                row[c - 1] = cell_text(value)
        rows.append(row)

    filled = pd.DataFrame(rows, columns=table.columns, dtype="object") if rows else table.copy()
    logger.info("Sheet %s: materialized %d rows", sheet.title, len(filled))
    return filled
