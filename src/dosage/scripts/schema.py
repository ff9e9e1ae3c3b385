# File: dosage/scripts/schema.py
"""Resolve the column layout of a period sheet.

Fixed columns come straight from ``InputColumns``; the date-indexed columns
are named from the header row, one per sheet column inside each configured
range (value, then period-to-date, then volume).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from openpyxl.utils import get_column_letter

from dosage.scripts.cells import header_text
from dosage.scripts.errors import WorkbookFormatError
from dosage.scripts.mapping import ColumnKind, ColumnMapping, ColumnRange, ColumnSpec

logger = logging.getLogger(__name__)

SEPARATORS = ("/", "-")


@dataclass(frozen=True)
class TableField:
    name: str
    kind: ColumnKind


@dataclass(frozen=True)
class SheetSchema:
    period: str
    columns: Tuple[ColumnSpec, ...]
    derived_columns: Tuple[str, ...]

    @property
    def fixed_columns(self) -> Tuple[ColumnSpec, ...]:
        return tuple(c for c in self.columns if not c.primary_key)

    def fields(self) -> List[TableField]:
        """Fields of the in-memory table, in sheet column order."""
        fields = [TableField(c.name, ColumnKind.TEXT) for c in self.fixed_columns]
        fields += [TableField(name, ColumnKind.DECIMAL) for name in self.derived_columns]
        return fields


def derived_column_name(prefix: str, header, date_length: int) -> str:
    suffix = header_text(header)[-date_length:]
    for sep in SEPARATORS:
        suffix = suffix.replace(sep, "_")
    return f"{prefix}_{suffix}"


def _range_columns(sheet, prefix: str, rng: ColumnRange, date_length: int) -> List[Tuple[str, str]]:
    """(derived name, header cell) for each column of the range."""
    names = []
    for idx in rng.indices():
        header = sheet.cell(row=1, column=idx).value
        if header is None or not header_text(header):
            raise WorkbookFormatError(
                f"Sheet {sheet.title} has no header at {get_column_letter(idx)}1, expected a {prefix} date column"
            )
        names.append((derived_column_name(prefix, header, date_length), f"{get_column_letter(idx)}1"))
    return names


def _check_unique(sheet, mapping: ColumnMapping, columns: List[Tuple[str, str]]):
    fixed = {c.name for c in mapping.input_columns}
    seen: Dict[str, str] = {}
    for name, cell in columns:
        if name in fixed:
            raise WorkbookFormatError(
                f"Sheet {sheet.title} header {cell} resolves to column {name}, which is already an input column"
            )
        if name in seen:
            raise WorkbookFormatError(
                f"Sheet {sheet.title} headers {seen[name]} and {cell} both resolve to column {name}"
            )
        seen[name] = cell


def resolve_schema(period: str, sheet, mapping: ColumnMapping, logger: logging.Logger = logger) -> SheetSchema:
    spec = mapping.period(period)

    derived: List[Tuple[str, str]] = []
    derived += _range_columns(sheet, "VAL", spec.value, spec.date_length)
    derived += _range_columns(sheet, "PTD", spec.ptd, spec.date_length)
    derived += _range_columns(sheet, "VOL", spec.volume, spec.date_length)

    _check_unique(sheet, mapping, derived)

    logger.info(
        "Sheet %s: %d fixed columns, %d value / %d ptd / %d volume date columns",
        sheet.title, len(mapping.data_columns), len(spec.value), len(spec.ptd), len(spec.volume),
    )
    return SheetSchema(period=period, columns=mapping.input_columns, derived_columns=tuple(name for name, _ in derived))
