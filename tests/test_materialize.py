from decimal import Decimal

import pytest

from conftest import MTH_HEADER, make_sheet
from dosage.scripts.errors import CellCoercionError, WorkbookFormatError
from dosage.scripts.materialize import build_table, fill_table
from dosage.scripts.schema import resolve_schema


def _materialize(mapping, rows):
    sheet = make_sheet("MTH", [MTH_HEADER] + rows)
    fields = resolve_schema("MTH", sheet, mapping).fields()
    return fill_table(build_table(fields), fields, sheet)


def test_build_table_is_empty_with_field_columns(mapping):
    fields = resolve_schema("MTH", make_sheet("MTH", [MTH_HEADER]), mapping).fields()
    table = build_table(fields)
    assert table.empty
    assert list(table.columns) == [f.name for f in fields]


def test_rows_are_filled_in_sheet_order(mapping):
    table = _materialize(mapping, [
        ["Beijing", "Alpha", 1.5, 2, 3, "4.25", 10, 20],
        ["Shanghai", 1001.0, 0, None, 1, 2, 3, 4],
    ])

    assert len(table) == 2
    assert table["Market"].tolist() == ["Beijing", "Shanghai"]
    # integral floats read as text keep no trailing ".0"
    assert table.loc[1, "Product"] == "1001"
    assert table.loc[0, "VAL_11_2023"] == Decimal("1.5000000000")
    assert table.loc[0, "PTD_12_2023"] == Decimal("4.25")
    assert table.loc[1, "VAL_12_2023"] is None
    assert isinstance(table.loc[0, "VOL_12_2023"], Decimal)


def test_header_only_sheet_yields_empty_table(mapping):
    assert _materialize(mapping, []).empty


def test_non_numeric_decimal_cell_reports_location(mapping):
    rows = [
        ["Beijing", "Alpha", 1, 2, 3, 4, 5, 6],
        ["Beijing", "Beta", 1, "n/a", 3, 4, 5, 6],
    ]
    with pytest.raises(CellCoercionError) as info:
        _materialize(mapping, rows)

    err = info.value
    assert (err.sheet, err.row, err.column, err.value) == ("MTH", 3, 4, "n/a")
    assert "[3, 4]" in str(err) and "MTH" in str(err)


def test_sheet_wider_than_layout_is_rejected(mapping):
    with pytest.raises(WorkbookFormatError):
        _materialize(mapping, [["Beijing", "Alpha", 1, 2, 3, 4, 5, 6, "extra"]])
