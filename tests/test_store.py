from decimal import Decimal

import pandas as pd
import pytest

from conftest import TODAY
from dosage.scripts.destination import create_destination_table, init_daily_table
from dosage.scripts.errors import StoreError
from dosage.scripts.store import SqliteStore


def _frame():
    return pd.DataFrame({
        "Market": ["Beijing", "Shanghai", "Guangzhou"],
        "Product": ["Alpha", "Beta", None],
        "VAL_12_2023": [Decimal("1.2500000000"), Decimal("0.0000000001"), None],
    }, dtype="object")


def test_round_trip_keeps_rows_and_decimals(sqlite_store, mapping):
    table = create_destination_table(sqlite_store, "MTH", mapping.input_columns, ["VAL_12_2023"], today=TODAY)
    assert sqlite_store.bulk_load(table, _frame()) == 3

    back = sqlite_store.query(f'SELECT * FROM "{table}" ORDER BY Id')
    assert len(back) == 3
    # identity column is filled by the store
    assert back["Id"].tolist() == [1, 2, 3]
    assert back["VAL_12_2023"].iloc[0] == pytest.approx(1.25, abs=1e-10)
    assert back["VAL_12_2023"].iloc[1] == pytest.approx(1e-10, abs=1e-12)
    assert pd.isna(back["VAL_12_2023"].iloc[2])


def test_truncate_empties_table(sqlite_store, mapping):
    init_daily_table(sqlite_store, mapping)
    sqlite_store.bulk_load("DailyDosage", pd.DataFrame({"Market": ["A"], "Product": ["B"], "Dosage": [Decimal("1")]}))
    sqlite_store.truncate("DailyDosage")
    assert sqlite_store.query('SELECT COUNT(*) AS n FROM "DailyDosage"')["n"].iloc[0] == 0


def test_truncate_missing_table_raises(sqlite_store):
    with pytest.raises(StoreError):
        sqlite_store.truncate("DailyDosage")


def test_clean_procedure_drops_only_biz_tables(sqlite_store, mapping):
    create_destination_table(sqlite_store, "MTH", mapping.input_columns, ["VAL_12_2023"], today=TODAY)
    create_destination_table(sqlite_store, "MAT", mapping.input_columns, ["VAL_12_2023"], today=TODAY)
    init_daily_table(sqlite_store, mapping)
    sqlite_store.execute('CREATE TABLE "BIZXREF" (x TEXT)')

    sqlite_store.call_procedure("usp_cleanBizTable")

    assert not sqlite_store.table_exists("BIZ_MTH1019")
    assert not sqlite_store.table_exists("BIZ_MAT1019")
    assert sqlite_store.table_exists("DailyDosage")
    assert sqlite_store.table_exists("BIZXREF")


def test_post_load_procedure_records_run(sqlite_store):
    sqlite_store.call_procedure("usp_initBizData")
    sqlite_store.call_procedure("usp_initBizData")
    assert len(sqlite_store.query("SELECT * FROM ImportRun")) == 2


def test_unknown_procedure(sqlite_store):
    with pytest.raises(StoreError, match="usp_missing"):
        sqlite_store.call_procedure("usp_missing")


def test_custom_procedure_gets_connection(tmp_path):
    seen = []
    with SqliteStore(str(tmp_path / "x.db"), procedures={"usp_custom": seen.append}) as store:
        store.call_procedure("usp_custom")
    assert len(seen) == 1


def test_bad_statement_is_structural_error(sqlite_store):
    with pytest.raises(StoreError) as info:
        sqlite_store.execute("create tabel nonsense")
    assert info.value.communication is False
