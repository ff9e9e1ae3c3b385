# File: dosage/scripts/destination.py
import logging
from datetime import date
from typing import Iterable, List, Sequence

from dosage.scripts import settings
from dosage.scripts.errors import StoreError
from dosage.scripts.mapping import ColumnKind, ColumnMapping, ColumnSpec
from dosage.scripts.store import Store

logger = logging.getLogger(__name__)


class CreateTableStatement:
    """Builds a ``create table`` statement with a dynamic column list."""

    def __init__(self, table: str, dialect: str = "mssql"):
        if dialect not in ("mssql", "sqlite"):
            raise ValueError(f"Unsupported dialect: {dialect}")
        self.table = table
        self.dialect = dialect
        self.if_not_exists = False
        self._columns: List[str] = []

    def quote(self, name: str) -> str:
        if self.dialect == "mssql":
            return "[" + name.replace("]", "]]") + "]"
        return '"' + name.replace('"', '""') + '"'

    def column(self, name: str, sql_type: str, identity: bool = False) -> "CreateTableStatement":
        if identity and self.dialect == "sqlite":
            # sqlite only auto-increments a column declared exactly this way
            clause = f"{self.quote(name)} INTEGER PRIMARY KEY AUTOINCREMENT"
        elif identity:
            clause = f"{self.quote(name)} {sql_type} identity(1,1)"
        else:
            clause = f"{self.quote(name)} {sql_type}"
        self._columns.append(clause)
        return self

    def render(self) -> str:
        if not self._columns:
            raise ValueError(f"Table {self.table} has no columns")
        body = ",\n    ".join(self._columns)
        sql = f"create table {self.quote(self.table)} (\n    {body}\n)"
        if not self.if_not_exists:
            return sql
        if self.dialect == "sqlite":
            return sql.replace("create table ", "create table if not exists ", 1)
        return f"if object_id(N'{self.table}', N'U') is null\n{sql}"


def destination_table_name(period: str, today: date | None = None) -> str:
    today = today or date.today()
    return f"{settings.TABLE_PREFIX}{period}{today.strftime('%m%d')}"


def build_create_statement(
    table: str,
    columns: Iterable[ColumnSpec],
    derived_columns: Sequence[str],
    dialect: str = "mssql",
) -> CreateTableStatement:
    stmt = CreateTableStatement(table, dialect)
    for col in columns:
        stmt.column(col.name, col.sql_type, identity=col.primary_key)
    for name in derived_columns:
        stmt.column(name, settings.DECIMAL_SQL_TYPE)
    return stmt


def create_destination_table(
    store: Store,
    period: str,
    columns: Iterable[ColumnSpec],
    derived_columns: Sequence[str],
    today: date | None = None,
    logger: logging.Logger = logger,
) -> str:
    """Create ``BIZ_<period><MMDD>`` and return its name.

    A name already taken today is not retried under another name; the store
    error propagates.
    """
    table = destination_table_name(period, today)
    sql = build_create_statement(table, columns, derived_columns, store.dialect).render()
    try:
        store.execute(sql)
    except StoreError as exc:
        logger.error("Failed to create table %s: %s", table, exc)
        raise
    logger.info("Created table %s with %d date columns", table, len(derived_columns))
    return table


def init_daily_table(store: Store, mapping: ColumnMapping, logger: logging.Logger = logger) -> str:
    stmt = CreateTableStatement(settings.DAILY_DOSAGE_TABLE, store.dialect)
    stmt.if_not_exists = True
    for col in mapping.daily_columns:
        sql_type = settings.DECIMAL_SQL_TYPE if col.kind is ColumnKind.DECIMAL else settings.TEXT_SQL_TYPE
        stmt.column(col.name, sql_type)
    store.execute(stmt.render())
    logger.info("Ensured table %s exists", settings.DAILY_DOSAGE_TABLE)
    return settings.DAILY_DOSAGE_TABLE
