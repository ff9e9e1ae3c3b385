# File: dosage/scripts/errors.py
"""Application errors raised by the ingestion pipeline.

Every error carries a message that is safe to show to the operator who
submitted the workbook; the underlying cause is logged and chained.
"""


class DosageImportError(Exception):
    """Base for all failures surfaced to callers of the import path."""


class ConfigError(DosageImportError):
    """The column mapping document is malformed or incomplete."""


class WorkbookFormatError(DosageImportError):
    """The submitted workbook cannot be read or does not match its layout."""


class CellCoercionError(DosageImportError):
    def __init__(self, sheet: str, row: int, column: int, value=None):
        self.sheet = sheet
        self.row = row
        self.column = column
        self.value = value
        super().__init__(
            f"there is invalid cell value, please have a check at [{row}, {column}] in sheet {sheet}"
        )


class StoreError(DosageImportError):
    """A relational store operation failed."""

    def __init__(self, message: str, communication: bool = False):
        self.communication = communication
        super().__init__(message)
