# File: dosage/scripts/column_address.py
from openpyxl.utils import column_index_from_string

from dosage.scripts.errors import ConfigError


def column_index(letters: str) -> int:
    """Convert a spreadsheet column reference ("A", "AA", ...) to its 1-based index."""
    if not isinstance(letters, str):
        raise ConfigError(f"Column reference must be letters, got {letters!r}")
    cleaned = letters.strip().upper()
    if not cleaned.isalpha() or not cleaned.isascii():
        raise ConfigError(f"Invalid column reference: {letters!r}")
    try:
        return column_index_from_string(cleaned)
    except ValueError as exc:
        raise ConfigError(f"Invalid column reference: {letters!r}") from exc
