# File: dosage/scripts/cells.py
from datetime import date, datetime
from decimal import Context, Decimal, InvalidOperation
from typing import Any

from dosage.scripts.settings import DECIMAL_PRECISION, DECIMAL_SCALE

_DECIMAL_CONTEXT = Context(prec=DECIMAL_PRECISION)
_QUANTUM = Decimal(1).scaleb(-DECIMAL_SCALE)


def header_text(value: Any) -> str:
    # Date headers read back from Excel as datetimes; render them as the
    # month/day/year text shown in the sheet.
    if isinstance(value, (datetime, date)):
        return value.strftime("%m/%d/%Y")
    return (cell_text(value) or "").strip()


def cell_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_decimal(value: Any) -> Decimal | None:
    """Parse a cell as decimal(38,10); raises ValueError when it is not numeric."""
    text = cell_text(value)
    if text is None or not text.strip():
        return None
    try:
        number = Decimal(text.strip().replace(",", ""))
        if not number.is_finite():
            raise ValueError(f"not a number: {value!r}")
        return number.quantize(_QUANTUM, context=_DECIMAL_CONTEXT)
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {value!r}") from exc
