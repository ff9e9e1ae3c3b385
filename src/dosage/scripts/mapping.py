# File: dosage/scripts/mapping.py
"""Column mapping document -> typed, immutable schema description.

The document is YAML with three kinds of top-level entries:

    InputColumns:          # fixed columns of the period sheets, in sheet order
      Id: {Type: int, PrimaryKey: true}
      Market: {Type: nvarchar(100)}
    MTH:                   # one range spec per period sheet
      VALUEStart: W
      VALUEEnd: BS
      ...
      DateLength: 7
    DailyDosageColumns:    # fixed columns of the daily sheet
      Market:
      Dosage: {Type: decimal}
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple

import yaml

from dosage.scripts import settings
from dosage.scripts.column_address import column_index
from dosage.scripts.errors import ConfigError


class ColumnKind(enum.Enum):
    TEXT = "text"
    DECIMAL = "decimal"


# Accepted spellings of a declared value type
_KIND_ALIASES = {
    "text": ColumnKind.TEXT,
    "string": ColumnKind.TEXT,
    "system.string": ColumnKind.TEXT,
    "decimal": ColumnKind.DECIMAL,
    "system.decimal": ColumnKind.DECIMAL,
}


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    sql_type: str
    primary_key: bool = False


@dataclass(frozen=True)
class ColumnRange:
    start: int
    end: int

    def indices(self) -> range:
        return range(self.start, self.end + 1)

    def __len__(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class PeriodRange:
    period: str
    value: ColumnRange
    ptd: ColumnRange
    volume: ColumnRange
    date_length: int


@dataclass(frozen=True)
class DailyColumnSpec:
    name: str
    kind: ColumnKind = ColumnKind.TEXT


@dataclass(frozen=True)
class ColumnMapping:
    input_columns: Tuple[ColumnSpec, ...]
    periods: Mapping[str, PeriodRange]
    daily_columns: Tuple[DailyColumnSpec, ...]

    def period(self, code: str) -> PeriodRange:
        try:
            return self.periods[code]
        except KeyError:
            raise ConfigError(f"No column range configured for period '{code}'") from None

    @property
    def data_columns(self) -> Tuple[ColumnSpec, ...]:
        """Input columns that come from the sheet (identity columns excluded)."""
        return tuple(c for c in self.input_columns if not c.primary_key)


def _parse_range(code: str, spec: dict, prefix: str) -> ColumnRange:
    try:
        start, end = spec[f"{prefix}Start"], spec[f"{prefix}End"]
    except KeyError as exc:
        raise ConfigError(f"Period '{code}' is missing {exc.args[0]}") from None
    rng = ColumnRange(column_index(start), column_index(end))
    if rng.start > rng.end:
        raise ConfigError(f"Period '{code}' {prefix} range {start}:{end} is reversed")
    return rng


def _parse_period(code: str, spec: dict) -> PeriodRange:
    if not isinstance(spec, dict):
        raise ConfigError(f"Period '{code}' must be a mapping")
    # "DateLengh" is the spelling used by older mapping files
    length = spec.get("DateLength", spec.get("DateLengh"))
    try:
        length = int(length)
    except (TypeError, ValueError):
        raise ConfigError(f"Period '{code}' has an invalid DateLength: {length!r}") from None
    if length <= 0:
        raise ConfigError(f"Period '{code}' DateLength must be positive")
    return PeriodRange(
        period=code,
        value=_parse_range(code, spec, "VALUE"),
        ptd=_parse_range(code, spec, "PTD"),
        volume=_parse_range(code, spec, "VOLUME"),
        date_length=length,
    )


def _parse_input_columns(raw) -> Tuple[ColumnSpec, ...]:
    if not isinstance(raw, dict) or not raw:
        raise ConfigError("InputColumns must be a non-empty mapping")
    cols = []
    for name, spec in raw.items():
        spec = spec or {}
        sql_type = spec.get("Type") if isinstance(spec, dict) else None
        if not sql_type:
            raise ConfigError(f"Input column '{name}' has no Type")
        cols.append(ColumnSpec(str(name), str(sql_type), bool(spec.get("PrimaryKey", False))))
    return tuple(cols)


def _parse_kind(name: str, spec) -> ColumnKind:
    if not isinstance(spec, dict):
        return ColumnKind.TEXT
    declared = spec.get("Type", spec.get("CLRType"))
    if declared is None:
        return ColumnKind.TEXT
    kind = _KIND_ALIASES.get(str(declared).strip().lower())
    if kind is None:
        raise ConfigError(f"Daily column '{name}' has unknown type {declared!r}")
    return kind


def parse_column_mapping(doc: dict) -> ColumnMapping:
    if not isinstance(doc, dict):
        raise ConfigError("Column mapping document must be a mapping")

    input_columns = _parse_input_columns(doc.get("InputColumns"))
    periods = {code: _parse_period(code, doc[code]) for code in settings.PERIOD_SHEETS if code in doc}
    daily_raw = doc.get("DailyDosageColumns") or {}
    daily = tuple(DailyColumnSpec(str(name), _parse_kind(name, spec)) for name, spec in daily_raw.items())

    return ColumnMapping(input_columns=input_columns, periods=MappingProxyType(periods), daily_columns=daily)


def load_column_mapping(path: str | None = None) -> ColumnMapping:
    with open(path or settings.COLUMN_MAPPING, "r", encoding="utf-8") as f:
        doc = yaml.safe_load(f) or {}
    return parse_column_mapping(doc)
