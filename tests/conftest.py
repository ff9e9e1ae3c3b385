# Ensure src/ is importable (so `import dosage.scripts...` works under pytest).
import sys, pathlib
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

import io
from datetime import date

import pytest
import yaml
from openpyxl import Workbook

from dosage.scripts.mapping import parse_column_mapping
from dosage.scripts.store import SqliteStore

TODAY = date(2026, 10, 19)

# Two fixed columns (A, B) after the identity column, then two value, two
# period-to-date and two volume columns for MTH; one of each for MAT.
MAPPING_DOC = {
    "InputColumns": {
        "Id": {"Type": "int", "PrimaryKey": True},
        "Market": {"Type": "nvarchar(50)"},
        "Product": {"Type": "nvarchar(50)"},
    },
    "MTH": {
        "VALUEStart": "C", "VALUEEnd": "D",
        "PTDStart": "E", "PTDEnd": "F",
        "VOLUMEStart": "G", "VOLUMEEnd": "H",
        "DateLength": 7,
    },
    "MAT": {
        "VALUEStart": "C", "VALUEEnd": "C",
        "PTDStart": "D", "PTDEnd": "D",
        "VOLUMEStart": "E", "VOLUMEEnd": "E",
        "DateLength": 7,
    },
    "DailyDosageColumns": {
        "Market": None,
        "Product": None,
        "Dosage": {"Type": "decimal"},
    },
}

MTH_HEADER = ["Market", "Product",
              "Value 11/2023", "Value 12/2023",
              "PTD 11/2023", "PTD 12/2023",
              "Volume 11/2023", "Volume 12/2023"]
MAT_HEADER = ["Market", "Product", "MAT 12/2023", "MAT 12/2023", "MAT 12/2023"]
DAILY_HEADER = ["Market", "Product", "Dosage"]


class RecordingStore:
    """Store double that records every call in order."""
    dialect = "sqlite"

    def __init__(self):
        self.calls = []
        self.loaded = {}

    def execute(self, sql):
        self.calls.append(("execute", sql))

    def bulk_load(self, table, frame):
        self.calls.append(("bulk_load", table))
        self.loaded[table] = frame
        return len(frame)

    def truncate(self, table):
        self.calls.append(("truncate", table))

    def call_procedure(self, name):
        self.calls.append(("call_procedure", name))

    def query(self, sql, params=()):
        raise NotImplementedError


def make_sheet(title, rows):
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for row in rows:
        ws.append(row)
    return ws


def workbook_bytes(sheets):
    """sheets: {title: [row, ...]} in workbook order."""
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf


@pytest.fixture
def mapping():
    return parse_column_mapping(MAPPING_DOC)


@pytest.fixture
def mapping_path(tmp_path):
    path = tmp_path / "column_mapping.yml"
    path.write_text(yaml.safe_dump(MAPPING_DOC, sort_keys=False), encoding="utf-8")
    return str(path)


@pytest.fixture
def recording_store():
    return RecordingStore()


@pytest.fixture
def sqlite_store(tmp_path):
    with SqliteStore(str(tmp_path / "dosage.db")) as store:
        yield store
