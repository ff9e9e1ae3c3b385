# File: dosage/scripts/settings.py
import os
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parents[1]

DB_PATH = os.getenv("DOSAGE_DB_PATH", "db/dosage.db")
COLUMN_MAPPING = os.getenv("DOSAGE_COLUMN_MAPPING", str(PACKAGE_DIR / "config" / "column_mapping.yml"))
TEMP_DIR = os.getenv("DOSAGE_TEMP_DIR", "temp_excel")

# Sheet names (compared upper-cased)
PERIOD_SHEETS = ("MTH", "MAT")
DAILY_DOSAGE_SHEET = "DAILYDOSAGE"

DAILY_DOSAGE_TABLE = "DailyDosage"
TABLE_PREFIX = "BIZ_"

CLEAN_TEMP_PROCEDURE = "usp_cleanBizTable"
POST_LOAD_PROCEDURE = "usp_initBizData"

# decimal(38,10) is the storage contract for every decimal column
DECIMAL_SQL_TYPE = "decimal(38,10)"
DECIMAL_PRECISION = 38
DECIMAL_SCALE = 10
TEXT_SQL_TYPE = "nvarchar(255)"
