# File: dosage/scripts/export_reports.py
from __future__ import annotations

import logging
import zipfile
from datetime import date, datetime
from pathlib import Path
from typing import List

import pandas as pd

from dosage.scripts.errors import StoreError
from dosage.scripts.store import Store

logger = logging.getLogger(__name__)

MARKETS_SQL = "SELECT DISTINCT Market1Name FROM MarketSettings ORDER BY Market1Name"
RESULT_SQL = (
    "SELECT * FROM DosageResult "
    "WHERE Market = ? AND DataType = ? AND CalculatedFrom = ?"
)

# Excel rejects sheet titles longer than this
MAX_SHEET_TITLE = 31


def _clean_directory(path: Path):
    path.mkdir(parents=True, exist_ok=True)
    for item in path.iterdir():
        if item.is_file():
            item.unlink()


def _safe_file_stem(name: str) -> str:
    return "".join(ch if ch.isalnum() or ch in " -_" else "_" for ch in name).strip() or "market"


def write_market_report(frame: pd.DataFrame, market: str, out_dir: Path, now: datetime) -> Path:
    path = out_dir / f"{_safe_file_stem(market)}_{now.strftime('%H%M')}.xlsx"
    frame.to_excel(path, sheet_name=market[:MAX_SHEET_TITLE], index=False, engine="openpyxl")
    return path


def export_reports(
    store: Store,
    data_type: str,
    market: str,
    calculated_from: date,
    out_dir: str | Path,
    today: datetime | None = None,
    logger: logging.Logger = logger,
) -> Path | None:
    """Write one workbook per selected market and zip them.

    ``market`` is a market name or ``"all"``. Returns the zip path, or None
    when the store or the file system fails (the cause is logged).
    """
    now = today or datetime.now()
    out_dir = Path(out_dir)
    try:
        _clean_directory(out_dir)
        markets = store.query(MARKETS_SQL)["Market1Name"].dropna().astype(str).tolist()
        files: List[Path] = []
        for name in markets:
            if market != "all" and market != name:
                continue
            frame = store.query(RESULT_SQL, (name, data_type, calculated_from.isoformat()))
            files.append(write_market_report(frame, name, out_dir, now))

        zip_path = out_dir / f"myResult_{now.strftime('%m%d')}.zip"
        with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for path in files:
                zf.write(path, arcname=path.name)
    except StoreError as exc:
        logger.error("error occurred while communicating with database, message: %s", exc)
        return None
    except OSError as exc:
        logger.error("excel file build fail, message: %s", exc)
        return None

    logger.info("Exported %d market reports to %s", len(files), zip_path)
    return zip_path
