#!/usr/bin/env python3
"""
Dosage Management: HTTP entry point for workbook ingestion and report export.

- POST /import  -> multipart upload of a submitted .xlsx, loaded into the store
- GET  /export  -> zip of per-market result workbooks
"""

import datetime as dt
import logging
import os

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from dosage.scripts import settings
from dosage.scripts.errors import DosageImportError
from dosage.scripts.export_reports import export_reports
from dosage.scripts.importer import import_workbook
from dosage.scripts.mapping import load_column_mapping
from dosage.scripts.store import SqliteStore

# ----------------------------------------------------------------------------- #
# Config
# ----------------------------------------------------------------------------- #

DB_PATH = settings.DB_PATH
COLUMN_MAPPING = settings.COLUMN_MAPPING
TEMP_DIR = settings.TEMP_DIR

ALLOWED_ORIGINS = [
    "http://127.0.0.1:8000", "http://localhost:8000",
]

logger = logging.getLogger("api")

# ----------------------------------------------------------------------------- #
# App
# ----------------------------------------------------------------------------- #

app = FastAPI(title="Dosage Management API", version="0.4.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ----------------------------------------------------------------------------- #
# Routes
# ----------------------------------------------------------------------------- #

@app.get("/health")
def health():
    return {
        "ok": True,
        "db": DB_PATH,
        "has_mapping": os.path.exists(COLUMN_MAPPING),
    }

@app.post("/import")
def import_excel(file: UploadFile = File(...)):
    """Load every recognized sheet of the uploaded workbook."""
    try:
        mapping = load_column_mapping(COLUMN_MAPPING)
        with SqliteStore(DB_PATH) as store:
            summary = import_workbook(file.file, mapping=mapping, store=store)
    except DosageImportError as exc:
        raise HTTPException(400, str(exc))
    return {"ok": True, "filename": file.filename, **summary.to_dict()}

@app.get("/export")
def export_excel(
    data_type: str = Query(..., min_length=1),
    calculated_from: dt.date = Query(...),
    market: str = Query("all"),
):
    with SqliteStore(DB_PATH) as store:
        zip_path = export_reports(store, data_type, market, calculated_from, TEMP_DIR)
    if zip_path is None:
        raise HTTPException(500, "export failed, please contact support!")
    return FileResponse(zip_path, media_type="application/zip", filename=zip_path.name)

# ----------------------------------------------------------------------------- #
# Entrypoint
# ----------------------------------------------------------------------------- #

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.app:app", host="127.0.0.1", port=8001, reload=True)
