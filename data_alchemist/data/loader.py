"""
Spreadsheet parsing and the three-file import batch.
"""
from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from data_alchemist.config import ALLOWED_EXTENSIONS, MISSING_FILES_MESSAGE
from data_alchemist.data.coerce import CoercionReport, coerce_rows
from data_alchemist.data.normalize import normalize_headers
from data_alchemist.data.schemas import EntityKind, Record

logger = logging.getLogger(__name__)


class ImportFileError(Exception):
    """Base class for errors raised while reading an uploaded file."""


class UnsupportedFileError(ImportFileError):
    """The file extension is neither .csv nor .xlsx."""


class FileParseError(ImportFileError):
    """The file could not be parsed as CSV/XLSX."""


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content: bytes

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower()

    @classmethod
    def from_path(cls, path: str | Path) -> "UploadedFile":
        path = Path(path)
        return cls(filename=path.name, content=path.read_bytes())


@dataclass
class ImportResult:
    """Outcome of one import batch."""
    success: bool
    data: Optional[dict[EntityKind, list[Record]]] = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    reports: dict[EntityKind, CoercionReport] = field(default_factory=dict)

    def counts(self) -> dict[str, int]:
        if not self.data:
            return {kind.value: 0 for kind in EntityKind}
        return {kind.value: len(records) for kind, records in self.data.items()}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def check_supported(upload: UploadedFile) -> None:
    if upload.extension not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileError(
            f"Unsupported file type for '{upload.filename}' (expected .csv or .xlsx)"
        )


def _frame_to_rows(frame: pd.DataFrame) -> list[dict[str, Any]]:
    """DataFrame → list of row dicts; empty cells are left out of the row."""
    rows = []
    for record in frame.to_dict("records"):
        rows.append({str(k): v for k, v in record.items() if not (isinstance(v, float) and pd.isna(v))})
    return rows


def parse_csv(content: bytes) -> list[dict[str, Any]]:
    try:
        frame = pd.read_csv(
            io.BytesIO(content),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as exc:
        raise FileParseError("CSV parsing errors: file is empty") from exc
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as exc:
        raise FileParseError(f"CSV parsing errors: {exc}") from exc
    return _frame_to_rows(frame)


def parse_xlsx(content: bytes) -> list[dict[str, Any]]:
    """Read the first sheet only."""
    try:
        frame = pd.read_excel(io.BytesIO(content), sheet_name=0, dtype=str, engine="openpyxl")
    except Exception as exc:
        raise FileParseError(f"Failed to read Excel file: {exc}") from exc
    frame = frame.dropna(how="all")
    return _frame_to_rows(frame)


def parse_file(upload: UploadedFile) -> list[dict[str, Any]]:
    """Parse one uploaded file into loosely-typed rows keyed by raw header."""
    check_supported(upload)
    if upload.extension == ".csv":
        rows = parse_csv(upload.content)
    else:
        rows = parse_xlsx(upload.content)
    logger.info("Parsed %s: %d rows", upload.filename, len(rows))
    return rows


# ---------------------------------------------------------------------------
# Import batch
# ---------------------------------------------------------------------------

def build_collection(
    rows: list[dict[str, Any]],
    kind: EntityKind,
) -> tuple[list[Record], CoercionReport]:
    """Normalize headers, then coerce."""
    return coerce_rows(normalize_headers(rows, kind), kind)


async def import_files(
    clients: Optional[UploadedFile],
    workers: Optional[UploadedFile],
    tasks: Optional[UploadedFile],
) -> ImportResult:
    """Parse, normalize and coerce all three files as one batch.

    All three files are required. They are parsed concurrently and the first
    failure aborts the whole batch.
    """
    uploads = {EntityKind.CLIENTS: clients, EntityKind.WORKERS: workers, EntityKind.TASKS: tasks}
    if any(upload is None for upload in uploads.values()):
        return ImportResult(success=False, errors=[MISSING_FILES_MESSAGE])

    try:
        for upload in uploads.values():
            check_supported(upload)
        parsed = await asyncio.gather(
            *(asyncio.to_thread(parse_file, upload) for upload in uploads.values())
        )
    except ImportFileError as exc:
        logger.warning("Import failed: %s", exc)
        return ImportResult(success=False, errors=[str(exc)])

    data: dict[EntityKind, list[Record]] = {}
    reports: dict[EntityKind, CoercionReport] = {}
    warnings: list[str] = []
    for kind, rows in zip(uploads, parsed):
        records, report = build_collection(rows, kind)
        data[kind] = records
        reports[kind] = report
        warnings.extend(report.messages)

    logger.info(
        "Imported %d clients, %d workers, %d tasks (%d coercion notes)",
        len(data[EntityKind.CLIENTS]), len(data[EntityKind.WORKERS]), len(data[EntityKind.TASKS]),
        len(warnings),
    )
    return ImportResult(success=True, data=data, warnings=warnings, reports=reports)
