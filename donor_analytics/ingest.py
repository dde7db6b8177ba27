"""Ingestion boundary: decoded rows or uploaded files in, donor records out."""

from __future__ import annotations

import logging
import zipfile
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Iterable, Mapping, Union

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from .aggregate import aggregate_donations
from .models import IngestResult
from .normalize import is_missing, normalize_rows

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {
    "csv": "csv",
    "xlsx": "excel",
}

UploadSource = Union[str, Path, IO[bytes], IO[str]]


class UnsupportedFormatError(ValueError):
    """Raised when an upload is not one of the supported tabular formats."""


def detect_format(filename: str) -> str:
    extension = Path(filename).suffix.lower().lstrip(".")
    file_format = SUPPORTED_EXTENSIONS.get(extension)
    if file_format is None:
        raise UnsupportedFormatError("Unsupported file format")
    return file_format


def _frame_rows(frame: pd.DataFrame) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for record in frame.to_dict(orient="records"):
        rows.append(
            {str(key): value for key, value in record.items() if not is_missing(value)}
        )
    return rows


def read_rows(source: UploadSource, filename: str) -> list[dict[str, Any]]:
    """Decode a CSV or Excel upload into header-keyed rows.

    CSV cells are kept as text so amount strings like "$1,200" reach the
    normalizer untouched; Excel cells keep their native types.
    """

    file_format = detect_format(filename)
    if file_format == "csv":
        frame = pd.read_csv(source, dtype=str, keep_default_na=False)
    else:
        frame = pd.read_excel(source, sheet_name=0, engine="openpyxl")
    return _frame_rows(frame)


def ingest_rows(
    rows: Iterable[Mapping[Any, Any]],
    today: datetime | None = None,
) -> IngestResult:
    """Build donors from decoded rows. Invalid rows are dropped without a trace."""

    row_list = list(rows)
    candidates = normalize_rows(row_list, today=today)
    donors = aggregate_donations(candidates)

    logger.info(
        "Accepted %d of %d rows into %d donors",
        len(candidates),
        len(row_list),
        len(donors),
    )
    return IngestResult(
        success=True,
        records_processed=len(row_list),
        donors=donors,
        accepted_count=len(candidates),
    )


def ingest_file(
    source: UploadSource,
    filename: str,
    today: datetime | None = None,
) -> IngestResult:
    try:
        rows = read_rows(source, filename)
    except (ValueError, KeyError, zipfile.BadZipFile, InvalidFileException) as exc:
        logger.warning("Could not read upload %s: %s", filename, exc)
        return IngestResult(success=False, records_processed=0, error=str(exc))
    return ingest_rows(rows, today=today)
