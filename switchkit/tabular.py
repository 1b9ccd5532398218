"""Reading and writing CSV tables and converting Excel workbooks to CSV."""
from __future__ import annotations

import csv
import io
import logging
import math
from pathlib import Path
from typing import Dict, List

from openpyxl import load_workbook

from .errors import ValidationError
from .models import Cell, Table

LOGGER = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xlsm")


def coerce_cell(raw: str) -> Cell:
    """Convert ``raw`` to a bool, int or float when it writes back unchanged."""

    if raw == "true":
        return True
    if raw == "false":
        return False
    try:
        number = int(raw)
    except ValueError:
        pass
    else:
        return number if str(number) == raw else raw
    try:
        real = float(raw)
    except ValueError:
        return raw
    if math.isfinite(real) and str(real) == raw:
        return real
    return raw


def format_cell(value: Cell | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _check_csv_path(path: Path) -> None:
    if path.suffix.lower() != ".csv":
        raise ValidationError(f"{path} is not a CSV file")
    if not path.is_file():
        raise ValidationError(f"CSV file {path} does not exist")


def load_csv(
    path: Path | str,
    *,
    has_header: bool = True,
    delimiter: str = ",",
    auto_type: bool = True,
) -> Table:
    path = Path(path)
    _check_csv_path(path)

    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.reader(handle, delimiter=delimiter)
        headers: List[str] = []
        if has_header:
            headers = list(next(reader, []))
        if auto_type:
            rows = [[coerce_cell(cell) for cell in row] for row in reader]
        else:
            rows = [list(row) for row in reader]

    LOGGER.debug("Loaded %d rows and %d columns from %s", len(rows), len(headers), path)
    return Table(
        headers=headers,
        rows=rows,
        rows_start_index=2 if has_header else 1,
        source=path,
    )


def save_csv(table: Table, path: Path | str | None = None, *, delimiter: str = ",") -> Path:
    """Write ``table`` to ``path``, or back over its source when ``path`` is None."""

    target = Path(path) if path is not None else table.source
    if target is None:
        raise ValidationError("Table has no source file; an output path is required")

    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle, delimiter=delimiter)
        if table.headers:
            writer.writerow(table.headers)
        for row in table.rows:
            writer.writerow([format_cell(cell) for cell in row])
    return target


def excel_to_csv(
    path: Path | str,
    *,
    include_hidden: bool = False,
    min_rows: int = 1,
) -> Dict[str, str]:
    """Convert each worksheet of a workbook into a CSV string keyed by sheet title.

    Hidden sheets are skipped unless ``include_hidden`` is set, and sheets with
    fewer than ``min_rows`` non-empty rows are dropped.
    """

    path = Path(path)
    if path.suffix.lower() not in EXCEL_SUFFIXES:
        raise ValidationError(f"{path} is not an Excel workbook ({', '.join(EXCEL_SUFFIXES)})")
    if not path.is_file():
        raise ValidationError(f"Workbook {path} does not exist")

    workbook = load_workbook(path, data_only=True)
    sheets: Dict[str, str] = {}
    try:
        for worksheet in workbook.worksheets:
            if not include_hidden and worksheet.sheet_state != "visible":
                LOGGER.debug("%s: skipping hidden sheet %r", path.name, worksheet.title)
                continue

            rows = [list(row) for row in worksheet.iter_rows(values_only=True)]
            filled = sum(1 for row in rows if any(cell not in (None, "") for cell in row))
            if filled < min_rows:
                LOGGER.debug("%s: sheet %r has %d rows, below %d", path.name, worksheet.title, filled, min_rows)
                continue

            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            for row in rows:
                writer.writerow([format_cell(cell) for cell in row])
            sheets[worksheet.title] = buffer.getvalue()
    finally:
        workbook.close()
    return sheets
