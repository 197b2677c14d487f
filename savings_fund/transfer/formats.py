"""
CSV and XLSX readers and writers for fund tables.

Readers return every data row as a dict of strings keyed by the header
row. Empty cells read as "" and fully blank rows are dropped.
"""

import csv
import zipfile
from enum import Enum
from pathlib import Path
from typing import Union

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils.exceptions import InvalidFileException


PathLike = Union[str, Path]


class TableFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


class TransferError(Exception):
    """A table file could not be written or read."""
    pass


def detect_format(path: PathLike) -> TableFormat:
    suffix = Path(path).suffix.lower().lstrip(".")
    try:
        return TableFormat(suffix)
    except ValueError:
        raise TransferError(f"Unsupported table file: {path}. Use .csv or .xlsx")


def _cell_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _rows_from(headers: list[str], raw_rows) -> list[dict[str, str]]:
    rows = []
    for raw in raw_rows:
        values = [_cell_text(v) for v in raw]
        if not any(values):
            continue
        values += [""] * (len(headers) - len(values))
        rows.append(dict(zip(headers, values)))
    return rows


# =============================================================================
# CSV
# =============================================================================

def write_csv(path: PathLike, headers: list[str], rows: list[dict[str, str]]) -> int:
    """Write a table as UTF-8 CSV. Returns the number of data rows."""
    try:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=headers, extrasaction="ignore")
            writer.writeheader()
            writer.writerows(rows)
    except OSError as e:
        raise TransferError(f"Failed to write {path}: {e}")
    return len(rows)


def read_csv(path: PathLike) -> list[dict[str, str]]:
    try:
        # utf-8-sig drops the BOM spreadsheet programs put in front of CSVs
        with open(path, newline="", encoding="utf-8-sig") as f:
            reader = csv.reader(f)
            header_row = next(reader, None)
            if header_row is None:
                return []
            headers = [_cell_text(h) for h in header_row]
            return _rows_from(headers, reader)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise TransferError(f"Failed to read {path}: {e}")


# =============================================================================
# XLSX
# =============================================================================

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(start_color="CCCCCC", end_color="CCCCCC", fill_type="solid")


def write_xlsx(
    path: PathLike,
    headers: list[str],
    rows: list[dict[str, str]],
    sheet_title: str = "Sheet1",
) -> int:
    """Write a table to the first sheet of a new workbook. Returns the number of data rows."""
    wb = Workbook()
    sheet = wb.active
    sheet.title = sheet_title

    for col, header in enumerate(headers, 1):
        cell = sheet.cell(row=1, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL

    for row_index, row in enumerate(rows, 2):
        for col, header in enumerate(headers, 1):
            sheet.cell(row=row_index, column=col, value=row.get(header, ""))

    try:
        wb.save(path)
    except OSError as e:
        raise TransferError(f"Failed to write {path}: {e}")
    return len(rows)


def read_xlsx(path: PathLike) -> list[dict[str, str]]:
    """Read the first sheet of a workbook."""
    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except (OSError, ValueError, KeyError, zipfile.BadZipFile, InvalidFileException) as e:
        raise TransferError(f"Failed to read {path}: {e}")

    try:
        raw = wb.worksheets[0].iter_rows(values_only=True)
        header_row = next(raw, None)
        if header_row is None:
            return []
        headers = [_cell_text(h) for h in header_row]
        return _rows_from(headers, raw)
    finally:
        wb.close()


def write_table(path: PathLike, headers: list[str], rows: list[dict[str, str]], sheet_title: str = "Sheet1") -> int:
    if detect_format(path) == TableFormat.XLSX:
        return write_xlsx(path, headers, rows, sheet_title)
    return write_csv(path, headers, rows)


def read_table(path: PathLike) -> list[dict[str, str]]:
    if detect_format(path) == TableFormat.XLSX:
        return read_xlsx(path)
    return read_csv(path)
