"""
Excel and CSV paragraph source for the Systematic Theology Index.

This module:
- Opens .xlsx/.xlsm files via openpyxl or .csv files via the csv module.
- Detects the header row and column mapping.
- Yields styled Paragraph records, one per data row.

Expected columns (header names are matched loosely):

    text        paragraph text (required)
    html        inner markup, may carry citation anchors (optional; escaped text otherwise)
    bold, italic, centered, large_font
                style flags (optional; truthy values: 1, true, yes, y, x)
"""

from __future__ import annotations

import csv
import html as html_lib
import zipfile
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .model import Paragraph, StyleFlags
from .util import info, warn


HEADER_CANDIDATES: Dict[str, List[str]] = {
    "text": ["text", "paragraph", "paragraphtext", "content", "body"],
    "html": ["html", "markup", "innerhtml"],
    "bold": ["bold", "isbold", "b"],
    "italic": ["italic", "isitalic", "i"],
    "centered": ["centered", "center", "iscentered", "aligncenter"],
    "large_font": ["largefont", "large", "islarge", "bigfont"],
}

REQUIRED_COLUMNS = ("text",)

# Raised for files that are not the workbook or CSV they claim to be.
READ_ERRORS = (zipfile.BadZipFile, InvalidFileException, csv.Error)

TRUTHY = {"1", "true", "yes", "y", "x", "t"}


def _normalize_header(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip().lower().replace(" ", "").replace("-", "").replace("_", "")


def _detect_column_mapping(headers: List[object]) -> Optional[Dict[str, int]]:
    """
    Find which column index corresponds to each logical column.

    Returns a mapping such as { 'text': 0, 'bold': 2, ... } holding every
    column found, or None if a required column is missing.
    """
    norm_headers = [_normalize_header(h) for h in headers]
    mapping: Dict[str, int] = {}

    for logical_name, candidates in HEADER_CANDIDATES.items():
        for i, norm in enumerate(norm_headers):
            if norm in candidates:
                mapping[logical_name] = i
                break

    missing = [name for name in REQUIRED_COLUMNS if name not in mapping]
    if missing:
        warn(f"Could not detect column(s) {missing}. Headers were: {headers}")
        return None
    return mapping


def _truthy(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in TRUTHY


def _cell(row: List[object], mapping: Dict[str, int], name: str) -> object:
    idx = mapping.get(name)
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def _row_to_paragraph(row: List[object], mapping: Dict[str, int]) -> Optional[Paragraph]:
    text_raw = _cell(row, mapping, "text")
    text = "" if text_raw is None else " ".join(str(text_raw).split())
    if not text:
        return None

    html_raw = _cell(row, mapping, "html")
    markup = str(html_raw).strip() if html_raw not in (None, "") else html_lib.escape(text)

    style = StyleFlags(
        bold=_truthy(_cell(row, mapping, "bold")),
        italic=_truthy(_cell(row, mapping, "italic")),
        centered=_truthy(_cell(row, mapping, "centered")),
        large_font=_truthy(_cell(row, mapping, "large_font")),
    )
    return Paragraph(text=text, html=markup, style=style)


def iter_paragraphs_from_excel(
    excel_path: Path,
    sheet_name: Optional[str] = None,
    max_rows: Optional[int] = None,
) -> Iterator[Paragraph]:
    """
    Yield Paragraph objects from Excel (.xlsx/.xlsm) or CSV (.csv) files.

    Parameters
    ----------
    excel_path:
        Path to the Excel or CSV file.
    sheet_name:
        Optional worksheet name (Excel only). If None, the active sheet is used.
    max_rows:
        Optional limit on number of data rows read (for testing).

    Rows with empty text are skipped.
    """
    excel_path = Path(excel_path).resolve()
    if not excel_path.exists():
        raise FileNotFoundError(f"File not found: {excel_path}")

    suffix = excel_path.suffix.lower()
    if suffix == ".csv":
        rows = _iter_csv_rows(excel_path)
    elif suffix in (".xlsx", ".xlsm"):
        rows = _iter_xlsx_rows(excel_path, sheet_name)
    else:
        warn(f"Unsupported file format: {suffix}. Expected .csv, .xlsx, or .xlsm")
        return

    try:
        headers = next(rows)
    except StopIteration:
        warn(f"{excel_path.name} is empty.")
        return

    info(f"Detected header row: {headers}")
    mapping = _detect_column_mapping(headers)
    if mapping is None:
        warn(f"Failed to detect required columns; skipping {excel_path.name}.")
        return

    count = 0
    for row in rows:
        if max_rows is not None and count >= max_rows:
            info(f"Stopping after max_rows={max_rows} rows.")
            break
        count += 1
        paragraph = _row_to_paragraph(row, mapping)
        if paragraph is not None:
            yield paragraph


def _iter_csv_rows(csv_path: Path) -> Iterator[List[object]]:
    info(f"Opening CSV file: {csv_path}")
    with open(csv_path, "r", encoding="utf-8", newline="") as f:
        for row in csv.reader(f):
            yield list(row)


def _iter_xlsx_rows(excel_path: Path, sheet_name: Optional[str]) -> Iterator[List[object]]:
    info(f"Opening Excel file: {excel_path}")
    wb = load_workbook(filename=str(excel_path), read_only=True, data_only=True)
    try:
        if sheet_name is None:
            ws = wb.active
            info(f"Using active sheet: {ws.title!r}")
        else:
            if sheet_name not in wb.sheetnames:
                raise ValueError(
                    f"Sheet {sheet_name!r} not found. Available: {wb.sheetnames}"
                )
            ws = wb[sheet_name]
            info(f"Using sheet: {ws.title!r}")

        for row in ws.iter_rows(values_only=True):
            yield list(row)
    finally:
        wb.close()


def read_excel_paragraphs(path: Path, sheet_name: Optional[str] = None) -> List[Paragraph]:
    paragraphs = list(iter_paragraphs_from_excel(path, sheet_name=sheet_name))
    info(f"Read {len(paragraphs)} paragraph(s) from {Path(path).name}")
    return paragraphs
