"""
app/services/tabular_reader.py

Decodes uploaded CSV / XLSX bytes into an ordered header list plus one
mapping per data row.

CSV cells arrive as strings with empty cells mapped to None. XLSX cells keep
their stored type (numbers stay numbers, so date serials reach the date
normalizer untouched) and only the first worksheet is read.
"""

from __future__ import annotations

import csv
import io
import logging
import zipfile
from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence
from xml.etree.ElementTree import ParseError

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.domain.dataset_ingestion import TabularData
from app.domain.errors import FileParseError

logger = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS: frozenset[str] = frozenset({".xlsx", ".xlsm"})


def file_extension(filename: str) -> str:
    dot = filename.rfind(".")
    if dot < 0:
        return ""
    return filename[dot:].strip().lower()


def is_spreadsheet(filename: str) -> bool:
    return file_extension(filename) in SPREADSHEET_EXTENSIONS


def read_table(content: bytes, filename: str) -> TabularData:
    """
    Decode the full body of an uploaded file.

    Raises FileParseError when the file is empty, has no header row or
    cannot be decoded.
    """

    if not content:
        raise FileParseError(f"File is empty: {filename}")

    if is_spreadsheet(filename):
        headers, rows = _read_xlsx(content, filename, header_only=False)
    else:
        headers, rows = _read_csv(content, filename, header_only=False)

    logger.debug(
        "Decoded tabular file filename=%s headers=%d rows=%d",
        filename,
        len(headers),
        len(rows),
    )
    return TabularData(headers=headers, rows=rows)


def read_headers(content: bytes, filename: str) -> tuple[str, ...]:
    """
    Decode only the header row of an uploaded file.
    """

    if not content:
        raise FileParseError(f"File is empty: {filename}")

    if is_spreadsheet(filename):
        headers, _ = _read_xlsx(content, filename, header_only=True)
    else:
        headers, _ = _read_csv(content, filename, header_only=True)
    return headers


def is_blank_row(row: Mapping[str, Any]) -> bool:
    return all(_is_blank(value) for value in row.values())


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def _read_csv(
    content: bytes,
    filename: str,
    *,
    header_only: bool,
) -> tuple[tuple[str, ...], tuple[dict[str, Any], ...]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FileParseError(f"CSV must be UTF-8 encoded: {filename}") from exc

    try:
        reader = csv.reader(io.StringIO(text, newline=""))
        header_cells = next(reader, None)
        if header_cells is None:
            raise FileParseError(f"CSV header row is missing: {filename}")
        headers = _clean_headers(header_cells)
        if not headers:
            raise FileParseError(f"CSV header row is missing: {filename}")
        if header_only:
            return headers, ()
        rows = tuple(_zip_rows(headers, reader, clean=_csv_cell))
    except csv.Error as exc:
        raise FileParseError(f"Invalid CSV format in {filename}: {exc}") from exc

    return headers, rows


def _csv_cell(value: Any) -> Any:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ---------------------------------------------------------------------------
# XLSX
# ---------------------------------------------------------------------------


# Worksheet XML is parsed lazily in read-only mode, so corrupt sheet content
# surfaces while iterating rows rather than at load_workbook.
_XLSX_READ_ERRORS: tuple[type[Exception], ...] = (
    InvalidFileException,
    zipfile.BadZipFile,
    ParseError,
    KeyError,
    ValueError,
    TypeError,
    OSError,
)


def _read_xlsx(
    content: bytes,
    filename: str,
    *,
    header_only: bool,
) -> tuple[tuple[str, ...], tuple[dict[str, Any], ...]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except _XLSX_READ_ERRORS as exc:
        raise FileParseError(f"Could not open workbook {filename}: {exc}") from exc

    try:
        if not workbook.sheetnames:
            raise FileParseError(f"Workbook has no sheets: {filename}")
        sheet = workbook[workbook.sheetnames[0]]
        row_iter = sheet.iter_rows(values_only=True)
        header_cells = next(row_iter, None)
        if header_cells is None:
            raise FileParseError(f"Sheet has no header row: {filename}")
        headers = _clean_headers(header_cells)
        if not headers:
            raise FileParseError(f"Sheet has no header row: {filename}")
        if header_only:
            return headers, ()
        rows = tuple(_zip_rows(headers, row_iter, clean=_xlsx_cell))
    except _XLSX_READ_ERRORS as exc:
        raise FileParseError(f"Could not read worksheet in {filename}: {exc}") from exc
    finally:
        workbook.close()

    return headers, rows


def _xlsx_cell(value: Any) -> Any:
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return value


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _clean_headers(cells: Sequence[Any]) -> tuple[str, ...]:
    """
    Trim header cells and drop trailing blanks; interior blanks get a
    positional placeholder so row values stay aligned.
    """

    cleaned = ["" if cell is None else str(cell).strip() for cell in cells]
    while cleaned and not cleaned[-1]:
        cleaned.pop()
    return tuple(
        name if name else f"column_{index + 1}"
        for index, name in enumerate(cleaned)
    )


def _zip_rows(
    headers: tuple[str, ...],
    rows: Iterable[Sequence[Any]],
    *,
    clean: Callable[[Any], Any],
) -> Iterator[dict[str, Any]]:
    width = len(headers)
    for cells in rows:
        values = list(cells[:width]) if cells else []
        if len(values) < width:
            values.extend([None] * (width - len(values)))
        yield {header: clean(value) for header, value in zip(headers, values)}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False
