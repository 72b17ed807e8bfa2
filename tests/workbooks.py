"""
tests/workbooks.py

XLSX fixtures built in memory with openpyxl.
"""

from __future__ import annotations

import zipfile
from io import BytesIO
from typing import Any, Sequence

from openpyxl import Workbook

FIRST_SHEET_PART = "xl/worksheets/sheet1.xml"


def xlsx_bytes(*rows: Sequence[Any]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(list(row))
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def xlsx_with_corrupt_sheet(*rows: Sequence[Any]) -> bytes:
    """
    A workbook whose container and workbook part are valid but whose first
    worksheet XML is truncated mid-element.
    """

    source = zipfile.ZipFile(BytesIO(xlsx_bytes(*rows)))
    buffer = BytesIO()
    with source, zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as target:
        for item in source.infolist():
            data = source.read(item.filename)
            if item.filename == FIRST_SHEET_PART:
                data = b"<worksheet><sheetData><row><c"
            target.writestr(item, data)
    return buffer.getvalue()
