# app/core/spreadsheet.py
from __future__ import annotations

import csv
from io import BytesIO, StringIO
from typing import Any, List, Optional, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from app.core.errors import ImportFileError

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"

# property_type_id .. answer_weight
COLUMN_WIDTHS: List[int] = [15, 12, 25, 25, 12, 50, 50, 15, 10, 40, 40, 15]

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(fill_type="solid", fgColor="366092")
INSTRUCTION_FONT = Font(italic=True, color="666666")
INSTRUCTION_FILL = PatternFill(fill_type="solid", fgColor="F0F0F0")
TITLE_FONT = Font(bold=True, size=16, color="366092")
SECTION_FONT = Font(bold=True, color="366092")


def _extension(filename: str) -> str:
    name = (filename or "").lower()
    return name.rsplit(".", 1)[-1] if "." in name else ""


def read_table(filename: str, content: bytes) -> List[List[Any]]:
    """First sheet of an .xlsx or a .csv file as a list of rows."""
    ext = _extension(filename)
    if ext == "xlsx":
        return _read_xlsx(content)
    if ext == "csv":
        return _read_csv(content)
    if ext == "xls":
        raise ImportFileError("Legacy .xls files are not supported. Please save the file as .xlsx and upload again.")
    raise ImportFileError("Please upload an Excel (.xlsx) or CSV file")


def _read_xlsx(content: bytes) -> List[List[Any]]:
    try:
        wb = load_workbook(filename=BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        raise ImportFileError(f"Could not read Excel file: {exc}") from exc
    try:
        ws = wb.worksheets[0]
        return [list(row) for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def _read_csv(content: bytes) -> List[List[Any]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ImportFileError("CSV files must be UTF-8 encoded") from exc
    return [row for row in csv.reader(StringIO(text, newline=""))]


def build_workbook(
    rows: Sequence[Sequence[Any]],
    sheet_title: str,
    instructions_row: bool = False,
    info_lines: Optional[Sequence[str]] = None,
    info_sections: Sequence[int] = (),
) -> bytes:
    """
    rows[0] is the header row; when `instructions_row` is set rows[1] is styled
    as the annotation row. `info_lines` adds a one-column "Instructions" sheet,
    with the (1-based) `info_sections` rows styled as section titles.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title

    for row in rows:
        ws.append(list(row))

    for idx, width in enumerate(COLUMN_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width

    if rows:
        for cell in ws[1]:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.alignment = Alignment(horizontal="center", vertical="center")
    if instructions_row and len(rows) > 1:
        for cell in ws[2]:
            cell.font = INSTRUCTION_FONT
            cell.fill = INSTRUCTION_FILL
            cell.alignment = Alignment(horizontal="left", vertical="center")

    if info_lines:
        info = wb.create_sheet("Instructions")
        for line in info_lines:
            info.append([line])
        info.column_dimensions["A"].width = 60
        info["A1"].font = TITLE_FONT
        info["A1"].alignment = Alignment(horizontal="center")
        for row_no in info_sections:
            info.cell(row=row_no, column=1).font = SECTION_FONT

    stream = BytesIO()
    wb.save(stream)
    return stream.getvalue()


def build_csv(rows: Sequence[Sequence[Any]]) -> bytes:
    buf = StringIO(newline="")
    writer = csv.writer(buf)
    for row in rows:
        writer.writerow(["" if v is None else v for v in row])
    # BOM so Excel opens it as UTF-8
    return buf.getvalue().encode("utf-8-sig")
