"""CSV, Excel, and PDF rendering of tabular records.

All three exporters share one layout: a title, the export date, an optional
summary block, the column headers, one row per record, and a trailing record
count. Each exporter returns the finished file as ``bytes`` and never touches
the request rows.

PDF text goes through :func:`~warehouse_erp.text_normalizer.normalize`
because the base-14 fonts cannot draw Vietnamese letters. CSV and Excel keep
the original Unicode text.
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.worksheet.worksheet import Worksheet
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from . import log
from .constants import DEFAULT_COLUMN_WIDTH
from .models import ExportColumn, ExportRequest
from .text_normalizer import normalize

EXPORT_DATE_LABEL = "Ngày xuất"
SUMMARY_LABEL = "Tổng quan:"
TOTAL_RECORDS_LABEL = "Tổng số bản ghi"
SHEET_TITLE = "Danh sách"
EXPORT_DATE_FORMAT = "%d/%m/%Y"

HEADER_FILL = colors.HexColor("#2980b9")
ALTERNATE_FILL = colors.HexColor("#f0f8ff")

PDF_MARGIN = 14 * mm
PDF_CONTENT_WIDTH = A4[0] - 2 * PDF_MARGIN


class ExportError(Exception):
    """Raised when a cell cannot be rendered: its formatter failed or Excel refused the text.

    Attributes:
        column_key: Key of the offending column.
        header: Display header of that column.
        row_index: 0-based index of the offending row in ``request.rows``.
    """

    def __init__(self, column_key: str, header: str, row_index: int, reason: str) -> None:
        super().__init__(
            f"Column '{column_key}' ({header}) could not be rendered on row {row_index}: {reason}"
        )
        self.column_key = column_key
        self.header = header
        self.row_index = row_index


def display_value(column: ExportColumn, row: Mapping[str, Any], row_index: int) -> str:
    """Return the text shown for ``row`` under ``column``.

    The column formatter wins when present; otherwise the raw value is
    stringified and a missing value becomes ``""``.

    Raises:
        ExportError: If the formatter raises.
    """

    value = row.get(column.key)
    if column.formatter is None:
        return "" if value is None else str(value)
    try:
        return str(column.formatter(value))
    except Exception as exc:
        log.error(
            "Export formatter failed for column '%s' on row %d: %s",
            column.key,
            row_index,
            exc,
        )
        raise ExportError(column.key, column.header, row_index, str(exc)) from exc


def _export_date(exported_on: Optional[date]) -> str:
    return (exported_on or date.today()).strftime(EXPORT_DATE_FORMAT)


def _total_line(request: ExportRequest) -> str:
    return f"{TOTAL_RECORDS_LABEL}: {len(request.rows)}"


def _summary_items(request: ExportRequest) -> List[tuple[str, str]]:
    if not request.show_summary or not request.summary_data:
        return []
    return [(str(key), "" if value is None else str(value)) for key, value in request.summary_data.items()]


def _table_rows(request: ExportRequest) -> List[List[str]]:
    return [
        [display_value(column, row, index) for column in request.columns]
        for index, row in enumerate(request.rows)
    ]


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def to_csv(request: ExportRequest, exported_on: Optional[date] = None) -> bytes:
    """Render ``request`` as UTF-8, comma-delimited CSV.

    The row layout mirrors the Excel sheet: title, export date, a blank line,
    the optional summary block, headers, data rows, a blank line and the
    record count.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow([request.title])
    writer.writerow([f"{EXPORT_DATE_LABEL}: {_export_date(exported_on)}"])
    writer.writerow([])

    summary = _summary_items(request)
    if summary:
        writer.writerow([SUMMARY_LABEL])
        writer.writerows([key, value] for key, value in summary)
        writer.writerow([])

    writer.writerow([column.header for column in request.columns])
    writer.writerows(_table_rows(request))
    writer.writerow([])
    writer.writerow([_total_line(request)])

    log.info("Exported %d rows to CSV for '%s'", len(request.rows), request.filename)
    return buffer.getvalue().encode("utf-8")


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------


def _excel_cell(column: ExportColumn, row: Mapping[str, Any], row_index: int) -> Any:
    # Unformatted numbers and dates stay typed so the sheet can compute with them.
    value = row.get(column.key)
    if column.formatter is None and not isinstance(value, bool):
        if isinstance(value, (int, float, Decimal, date)):
            if isinstance(value, datetime) and value.tzinfo is not None:
                return value.replace(tzinfo=None)
            return value
    return display_value(column, row, row_index)


def _set_cell(cell: Cell, value: Any) -> None:
    cell.value = value
    # Text starting with "=" is data, never a formula.
    if isinstance(value, str) and value.startswith("="):
        cell.data_type = "s"


def _write_row(ws: Worksheet, row_number: int, values: List[Any]) -> None:
    for col, value in enumerate(values, start=1):
        _set_cell(ws.cell(row=row_number, column=col), value)


def to_excel(request: ExportRequest, exported_on: Optional[date] = None) -> bytes:
    """Render ``request`` as a single-sheet ``.xlsx`` workbook.

    The title and date rows are merged across every data column and the title
    is bold at 16pt. Column widths come from ``ExportColumn.width`` and default
    to ``DEFAULT_COLUMN_WIDTH`` characters. Text is stored as text, including
    values that look like formulas.

    Args:
        request (ExportRequest): Columns, rows and optional summary.
        exported_on (date | None): Date printed under the title. Defaults to
            today.

    Returns:
        bytes: The serialized workbook.

    Raises:
        ExportError: If a column formatter fails or a data cell holds a
            character that worksheets cannot store.
    """

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    _write_row(ws, 1, [request.title])
    _write_row(ws, 2, [f"{EXPORT_DATE_LABEL}: {_export_date(exported_on)}"])
    current = 3

    summary = _summary_items(request)
    if summary:
        current += 1
        _write_row(ws, current, [SUMMARY_LABEL])
        for key, value in summary:
            current += 1
            _write_row(ws, current, [key, value])
        current += 1

    current += 1
    _write_row(ws, current, [column.header for column in request.columns])
    for index, row in enumerate(request.rows):
        current += 1
        for col, column in enumerate(request.columns, start=1):
            value = _excel_cell(column, row, index)
            try:
                _set_cell(ws.cell(row=current, column=col), value)
            except IllegalCharacterError as exc:
                log.error(
                    "Excel export rejected a control character in column '%s' on row %d",
                    column.key,
                    index,
                )
                raise ExportError(column.key, column.header, index, "illegal character for Excel") from exc
    current += 2
    _write_row(ws, current, [_total_line(request)])

    title_cell = ws["A1"]
    title_cell.font = Font(bold=True, size=16)
    title_cell.alignment = Alignment(horizontal="center")

    span = len(request.columns)
    if span > 1:
        last = get_column_letter(span)
        ws.merge_cells(f"A1:{last}1")
        ws.merge_cells(f"A2:{last}2")

    for col, column in enumerate(request.columns, start=1):
        ws.column_dimensions[get_column_letter(col)].width = column.width or DEFAULT_COLUMN_WIDTH

    buffer = io.BytesIO()
    wb.save(buffer)
    log.info("Exported %d rows to Excel for '%s'", len(request.rows), request.filename)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------


def pdf_styles() -> Dict[str, ParagraphStyle]:
    """Paragraph styles shared by every PDF the package renders."""

    styles = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "ExportTitle",
            parent=styles["Title"],
            fontName="Times-Bold",
            fontSize=18,
            spaceAfter=4,
        ),
        "date": ParagraphStyle(
            "ExportDate",
            parent=styles["Normal"],
            fontName="Times-Roman",
            fontSize=10,
            alignment=1,
        ),
        "heading": ParagraphStyle(
            "ExportHeading",
            parent=styles["Normal"],
            fontName="Times-Bold",
            fontSize=12,
            spaceAfter=4,
        ),
        "normal": ParagraphStyle("ExportBody", parent=styles["Normal"], fontName="Times-Roman", fontSize=10),
    }


def pdf_paragraph(text: str, style: ParagraphStyle) -> Paragraph:
    """Paragraph with diacritics removed and markup characters escaped."""

    return Paragraph(escape(normalize(text)), style)


def fit_column_widths(widths: List[Optional[float]], available: float) -> List[Optional[float]]:
    """Shrink column widths (in points) proportionally so they fit ``available``.

    Unset widths are auto-sized by reportlab while the set ones fit; once
    scaling is needed they count as ``DEFAULT_COLUMN_WIDTH`` millimetres.
    """

    requested = sum(width or DEFAULT_COLUMN_WIDTH * mm for width in widths)
    if requested <= available:
        return list(widths)
    scale = available / requested
    return [(width or DEFAULT_COLUMN_WIDTH * mm) * scale for width in widths]


def data_table(data: List[List[str]], widths: List[Optional[float]]) -> Table:
    """Grid table with a blue header row and alternating row shading."""

    table = Table(data, colWidths=widths, repeatRows=1)
    table.setStyle(
        TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), HEADER_FILL),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Times-Bold"),
            ("FONTNAME", (0, 1), (-1, -1), "Times-Roman"),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ALTERNATE_FILL]),
            ("LEFTPADDING", (0, 0), (-1, -1), 3),
            ("RIGHTPADDING", (0, 0), (-1, -1), 3),
        ]))
    return table


def build_pdf_story(
    request: ExportRequest,
    exported_on: Optional[date] = None,
    available_width: float = PDF_CONTENT_WIDTH,
) -> List[Any]:
    """Assemble the reportlab flowables for ``request`` with normalized text.

    Column widths are read as millimetres and shrunk to ``available_width``
    points when the table would not fit the page.
    """

    styles = pdf_styles()
    story: List[Any] = [
        pdf_paragraph(request.title, styles["title"]),
        pdf_paragraph(f"{EXPORT_DATE_LABEL}: {_export_date(exported_on)}", styles["date"]),
        Spacer(1, 10),
    ]

    summary = _summary_items(request)
    if summary:
        story.append(pdf_paragraph(SUMMARY_LABEL, styles["heading"]))
        for key, value in summary:
            story.append(pdf_paragraph(f"{key}: {value}", styles["normal"]))
        story.append(Spacer(1, 10))

    data = [[normalize(column.header) for column in request.columns]]
    data.extend([normalize(cell) for cell in row] for row in _table_rows(request))

    if request.columns:
        widths = [column.width * mm if column.width else None for column in request.columns]
        story.append(data_table(data, fit_column_widths(widths, available_width)))

    story.append(Spacer(1, 10))
    story.append(pdf_paragraph(_total_line(request), styles["normal"]))
    return story


def render_pdf(story: List[Any], title: str) -> bytes:
    """Lay ``story`` out on A4 pages and return the PDF bytes."""

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=PDF_MARGIN,
        rightMargin=PDF_MARGIN,
        topMargin=10 * mm,
        bottomMargin=10 * mm,
        title=normalize(title),
    )
    doc.build(story)
    return buffer.getvalue()


def to_pdf(request: ExportRequest, exported_on: Optional[date] = None) -> bytes:
    """Render ``request`` as an A4 PDF document."""

    payload = render_pdf(build_pdf_story(request, exported_on), request.title)
    log.info("Exported %d rows to PDF for '%s'", len(request.rows), request.filename)
    return payload


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

EXPORTERS: Dict[str, Callable[..., bytes]] = {
    "csv": to_csv,
    "xlsx": to_excel,
    "pdf": to_pdf,
}

FORMAT_ALIASES: Mapping[str, str] = {"excel": "xlsx"}


def _resolve_format(fmt: str) -> str:
    key = fmt.strip().lower().lstrip(".")
    key = FORMAT_ALIASES.get(key, key)
    if key not in EXPORTERS:
        raise ValueError(f"Unsupported export format: {fmt}")
    return key


def export(request: ExportRequest, fmt: str, exported_on: Optional[date] = None) -> bytes:
    """Render ``request`` in ``fmt`` (``csv``, ``xlsx``/``excel`` or ``pdf``).

    Raises:
        ValueError: If ``fmt`` is not a supported format.
        ExportError: If a column formatter fails.
    """

    return EXPORTERS[_resolve_format(fmt)](request, exported_on)


def write_export(
    request: ExportRequest,
    fmt: str,
    directory: Path,
    exported_on: Optional[date] = None,
) -> Path:
    """Export ``request`` and write it to ``directory/<filename>.<ext>``.

    The directory is created when missing. Nothing is written when rendering
    fails.

    Returns:
        Path: Location of the written file.
    """

    key = _resolve_format(fmt)
    payload = EXPORTERS[key](request, exported_on)
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"{request.filename}.{key}"
    target.write_bytes(payload)
    log.info("Wrote export to %s", target)
    return target


__all__ = [
    "ExportError",
    "EXPORTERS",
    "display_value",
    "build_pdf_story",
    "pdf_styles",
    "pdf_paragraph",
    "fit_column_widths",
    "data_table",
    "render_pdf",
    "to_csv",
    "to_excel",
    "to_pdf",
    "export",
    "write_export",
]
