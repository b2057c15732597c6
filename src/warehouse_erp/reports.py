"""Build export requests and summary blocks for lists of documents.

The column set, titles, and summary labels exist in Vietnamese and English;
the :class:`~warehouse_erp.formatters.LocaleConfig` passed in decides which
one is used and how numbers and dates are rendered. A single document can
also be printed as a PDF slip with its lines and signature captions.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import Spacer, Table, TableStyle

from . import log
from .constants import DocumentKind, GoodsIssueStatus, GoodsReceiptStatus
from .export import PDF_CONTENT_WIDTH, data_table, fit_column_widths, pdf_paragraph, pdf_styles, render_pdf
from .formatters import (
    LocaleConfig,
    format_currency,
    format_date,
    format_number,
    format_short_date,
    format_status_label,
)
from .models import ExportColumn, ExportRequest, TransactionDocument
from .queries import documents_of_kind
from .status_gate import parse_status
from .text_normalizer import normalize

_LABELS: Mapping[str, Mapping[str, str]] = {
    "vi_VN": {
        "title_receipt": "Danh sách phiếu nhập kho",
        "title_issue": "Danh sách phiếu xuất kho",
        "filename_receipt": "danh-sach-phieu-nhap",
        "filename_issue": "danh-sach-phieu-xuat",
        "number": "Số phiếu",
        "date": "Ngày lập",
        "party_receipt": "Nhà cung cấp",
        "party_issue": "Khách hàng",
        "line_count": "Số mặt hàng",
        "total_amount": "Tổng tiền",
        "status": "Trạng thái",
        "notes": "Ghi chú",
        "total_documents": "Tổng số phiếu",
        "total_value": "Tổng giá trị",
        "no_party": "Chưa có",
        "company": "CÔNG TY QUẢN LÝ KHO HÀNG",
        "heading_receipt": "PHIẾU NHẬP KHO",
        "heading_issue": "PHIẾU XUẤT KHO",
        "file_receipt": "phieu-nhap",
        "file_issue": "phieu-xuat",
        "created": "Ngày tạo",
        "seq": "STT",
        "product": "Tên sản phẩm",
        "sku": "SKU",
        "quantity": "Số lượng",
        "unit": "Đơn vị",
        "unit_price": "Đơn giá",
        "subtotal": "Thành tiền",
        "sign_creator": "Người tạo phiếu",
        "sign_keeper": "Phụ trách kho",
        "sign_director": "Giám đốc",
        "exported_at": "Xuất lúc",
    },
    "en_US": {
        "title_receipt": "Goods receipts",
        "title_issue": "Goods issues",
        "filename_receipt": "goods-receipts",
        "filename_issue": "goods-issues",
        "number": "Number",
        "date": "Date",
        "party_receipt": "Supplier",
        "party_issue": "Customer",
        "line_count": "Items",
        "total_amount": "Total",
        "status": "Status",
        "notes": "Notes",
        "total_documents": "Total documents",
        "total_value": "Total value",
        "no_party": "N/A",
        "company": "WAREHOUSE MANAGEMENT COMPANY",
        "heading_receipt": "GOODS RECEIPT",
        "heading_issue": "GOODS ISSUE",
        "file_receipt": "goods-receipt",
        "file_issue": "goods-issue",
        "created": "Created",
        "seq": "No.",
        "product": "Product",
        "sku": "SKU",
        "quantity": "Quantity",
        "unit": "Unit",
        "unit_price": "Unit price",
        "subtotal": "Amount",
        "sign_creator": "Prepared by",
        "sign_keeper": "Warehouse keeper",
        "sign_director": "Director",
        "exported_at": "Exported at",
    },
}

_STATUS_ORDER = {
    DocumentKind.RECEIPT: list(GoodsReceiptStatus),
    DocumentKind.ISSUE: list(GoodsIssueStatus),
}


def _labels(locale: LocaleConfig) -> Mapping[str, str]:
    return _LABELS.get(locale.name, _LABELS["en_US"])


def summarize_documents(
    documents: Iterable[TransactionDocument],
    locale: LocaleConfig,
    kind: DocumentKind = DocumentKind.RECEIPT,
) -> Dict[str, Any]:
    """Aggregate a document list into an ordered summary block.

    The block holds the document count, one count per status that occurs (in
    lifecycle order, unrecognized statuses last under their raw text), and the
    grand total formatted as currency. Totals are recomputed from the lines.

    Args:
        documents (Iterable[TransactionDocument]): Documents to summarize.
        locale (LocaleConfig): Locale used for labels and the money amount.
        kind (DocumentKind): Kind whose status labels are used.

    Returns:
        dict[str, Any]: Label to value, in display order.
    """

    kind = DocumentKind(kind)
    documents = list(documents)
    labels = _labels(locale)

    counts: Counter = Counter()
    unknown: Counter = Counter()
    grand_total = Decimal("0")
    for document in documents:
        grand_total += document.total_amount
        status = parse_status(document.status, kind)
        if status is not None:
            counts[status] += 1
        elif document.status:
            unknown[document.status] += 1

    summary: Dict[str, Any] = {labels["total_documents"]: len(documents)}
    for status in _STATUS_ORDER[kind]:
        if counts[status]:
            summary[format_status_label(status, kind, locale)] = counts[status]
    for raw, count in unknown.items():
        summary[raw] = count
    summary[labels["total_value"]] = format_currency(grand_total, locale)
    return summary


def document_row(document: TransactionDocument) -> Dict[str, Any]:
    """Flatten a document into the mapping consumed by the export columns."""

    return {
        "number": document.number,
        "documentDate": document.document_date,
        "partyName": document.party_name,
        "lineCount": len(document.details),
        "totalAmount": document.total_amount,
        "status": document.status,
        "notes": document.notes,
    }


def document_columns(kind: DocumentKind, locale: LocaleConfig) -> List[ExportColumn]:
    """Return the standard column set for a receipt or issue list."""

    kind = DocumentKind(kind)
    labels = _labels(locale)
    return [
        ExportColumn(key="number", header=labels["number"], width=20),
        ExportColumn(
            key="documentDate",
            header=labels["date"],
            width=20,
            formatter=lambda value: format_date(value, locale),
        ),
        ExportColumn(
            key="partyName",
            header=labels[f"party_{kind.value}"],
            width=25,
            formatter=lambda value: str(value or labels["no_party"]),
        ),
        ExportColumn(key="lineCount", header=labels["line_count"], width=12),
        ExportColumn(
            key="totalAmount",
            header=labels["total_amount"],
            width=20,
            formatter=lambda value: format_currency(value, locale),
        ),
        ExportColumn(
            key="status",
            header=labels["status"],
            width=18,
            formatter=lambda value: format_status_label(value, kind, locale),
        ),
        ExportColumn(key="notes", header=labels["notes"], width=30),
    ]


def build_document_export(
    documents: Iterable[TransactionDocument],
    kind: DocumentKind,
    locale: LocaleConfig,
    title: Optional[str] = None,
    filename: Optional[str] = None,
    show_summary: bool = True,
) -> ExportRequest:
    """Prepare an :class:`ExportRequest` listing documents of ``kind``.

    Documents of the other kind are skipped.

    Args:
        documents (Iterable[TransactionDocument]): Documents to list.
        kind (DocumentKind): Receipt or issue.
        locale (LocaleConfig): Locale for headers, money, dates and labels.
        title (str | None): Overrides the default list title.
        filename (str | None): Overrides the default file stem.
        show_summary (bool): Whether to attach :func:`summarize_documents`.

    Returns:
        ExportRequest: Ready to pass to :func:`warehouse_erp.export.export`.
    """

    kind = DocumentKind(kind)
    labels = _labels(locale)
    selected = documents_of_kind(documents, kind)
    rows = [document_row(document) for document in selected]
    summary = summarize_documents(selected, locale, kind) if show_summary else None
    log.debug("Prepared %s export with %d rows", kind.value, len(rows))
    return ExportRequest(
        filename=filename or labels[f"filename_{kind.value}"],
        title=title or labels[f"title_{kind.value}"],
        columns=document_columns(kind, locale),
        rows=rows,
        show_summary=show_summary,
        summary_data=summary,
    )


# ---------------------------------------------------------------------------
# Single document PDF
# ---------------------------------------------------------------------------

_LINE_WIDTHS_MM = (15, 50, 25, 20, 20, 25, 30)


def build_document_pdf_story(
    document: TransactionDocument,
    locale: LocaleConfig,
    exported_at: Optional[datetime] = None,
) -> List[Any]:
    """Assemble the flowables of a printable receipt or issue slip.

    The slip carries the company header, the document heading, its number,
    date, party, status and notes, a numbered line table, the total, three
    signature captions, and an "exported at" stamp. Money is recomputed from
    the lines; any total stored with the document is ignored.
    """

    labels = _labels(locale)
    kind = document.kind
    styles = pdf_styles()
    company_style = ParagraphStyle("DocumentCompany", parent=styles["heading"], fontSize=14, alignment=1)
    total_style = ParagraphStyle("DocumentTotal", parent=styles["heading"], alignment=2, spaceBefore=8)
    stamp_style = ParagraphStyle("DocumentStamp", parent=styles["normal"], fontSize=8)
    body = styles["normal"]
    missing = labels["no_party"]

    story: List[Any] = [
        pdf_paragraph(labels["company"], company_style),
        pdf_paragraph(labels[f"heading_{kind.value}"], styles["title"]),
        Spacer(1, 6),
        pdf_paragraph(f"{labels['number']}: {document.number or missing}", body),
        pdf_paragraph(
            f"{labels['created']}: {format_short_date(document.document_date, locale) or missing}", body
        ),
        pdf_paragraph(f"{labels[f'party_{kind.value}']}: {document.party_name or ''}", body),
        pdf_paragraph(f"{labels['status']}: {format_status_label(document.status, kind, locale)}", body),
    ]
    if document.notes:
        story.append(pdf_paragraph(f"{labels['notes']}: {document.notes}", body))
    story.append(Spacer(1, 8))

    header = [labels[key] for key in ("seq", "product", "sku", "quantity", "unit", "unit_price", "subtotal")]
    data = [[normalize(text) for text in header]]
    for index, line in enumerate(document.details, start=1):
        cells = [
            str(index),
            line.product_name or "",
            line.product_sku or "",
            format_number(line.quantity or 0, locale),
            line.unit or "",
            format_currency(line.unit_price or 0, locale),
            format_currency(line.subtotal, locale),
        ]
        data.append([normalize(cell) for cell in cells])

    table = data_table(data, fit_column_widths([width * mm for width in _LINE_WIDTHS_MM], PDF_CONTENT_WIDTH))
    table.setStyle(
        TableStyle([
            ("ALIGN", (0, 0), (0, -1), "CENTER"),
            ("ALIGN", (3, 0), (4, -1), "CENTER"),
            ("ALIGN", (5, 0), (6, -1), "RIGHT"),
        ]))
    story.append(table)
    story.append(
        pdf_paragraph(f"{labels['total_amount']}: {format_currency(document.total_amount, locale)}", total_style)
    )

    signatures = Table(
        [[normalize(labels[key]) for key in ("sign_creator", "sign_keeper", "sign_director")]],
        colWidths=[PDF_CONTENT_WIDTH / 3] * 3,
    )
    signatures.setStyle(
        TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("FONTNAME", (0, 0), (-1, -1), "Times-Roman"),
            ("FONTSIZE", (0, 0), (-1, -1), 11),
        ]))
    story.extend([Spacer(1, 20), signatures, Spacer(1, 40)])
    story.append(
        pdf_paragraph(f"{labels['exported_at']}: {format_date(exported_at or datetime.now(), locale)}", stamp_style)
    )
    return story


def build_document_pdf(
    document: TransactionDocument,
    locale: LocaleConfig,
    exported_at: Optional[datetime] = None,
) -> bytes:
    """Render one receipt or issue as an A4 PDF slip."""

    labels = _labels(locale)
    title = f"{labels[f'heading_{document.kind.value}']} {document.number or ''}".strip()
    payload = render_pdf(build_document_pdf_story(document, locale, exported_at), title)
    log.info("Rendered %s slip %s with %d line(s)", document.kind.value, document.number, len(document.details))
    return payload


def document_pdf_filename(document: TransactionDocument, locale: LocaleConfig) -> str:
    """File stem for a slip, e.g. ``phieu-nhap-GR20240315001``."""

    prefix = _labels(locale)[f"file_{document.kind.value}"]
    suffix = document.number or document.document_id
    return f"{prefix}-{suffix}" if suffix is not None else prefix


def write_document_pdf(
    document: TransactionDocument,
    locale: LocaleConfig,
    directory: Path,
    exported_at: Optional[datetime] = None,
) -> Path:
    """Render a slip and write it to ``directory/<stem>.pdf``."""

    payload = build_document_pdf(document, locale, exported_at)
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"{document_pdf_filename(document, locale)}.pdf"
    target.write_bytes(payload)
    log.info("Wrote slip to %s", target)
    return target


__all__ = [
    "summarize_documents",
    "document_row",
    "document_columns",
    "build_document_export",
    "build_document_pdf_story",
    "build_document_pdf",
    "document_pdf_filename",
    "write_document_pdf",
]
