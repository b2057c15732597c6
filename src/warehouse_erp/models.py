"""Typed records for stock transaction documents and export requests.

Documents and lines are immutable dataclasses. Derived money values
(``subtotal`` and ``total_amount``) are exposed as properties so they are
recomputed on every access and can never be supplied from the outside.

Raw payloads coming from forms or JSON files are converted with
:func:`line_from_mapping` and :func:`document_from_mapping`. The converters are
lenient on purpose: malformed numbers become ``None`` so that the validators,
not the parser, decide what to report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional, Sequence

from .constants import DocumentKind


@dataclass(frozen=True)
class TransactionLine:
    """One product/quantity/price entry of a goods receipt or goods issue."""

    product_id: Optional[int]
    quantity: Optional[int]
    unit_price: Optional[Decimal]
    product_name: Optional[str] = None
    product_sku: Optional[str] = None
    unit: Optional[str] = None
    notes: Optional[str] = None

    @property
    def subtotal(self) -> Decimal:
        """Quantity multiplied by unit price; missing inputs count as zero."""

        quantity = Decimal(self.quantity or 0)
        price = self.unit_price if self.unit_price is not None else Decimal("0")
        return quantity * price


@dataclass(frozen=True)
class TransactionDocument:
    """A goods receipt (inbound) or goods issue (outbound) document."""

    kind: DocumentKind
    party_id: Optional[int]
    details: tuple[TransactionLine, ...] = ()
    status: Optional[str] = None
    notes: Optional[str] = None
    document_id: Optional[int] = None
    number: Optional[str] = None
    party_name: Optional[str] = None
    document_date: Optional[datetime] = None

    @property
    def total_amount(self) -> Decimal:
        """Sum of every line subtotal, recomputed on each access."""

        return sum((line.subtotal for line in self.details), Decimal("0"))


@dataclass(frozen=True)
class TotalsResult:
    """Line subtotals in detail order plus the document total."""

    lines: list[Decimal]
    total: Decimal


@dataclass(frozen=True)
class ExportColumn:
    """Describe how one field of a record is rendered in an export."""

    key: str
    header: str
    width: Optional[int] = None
    formatter: Optional[Callable[[Any], str]] = None


@dataclass(frozen=True)
class ExportRequest:
    """Everything an exporter needs to produce a CSV, XLSX, or PDF payload."""

    filename: str
    title: str
    columns: Sequence[ExportColumn]
    rows: Sequence[Mapping[str, Any]]
    show_summary: bool = False
    summary_data: Optional[Mapping[str, Any]] = field(default=None)


_LINE_KEYS = {
    "product_id": ("product_id", "productId"),
    "quantity": ("quantity",),
    "unit_price": ("unit_price", "unitPrice"),
    "product_name": ("product_name", "productName"),
    "product_sku": ("product_sku", "productSku"),
    "unit": ("unit",),
    "notes": ("notes",),
}

_PARTY_KEYS = {
    DocumentKind.RECEIPT: ("party_id", "supplier_id", "supplierId"),
    DocumentKind.ISSUE: ("party_id", "customer_id", "customerId"),
}

_PARTY_NAME_KEYS = {
    DocumentKind.RECEIPT: ("party_name", "supplier_name", "supplierName"),
    DocumentKind.ISSUE: ("party_name", "customer_name", "customerName"),
}

_ID_KEYS = {
    DocumentKind.RECEIPT: ("document_id", "goods_receipt_id", "goodsReceiptId"),
    DocumentKind.ISSUE: ("document_id", "goods_issue_id", "goodsIssueId"),
}

_NUMBER_KEYS = {
    DocumentKind.RECEIPT: ("number", "receipt_number", "receiptNumber"),
    DocumentKind.ISSUE: ("number", "issue_number", "issueNumber"),
}

_DATE_KEYS = {
    DocumentKind.RECEIPT: ("document_date", "receipt_date", "receiptDate"),
    DocumentKind.ISSUE: ("document_date", "issue_date", "issueDate"),
}


def _pick(mapping: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if key in mapping and mapping[key] is not None:
            return mapping[key]
    return None


def to_int(value: Any) -> Optional[int]:
    """Coerce ``value`` to ``int``; return ``None`` when it is not integral."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite() or number != number.to_integral_value():
        return None
    return int(number)


def to_decimal(value: Any) -> Optional[Decimal]:
    """Coerce ``value`` to :class:`~decimal.Decimal` via its string form.

    Going through ``str`` keeps float inputs such as ``0.1`` from dragging
    their binary representation into money arithmetic.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def to_datetime(value: Any) -> Optional[datetime]:
    """Parse ISO 8601 strings (a trailing ``Z`` is accepted)."""

    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def line_from_mapping(raw: Mapping[str, Any]) -> TransactionLine:
    """Build a :class:`TransactionLine` from a form or API payload.

    Both ``camelCase`` and ``snake_case`` keys are understood. Any supplied
    ``subtotal`` is ignored because it is always derived.
    """

    def text(name: str) -> Optional[str]:
        value = _pick(raw, _LINE_KEYS[name])
        return None if value is None else str(value)

    return TransactionLine(
        product_id=to_int(_pick(raw, _LINE_KEYS["product_id"])),
        quantity=to_int(_pick(raw, _LINE_KEYS["quantity"])),
        unit_price=to_decimal(_pick(raw, _LINE_KEYS["unit_price"])),
        product_name=text("product_name"),
        product_sku=text("product_sku"),
        unit=text("unit"),
        notes=text("notes"),
    )


def document_from_mapping(raw: Mapping[str, Any], kind: DocumentKind) -> TransactionDocument:
    """Build a :class:`TransactionDocument` of ``kind`` from a raw payload.

    Args:
        raw (Mapping[str, Any]): Payload using either the API field names
            (``supplierId``, ``details``...) or their snake_case equivalents.
        kind (DocumentKind): Whether the payload is a receipt or an issue;
            selects which party key (supplier or customer) is read.

    Returns:
        TransactionDocument: Immutable document. ``totalAmount`` in the payload
            is ignored.
    """

    kind = DocumentKind(kind)
    details = tuple(line_from_mapping(item) for item in (raw.get("details") or ()))
    status = raw.get("status")
    notes = raw.get("notes")
    number = _pick(raw, _NUMBER_KEYS[kind])
    party_name = _pick(raw, _PARTY_NAME_KEYS[kind])
    return TransactionDocument(
        kind=kind,
        party_id=to_int(_pick(raw, _PARTY_KEYS[kind])),
        details=details,
        status=None if status is None else str(status),
        notes=None if notes is None else str(notes),
        document_id=to_int(_pick(raw, _ID_KEYS[kind])),
        number=None if number is None else str(number),
        party_name=None if party_name is None else str(party_name),
        document_date=to_datetime(_pick(raw, _DATE_KEYS[kind])),
    )


def document_to_payload(document: TransactionDocument) -> dict[str, Any]:
    """Serialize a document into the backend's create/update request body.

    Only the fields the backend accepts are sent; derived totals are left out
    and recomputed server side.
    """

    party_key = "supplierId" if document.kind is DocumentKind.RECEIPT else "customerId"
    payload: dict[str, Any] = {
        party_key: document.party_id,
        "notes": document.notes,
        "details": [
            {
                "productId": line.product_id,
                "quantity": line.quantity,
                "unitPrice": float(line.unit_price) if line.unit_price is not None else None,
            }
            for line in document.details
        ],
    }
    if document.status is not None:
        payload["status"] = document.status
    return payload


__all__ = [
    "TransactionLine",
    "TransactionDocument",
    "TotalsResult",
    "ExportColumn",
    "ExportRequest",
    "to_int",
    "to_decimal",
    "to_datetime",
    "line_from_mapping",
    "document_from_mapping",
    "document_to_payload",
]
