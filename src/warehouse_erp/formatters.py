"""Display formatting for money, dates, percentages, and status labels.

Every function takes the locale explicitly through a :class:`LocaleConfig`
instead of reading process-wide settings, which keeps output deterministic
and lets one process render several locales side by side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Optional

from .constants import DocumentKind, GoodsIssueStatus, GoodsReceiptStatus
from .models import to_datetime, to_decimal


@dataclass(frozen=True)
class LocaleConfig:
    """Number, currency, and date conventions for one display locale."""

    name: str
    thousands_separator: str
    decimal_separator: str
    currency_symbol: str
    currency_digits: int
    symbol_before: bool
    date_format: str
    datetime_format: str
    active_labels: tuple[str, str]
    status_labels: Mapping[DocumentKind, Mapping[str, str]] = field(default_factory=dict)


_VI_RECEIPT_LABELS = {
    GoodsReceiptStatus.DRAFT.value: "Nháp",
    GoodsReceiptStatus.PENDING.value: "Chờ xử lý",
    GoodsReceiptStatus.COMPLETED.value: "Hoàn thành",
    GoodsReceiptStatus.CANCELLED.value: "Đã hủy",
}

_VI_ISSUE_LABELS = {
    GoodsIssueStatus.DRAFT.value: "Nháp",
    GoodsIssueStatus.AWAITING_APPROVAL.value: "Chờ phê duyệt",
    GoodsIssueStatus.APPROVED.value: "Đã phê duyệt",
    GoodsIssueStatus.IN_PREPARATION.value: "Đang chuẩn bị",
    GoodsIssueStatus.READY_FOR_DELIVERY.value: "Sẵn sàng giao",
    GoodsIssueStatus.IN_TRANSIT.value: "Đang vận chuyển",
    GoodsIssueStatus.DELIVERED.value: "Đã giao hàng",
    GoodsIssueStatus.COMPLETED.value: "Hoàn thành",
    GoodsIssueStatus.CANCELLED.value: "Đã hủy",
    GoodsIssueStatus.REJECTED.value: "Bị từ chối",
}

_EN_RECEIPT_LABELS = {
    GoodsReceiptStatus.DRAFT.value: "Draft",
    GoodsReceiptStatus.PENDING.value: "Pending",
    GoodsReceiptStatus.COMPLETED.value: "Completed",
    GoodsReceiptStatus.CANCELLED.value: "Cancelled",
}

_EN_ISSUE_LABELS = {
    GoodsIssueStatus.DRAFT.value: "Draft",
    GoodsIssueStatus.AWAITING_APPROVAL.value: "Awaiting approval",
    GoodsIssueStatus.APPROVED.value: "Approved",
    GoodsIssueStatus.IN_PREPARATION.value: "In preparation",
    GoodsIssueStatus.READY_FOR_DELIVERY.value: "Ready for delivery",
    GoodsIssueStatus.IN_TRANSIT.value: "In transit",
    GoodsIssueStatus.DELIVERED.value: "Delivered",
    GoodsIssueStatus.COMPLETED.value: "Completed",
    GoodsIssueStatus.CANCELLED.value: "Cancelled",
    GoodsIssueStatus.REJECTED.value: "Rejected",
}

VI_VN = LocaleConfig(
    name="vi_VN",
    thousands_separator=".",
    decimal_separator=",",
    currency_symbol="\u00a0₫",
    currency_digits=0,
    symbol_before=False,
    date_format="%d/%m/%Y",
    datetime_format="%H:%M %d/%m/%Y",
    active_labels=("Hoạt động", "Ngừng hoạt động"),
    status_labels={
        DocumentKind.RECEIPT: _VI_RECEIPT_LABELS,
        DocumentKind.ISSUE: _VI_ISSUE_LABELS,
    },
)

EN_US = LocaleConfig(
    name="en_US",
    thousands_separator=",",
    decimal_separator=".",
    currency_symbol="$",
    currency_digits=2,
    symbol_before=True,
    date_format="%m/%d/%Y",
    datetime_format="%m/%d/%Y %I:%M %p",
    active_labels=("Active", "Inactive"),
    status_labels={
        DocumentKind.RECEIPT: _EN_RECEIPT_LABELS,
        DocumentKind.ISSUE: _EN_ISSUE_LABELS,
    },
)

LOCALES: Mapping[str, LocaleConfig] = {VI_VN.name: VI_VN, EN_US.name: EN_US}


def get_locale(name: str) -> LocaleConfig:
    """Return the preset registered under ``name`` (``vi_VN`` or ``en_US``).

    Raises:
        KeyError: If no preset exists for ``name``.
    """

    try:
        return LOCALES[name]
    except KeyError as exc:
        raise KeyError(f"Unknown locale: {name}") from exc


def format_number(value: Any, locale: LocaleConfig, digits: int = 0) -> str:
    """Group and round ``value`` using the locale separators.

    Rounding is half away from zero. Non-numeric input yields ``""``.
    """

    number = to_decimal(value)
    if number is None:
        return ""
    quantum = Decimal(1).scaleb(-digits)
    rounded = number.quantize(quantum, rounding=ROUND_HALF_UP)
    text = f"{rounded:,.{digits}f}"
    return (
        text.replace(",", "\x00")
        .replace(".", locale.decimal_separator)
        .replace("\x00", locale.thousands_separator)
    )


def format_currency(value: Any, locale: LocaleConfig) -> str:
    """Render a money amount, e.g. ``1.500 ₫`` (vi_VN) or ``$1,500.00`` (en_US)."""

    amount = format_number(value, locale, locale.currency_digits)
    if not amount:
        return ""
    if locale.symbol_before:
        if amount.startswith("-"):
            return f"-{locale.currency_symbol}{amount[1:]}"
        return f"{locale.currency_symbol}{amount}"
    return f"{amount}{locale.currency_symbol}"


def _as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return to_datetime(value)


def format_date(value: Any, locale: LocaleConfig) -> str:
    """Render a date and time; unparseable or empty input yields ``""``."""

    moment = _as_datetime(value)
    return moment.strftime(locale.datetime_format) if moment else ""


def format_short_date(value: Any, locale: LocaleConfig) -> str:
    moment = _as_datetime(value)
    return moment.strftime(locale.date_format) if moment else ""


def format_percentage(value: Any, locale: LocaleConfig, digits: int = 1) -> str:
    """Render a value already expressed in percent, e.g. ``12.5`` -> ``12,5%``."""

    text = format_number(value, locale, digits)
    return f"{text}%" if text else ""


def format_status_label(status: Any, kind: DocumentKind, locale: LocaleConfig) -> str:
    """Translate a lifecycle status into its display label.

    Unknown statuses fall back to their raw text so nothing is hidden from the
    reader.
    """

    if status is None:
        return ""
    raw = status.value if hasattr(status, "value") else str(status)
    labels = locale.status_labels.get(DocumentKind(kind), {})
    return labels.get(raw, raw)


def format_active_flag(value: Any, locale: LocaleConfig) -> str:
    """Render a boolean or ``"Active"``-style flag as an active/inactive label."""

    if value is None:
        return ""
    active, inactive = locale.active_labels
    if isinstance(value, bool):
        return active if value else inactive
    if isinstance(value, str):
        return active if value.strip().lower() in {"active", "true"} else inactive
    return str(value)


__all__ = [
    "LocaleConfig",
    "VI_VN",
    "EN_US",
    "LOCALES",
    "get_locale",
    "format_number",
    "format_currency",
    "format_date",
    "format_short_date",
    "format_percentage",
    "format_status_label",
    "format_active_flag",
]
