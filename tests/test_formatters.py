"""Unit tests for locale-aware display formatting."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from warehouse_erp import formatters
from warehouse_erp.constants import DocumentKind, GoodsIssueStatus
from warehouse_erp.formatters import EN_US, VI_VN

NBSP = "\u00a0"


# ---------------------------------------------------------------------------
# Numbers and money
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1500, f"1.500{NBSP}₫"),
        (Decimal("1234567"), f"1.234.567{NBSP}₫"),
        (Decimal("1234.5"), f"1.235{NBSP}₫"),
        (0, f"0{NBSP}₫"),
        (-2500, f"-2.500{NBSP}₫"),
    ],
)
def test_format_currency_vietnamese(value, expected):
    """Dong amounts use dot grouping, no decimals, and a trailing symbol."""

    assert formatters.format_currency(value, VI_VN) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1500, "$1,500.00"),
        (Decimal("0.125"), "$0.13"),
        (-2500, "-$2,500.00"),
    ],
)
def test_format_currency_english(value, expected):
    """Dollar amounts use comma grouping, two decimals, and a leading symbol."""

    assert formatters.format_currency(value, EN_US) == expected


@pytest.mark.parametrize("value", [None, "", "abc"])
def test_format_currency_blank_for_non_numbers(value):
    """Missing or non-numeric input renders as an empty string."""

    assert formatters.format_currency(value, VI_VN) == ""


def test_same_value_renders_differently_per_locale():
    """Locale is an explicit argument, so both renderings coexist."""

    assert formatters.format_number(Decimal("1234.5"), VI_VN, 1) == "1.234,5"
    assert formatters.format_number(Decimal("1234.5"), EN_US, 1) == "1,234.5"


def test_format_percentage():
    """Percentages keep one decimal by default."""

    assert formatters.format_percentage(12.5, VI_VN) == "12,5%"
    assert formatters.format_percentage(12.5, EN_US) == "12.5%"
    assert formatters.format_percentage(None, EN_US) == ""


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def test_format_date_uses_locale_pattern():
    """Date-times follow each locale's pattern."""

    moment = datetime(2024, 3, 15, 8, 30)

    assert formatters.format_date(moment, VI_VN) == "08:30 15/03/2024"
    assert formatters.format_date(moment, EN_US) == "03/15/2024 08:30 AM"


def test_format_date_parses_iso_strings():
    """ISO strings from the backend are accepted, including a ``Z`` suffix."""

    assert formatters.format_short_date("2024-03-05T10:00:00Z", VI_VN) == "05/03/2024"
    assert formatters.format_short_date(date(2024, 3, 5), EN_US) == "03/05/2024"


@pytest.mark.parametrize("value", [None, "", "not a date"])
def test_format_date_blank_for_missing_values(value):
    """Empty or unparseable dates render as an empty string."""

    assert formatters.format_date(value, VI_VN) == ""
    assert formatters.format_short_date(value, VI_VN) == ""


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


def test_format_status_label_translates_known_status():
    """Known statuses are translated for the locale and document kind."""

    assert formatters.format_status_label("Draft", DocumentKind.RECEIPT, VI_VN) == "Nháp"
    assert formatters.format_status_label(GoodsIssueStatus.IN_TRANSIT, DocumentKind.ISSUE, VI_VN) == "Đang vận chuyển"
    assert formatters.format_status_label("InTransit", "issue", EN_US) == "In transit"


def test_format_status_label_falls_back_to_raw_value():
    """Unknown statuses are shown as they are."""

    assert formatters.format_status_label("Archived", DocumentKind.RECEIPT, VI_VN) == "Archived"
    assert formatters.format_status_label(None, DocumentKind.RECEIPT, VI_VN) == ""


def test_format_active_flag():
    """Booleans and ``Active`` strings map to the locale's labels."""

    assert formatters.format_active_flag(True, VI_VN) == "Hoạt động"
    assert formatters.format_active_flag(False, VI_VN) == "Ngừng hoạt động"
    assert formatters.format_active_flag("Active", EN_US) == "Active"
    assert formatters.format_active_flag("Expired", EN_US) == "Inactive"
    assert formatters.format_active_flag(None, EN_US) == ""


def test_get_locale():
    """Presets are looked up by name; unknown names raise ``KeyError``."""

    assert formatters.get_locale("vi_VN") is VI_VN
    with pytest.raises(KeyError):
        formatters.get_locale("fr_FR")
