"""Enumerations and business constants shared across the warehouse modules.

Centralises the document lifecycle states, validation bounds, and the
user-facing validation messages so that validators, status gates, exporters,
and the CLI all rely on a single source of truth.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum


class DocumentKind(str, Enum):
    """Enumerate the stock transaction document types."""

    RECEIPT = "receipt"
    ISSUE = "issue"


class GoodsReceiptStatus(str, Enum):
    """Lifecycle states of an inbound goods receipt."""

    DRAFT = "Draft"
    PENDING = "Pending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class GoodsIssueStatus(str, Enum):
    """Lifecycle states of an outbound goods issue."""

    DRAFT = "Draft"
    AWAITING_APPROVAL = "AwaitingApproval"
    APPROVED = "Approved"
    IN_PREPARATION = "InPreparation"
    READY_FOR_DELIVERY = "ReadyForDelivery"
    IN_TRANSIT = "InTransit"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    REJECTED = "Rejected"


# Older screens label the preparation step "Preparing".
GOODS_ISSUE_STATUS_ALIASES = {
    "Preparing": GoodsIssueStatus.IN_PREPARATION,
}


QUANTITY_MIN = 1
QUANTITY_MAX = 999_999
UNIT_PRICE_MIN = Decimal("0.01")
UNIT_PRICE_MAX = Decimal("999999999.99")
MIN_DETAILS = 1

DEFAULT_COLUMN_WIDTH = 15


MSG_SELECT_PRODUCT = "Please select a product"
MSG_QUANTITY_RANGE = "Quantity must be between {min:,} and {max:,}"
MSG_UNIT_PRICE_RANGE = "Unit price must be between {min:,} and {max:,}"
MSG_SUPPLIER_REQUIRED = "Please select a supplier"
MSG_CUSTOMER_REQUIRED = "Please select a customer"
MSG_DETAILS_REQUIRED = "At least one product line is required"
MSG_DUPLICATE_PRODUCT = "Duplicate products are not allowed"
MSG_LINE_PREFIX = "Line {index}: {message}"


__all__ = [
    "DocumentKind",
    "GoodsReceiptStatus",
    "GoodsIssueStatus",
    "GOODS_ISSUE_STATUS_ALIASES",
    "QUANTITY_MIN",
    "QUANTITY_MAX",
    "UNIT_PRICE_MIN",
    "UNIT_PRICE_MAX",
    "MIN_DETAILS",
    "DEFAULT_COLUMN_WIDTH",
    "MSG_SELECT_PRODUCT",
    "MSG_QUANTITY_RANGE",
    "MSG_UNIT_PRICE_RANGE",
    "MSG_SUPPLIER_REQUIRED",
    "MSG_CUSTOMER_REQUIRED",
    "MSG_DETAILS_REQUIRED",
    "MSG_DUPLICATE_PRODUCT",
    "MSG_LINE_PREFIX",
]
