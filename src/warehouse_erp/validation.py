"""Line-level and document-level validation for receipts and issues.

Validation failures are an expected outcome of user input, so nothing in this
module raises for them. Each validator returns a list of human-readable
messages and an empty list means the input is valid. Every rule is evaluated
independently so the caller can show all problems at once.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, List

from . import log
from .constants import (
    MIN_DETAILS,
    MSG_CUSTOMER_REQUIRED,
    MSG_DETAILS_REQUIRED,
    MSG_DUPLICATE_PRODUCT,
    MSG_LINE_PREFIX,
    MSG_QUANTITY_RANGE,
    MSG_SELECT_PRODUCT,
    MSG_SUPPLIER_REQUIRED,
    MSG_UNIT_PRICE_RANGE,
    QUANTITY_MAX,
    QUANTITY_MIN,
    UNIT_PRICE_MAX,
    UNIT_PRICE_MIN,
    DocumentKind,
)
from .models import TransactionDocument, TransactionLine


def validate_line(line: TransactionLine) -> List[str]:
    """Check one line for a selected product and in-range quantity and price.

    Args:
        line (TransactionLine): Line to check. Only ``product_id``,
            ``quantity``, and ``unit_price`` are inspected.

    Returns:
        list[str]: Zero to three messages, in product, quantity, price order.
    """

    errors: List[str] = []

    if not line.product_id:
        errors.append(MSG_SELECT_PRODUCT)

    quantity = line.quantity
    if quantity is None or quantity < QUANTITY_MIN or quantity > QUANTITY_MAX:
        errors.append(MSG_QUANTITY_RANGE.format(min=QUANTITY_MIN, max=QUANTITY_MAX))

    price = line.unit_price
    if price is None or price < UNIT_PRICE_MIN or price > UNIT_PRICE_MAX:
        errors.append(MSG_UNIT_PRICE_RANGE.format(min=UNIT_PRICE_MIN, max=UNIT_PRICE_MAX))

    return errors


def has_duplicate_products(details: Iterable[TransactionLine]) -> bool:
    """Return ``True`` when any product id appears on more than one line."""

    counts = Counter(line.product_id for line in details)
    return any(count > 1 for count in counts.values())


def remove_duplicate_products(details: Iterable[TransactionLine]) -> List[TransactionLine]:
    """Drop repeated product ids, keeping the first line for each product."""

    seen: set = set()
    unique: List[TransactionLine] = []
    for line in details:
        if line.product_id in seen:
            continue
        seen.add(line.product_id)
        unique.append(line)
    return unique


def validate_document(document: TransactionDocument) -> List[str]:
    """Validate a whole receipt or issue, including every one of its lines.

    A supplier is mandatory on receipts; the customer is optional on issues.
    Repeated products produce one message however many repeats there are.
    Line messages are prefixed with the 1-based line number.

    Args:
        document (TransactionDocument): Document to check.

    Returns:
        list[str]: Aggregated document and line messages; empty when valid.
    """

    errors: List[str] = []

    if document.kind is DocumentKind.RECEIPT and not document.party_id:
        errors.append(MSG_SUPPLIER_REQUIRED)
    elif document.kind is DocumentKind.ISSUE and document.party_id is not None and document.party_id <= 0:
        errors.append(MSG_CUSTOMER_REQUIRED)

    if len(document.details) < MIN_DETAILS:
        errors.append(MSG_DETAILS_REQUIRED)

    if has_duplicate_products(document.details):
        errors.append(MSG_DUPLICATE_PRODUCT)

    for index, line in enumerate(document.details, start=1):
        for message in validate_line(line):
            errors.append(MSG_LINE_PREFIX.format(index=index, message=message))

    if errors:
        log.debug(
            "Validation of %s document found %d problem(s)",
            document.kind.value,
            len(errors),
        )
    return errors


__all__ = [
    "validate_line",
    "validate_document",
    "has_duplicate_products",
    "remove_duplicate_products",
]
