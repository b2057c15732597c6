"""Subtotal and document total computation.

All arithmetic is done on :class:`~decimal.Decimal` so that summing many small
line items never drifts the way binary floats do. Nothing here rounds; the
precision is whatever the inputs carry.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from . import log
from .models import TotalsResult, TransactionDocument, TransactionLine


def line_subtotal(line: TransactionLine) -> Decimal:
    """Return ``quantity * unit_price`` for one line (missing inputs count as 0)."""

    return line.subtotal


def document_total(details: Iterable[TransactionLine]) -> Decimal:
    """Sum the subtotals of ``details``; the result is independent of order."""

    return sum((line_subtotal(line) for line in details), Decimal("0"))


def compute_totals(document: TransactionDocument) -> TotalsResult:
    """Recompute every line subtotal and the document total.

    Values already present on the source payload are never trusted; the
    result is derived from quantities and unit prices alone.

    Args:
        document (TransactionDocument): Document whose lines should be summed.

    Returns:
        TotalsResult: Subtotals in detail order and their sum.
    """

    lines = [line_subtotal(line) for line in document.details]
    total = sum(lines, Decimal("0"))
    log.debug("Computed totals for %d lines: total=%s", len(lines), total)
    return TotalsResult(lines=lines, total=total)


__all__ = ["line_subtotal", "document_total", "compute_totals"]
