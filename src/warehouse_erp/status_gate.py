"""Edit/delete permission lookups for document lifecycle states.

The permitted actions for every status live in one table per document kind.
Lookups never raise: an unknown status, a status from the other document
kind, or ``None`` all resolve to "not editable, not deletable".
"""

from __future__ import annotations

from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional, Union

from . import log
from .constants import (
    GOODS_ISSUE_STATUS_ALIASES,
    DocumentKind,
    GoodsIssueStatus,
    GoodsReceiptStatus,
)

DocumentStatus = Union[GoodsReceiptStatus, GoodsIssueStatus]

_STATUS_ENUMS: Mapping[DocumentKind, type[Enum]] = {
    DocumentKind.RECEIPT: GoodsReceiptStatus,
    DocumentKind.ISSUE: GoodsIssueStatus,
}

EDITABLE: Mapping[DocumentKind, FrozenSet[Enum]] = {
    DocumentKind.RECEIPT: frozenset({GoodsReceiptStatus.DRAFT, GoodsReceiptStatus.PENDING}),
    DocumentKind.ISSUE: frozenset({GoodsIssueStatus.DRAFT, GoodsIssueStatus.REJECTED}),
}

DELETABLE: Mapping[DocumentKind, FrozenSet[Enum]] = {
    DocumentKind.RECEIPT: frozenset({GoodsReceiptStatus.DRAFT, GoodsReceiptStatus.CANCELLED}),
    DocumentKind.ISSUE: frozenset(
        {GoodsIssueStatus.DRAFT, GoodsIssueStatus.CANCELLED, GoodsIssueStatus.REJECTED}
    ),
}

TERMINAL: Mapping[DocumentKind, FrozenSet[Enum]] = {
    DocumentKind.RECEIPT: frozenset({GoodsReceiptStatus.COMPLETED, GoodsReceiptStatus.CANCELLED}),
    DocumentKind.ISSUE: frozenset({GoodsIssueStatus.COMPLETED, GoodsIssueStatus.CANCELLED}),
}


def _as_kind(kind: Any) -> Optional[DocumentKind]:
    try:
        return DocumentKind(kind)
    except ValueError:
        return None


def parse_status(status: Any, kind: DocumentKind = DocumentKind.RECEIPT) -> Optional[DocumentStatus]:
    """Resolve ``status`` into the enum member of ``kind``.

    Accepts enum members and their string values. Goods issues also accept the
    legacy ``"Preparing"`` label. Anything else returns ``None``.
    """

    kind = _as_kind(kind)
    if status is None or kind is None:
        return None
    enum_type = _STATUS_ENUMS[kind]
    raw = status.value if isinstance(status, Enum) else status
    if not isinstance(raw, str):
        return None
    if kind is DocumentKind.ISSUE and raw in GOODS_ISSUE_STATUS_ALIASES:
        return GOODS_ISSUE_STATUS_ALIASES[raw]
    try:
        return enum_type(raw)  # type: ignore[return-value]
    except ValueError:
        log.debug("Unrecognized %s status '%s'", kind.value, raw)
        return None


def _lookup(table: Mapping[DocumentKind, FrozenSet[Enum]], status: Any, kind: Any) -> bool:
    kind = _as_kind(kind)
    if kind is None:
        return False
    member = parse_status(status, kind)
    return member is not None and member in table[kind]


def can_edit(status: Any, kind: DocumentKind = DocumentKind.RECEIPT) -> bool:
    """Return whether a document in ``status`` may still be edited.

    Receipts are editable while ``Draft`` or ``Pending``; issues while
    ``Draft`` or after being ``Rejected`` back to their creator.
    """

    return _lookup(EDITABLE, status, kind)


def can_delete(status: Any, kind: DocumentKind = DocumentKind.RECEIPT) -> bool:
    """Return whether a document in ``status`` may be deleted."""

    return _lookup(DELETABLE, status, kind)


def is_terminal(status: Any, kind: DocumentKind = DocumentKind.RECEIPT) -> bool:
    """Return whether ``status`` admits no further workflow transition.

    ``Rejected`` issues are not terminal: they can still be edited and
    resubmitted, so only ``Completed`` and ``Cancelled`` count for both kinds.
    """

    return _lookup(TERMINAL, status, kind)


__all__ = [
    "DocumentStatus",
    "EDITABLE",
    "DELETABLE",
    "TERMINAL",
    "parse_status",
    "can_edit",
    "can_delete",
    "is_terminal",
]
