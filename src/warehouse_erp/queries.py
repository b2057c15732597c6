"""In-memory list helpers for document tables: sort, filter, and search."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, List, Optional

from .constants import DocumentKind
from .models import TransactionDocument
from .status_gate import parse_status

RECEIPT_NUMBER_PREFIX = "GR"


def sort_by_date(documents: Iterable[TransactionDocument]) -> List[TransactionDocument]:
    """Return documents newest first.

    Undated documents are placed after every dated one and keep their input
    order. The input is never reordered in place.
    """

    def key(document: TransactionDocument) -> tuple[int, float]:
        moment = document.document_date
        if moment is None:
            return (1, 0.0)
        return (0, -moment.timestamp())

    return sorted(documents, key=key)


def filter_by_status(documents: Iterable[TransactionDocument], status: Any) -> List[TransactionDocument]:
    """Keep documents whose status matches ``status`` for their own kind."""

    matches: List[TransactionDocument] = []
    for document in documents:
        wanted = parse_status(status, document.kind)
        if wanted is not None and parse_status(document.status, document.kind) is wanted:
            matches.append(document)
    return matches


def search_documents(documents: Iterable[TransactionDocument], term: Optional[str]) -> List[TransactionDocument]:
    """Case-insensitive substring search over number, party name, and notes.

    A blank term returns every document.
    """

    documents = list(documents)
    needle = (term or "").strip().lower()
    if not needle:
        return documents
    return [
        document
        for document in documents
        if any(
            needle in value.lower()
            for value in (document.number, document.party_name, document.notes)
            if value
        )
    ]


def receipt_number_prefix(today: Optional[date] = None) -> str:
    """Return the ``GRYYYYMMDD`` prefix receipts created on ``today`` share."""

    today = today or datetime.now().date()
    return f"{RECEIPT_NUMBER_PREFIX}{today:%Y%m%d}"


def normalize_number_for_search(number: str) -> str:
    return number.strip().upper()


def documents_of_kind(documents: Iterable[TransactionDocument], kind: DocumentKind) -> List[TransactionDocument]:
    kind = DocumentKind(kind)
    return [document for document in documents if document.kind is kind]


__all__ = [
    "sort_by_date",
    "filter_by_status",
    "search_documents",
    "receipt_number_prefix",
    "normalize_number_for_search",
    "documents_of_kind",
]
