"""HTTP client for the warehouse REST backend.

Network failures are treated as an ordinary outcome: every call returns a
:class:`DocumentResult` and logs what went wrong instead of raising. Each
call is a single attempt; there is no retry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import requests

from . import log
from .constants import DocumentKind
from .models import TransactionDocument, document_from_mapping, document_to_payload
from .validation import validate_document

DOCUMENT_PATHS: Mapping[DocumentKind, str] = {
    DocumentKind.RECEIPT: "/goodsreceipt",
    DocumentKind.ISSUE: "/GoodsIssue",
}

LOOKUP_PATHS: Mapping[str, str] = {
    "product": "/Product",
    "supplier": "/Supplier",
    "customer": "/Customer",
}


@dataclass(frozen=True)
class DocumentResult:
    """Outcome of a backend call.

    ``document`` holds the parsed record on success. On failure ``error``
    carries a readable reason, ``status_code`` the HTTP status when one was
    received, and ``validation_errors`` the messages that stopped a
    submission before it reached the network.
    """

    ok: bool
    document: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    validation_errors: tuple[str, ...] = ()


def _unwrap(body: Any) -> Any:
    # Some endpoints answer with {"success": ..., "data": ..., "message": ...}.
    if isinstance(body, dict) and "success" in body and "data" in body:
        return body["data"]
    return body


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "title", "error"):
            if body.get(key):
                return str(body[key])
    return f"Backend returned status {response.status_code}"


class BackendClient:
    """Thin wrapper over ``requests`` for documents and catalog lookups."""

    def __init__(self, base_url: str, timeout: float = 10, token: Optional[str] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token = token

    @classmethod
    def from_settings(cls, settings: Any, token: Optional[str] = None) -> "BackendClient":
        return cls(settings.backend_url, timeout=settings.timeout_seconds, token=token)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Mapping[str, Any]] = None,
        kind: Optional[DocumentKind] = None,
    ) -> DocumentResult:
        url = f"{self.base_url}{path}"
        try:
            log.info("%s %s", method, url)
            response = requests.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            log.error("Error calling backend %s %s: %s", method, url, exc)
            return DocumentResult(ok=False, error=str(exc))

        if not response.ok:
            message = _error_message(response)
            log.error(
                "Backend returned status %s for %s %s. Response: %s",
                response.status_code,
                method,
                url,
                response.text[:500],
            )
            return DocumentResult(ok=False, error=message, status_code=response.status_code)

        if not response.content:
            return DocumentResult(ok=True, status_code=response.status_code)
        try:
            body = _unwrap(response.json())
        except ValueError:
            log.error("Backend sent a non-JSON body for %s %s", method, url)
            return DocumentResult(
                ok=False,
                error="Backend response is not valid JSON",
                status_code=response.status_code,
            )
        if kind is not None and isinstance(body, Mapping):
            body = document_from_mapping(body, kind)
        return DocumentResult(ok=True, document=body, status_code=response.status_code)

    def get_by_id(self, resource: str, record_id: int) -> DocumentResult:
        """Fetch one product, supplier, or customer record.

        A 404 comes back as a failed result with ``status_code`` 404; the
        record itself is returned as the raw JSON mapping.

        Raises:
            KeyError: If ``resource`` is not a known lookup.
        """

        try:
            path = LOOKUP_PATHS[resource.lower()]
        except KeyError as exc:
            raise KeyError(f"Unknown lookup resource: {resource}") from exc
        return self._request("GET", f"{path}/{record_id}")

    def get_document(self, kind: DocumentKind, document_id: int) -> DocumentResult:
        kind = DocumentKind(kind)
        return self._request("GET", f"{DOCUMENT_PATHS[kind]}/{document_id}", kind=kind)

    def create_document(self, document: TransactionDocument) -> DocumentResult:
        return self._request(
            "POST",
            DOCUMENT_PATHS[document.kind],
            payload=document_to_payload(document),
            kind=document.kind,
        )

    def update_document(self, document_id: int, document: TransactionDocument) -> DocumentResult:
        payload = document_to_payload(document)
        id_key = "goodsReceiptId" if document.kind is DocumentKind.RECEIPT else "goodsIssueId"
        payload[id_key] = document_id
        return self._request(
            "PUT",
            f"{DOCUMENT_PATHS[document.kind]}/{document_id}",
            payload=payload,
            kind=document.kind,
        )

    def delete_document(self, kind: DocumentKind, document_id: int) -> DocumentResult:
        kind = DocumentKind(kind)
        return self._request("DELETE", f"{DOCUMENT_PATHS[kind]}/{document_id}")


def submit_document(
    client: BackendClient,
    document: TransactionDocument,
    document_id: Optional[int] = None,
) -> DocumentResult:
    """Validate ``document`` and, when valid, create or update it remotely.

    The backend is not contacted when validation fails. ``document_id`` (or
    the document's own id) selects an update; otherwise a new document is
    created. The caller's document is never modified, whatever the outcome.

    Args:
        client (BackendClient): Client used for the single submission attempt.
        document (TransactionDocument): Document to submit.
        document_id (int | None): Id of the document to update.

    Returns:
        DocumentResult: The backend outcome, or a failed result carrying the
            validation messages.
    """

    errors = validate_document(document)
    if errors:
        log.info("Submission of %s document blocked by %d validation error(s)", document.kind.value, len(errors))
        return DocumentResult(ok=False, error=errors[0], validation_errors=tuple(errors))

    target_id = document_id if document_id is not None else document.document_id
    if target_id is not None:
        result = client.update_document(target_id, document)
    else:
        result = client.create_document(document)
    if not result.ok:
        log.warning("Backend rejected %s document: %s", document.kind.value, result.error)
    return result


__all__ = [
    "DocumentResult",
    "BackendClient",
    "DOCUMENT_PATHS",
    "LOOKUP_PATHS",
    "submit_document",
]
