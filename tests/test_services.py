"""Tests for the backend client and document submission."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

import pytest
import requests

from warehouse_erp import services
from warehouse_erp.constants import DocumentKind
from warehouse_erp.services import BackendClient, DocumentResult


class FakeResponse:
    """Minimal stand-in for :class:`requests.Response`."""

    def __init__(self, status_code: int = 200, body: Any = None, raw: bytes | None = None) -> None:
        self.status_code = status_code
        self.ok = status_code < 400
        if raw is not None:
            self.content = raw
        else:
            self.content = b"" if body is None else json.dumps(body).encode("utf-8")
        self.text = self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.text)


@pytest.fixture
def recorded_calls(monkeypatch):
    """Patch ``requests.request`` and record every call made through it.

    Tests queue responses (or exceptions) in ``recorded_calls["responses"]``.
    """

    state: dict[str, list] = {"calls": [], "responses": []}

    def fake_request(method, url, **kwargs):
        state["calls"].append({"method": method, "url": url, **kwargs})
        outcome = state["responses"].pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(services.requests, "request", fake_request)
    return state


@pytest.fixture
def client() -> BackendClient:
    return BackendClient("http://backend.test/api/", timeout=3, token="secret")


# ---------------------------------------------------------------------------
# Client requests
# ---------------------------------------------------------------------------


def test_create_document_posts_payload(client, recorded_calls, document_factory, receipt_payload):
    """A new receipt is POSTed to the receipt endpoint with camelCase fields."""

    recorded_calls["responses"].append(FakeResponse(201, receipt_payload))
    document = document_factory(notes="Nhập thử")

    result = client.create_document(document)

    call = recorded_calls["calls"][0]
    assert call["method"] == "POST"
    assert call["url"] == "http://backend.test/api/goodsreceipt"
    assert call["timeout"] == 3
    assert call["headers"]["Authorization"] == "Bearer secret"
    assert call["json"] == {
        "supplierId": 5,
        "notes": "Nhập thử",
        "details": [{"productId": 1, "quantity": 10, "unitPrice": 1000.0}],
    }
    assert result.ok
    assert result.status_code == 201
    assert result.document.document_id == 42
    assert result.document.total_amount == Decimal("9500")


def test_update_document_puts_with_identifier(client, recorded_calls, document_factory):
    """Updates target the document URL and carry its id in the body."""

    recorded_calls["responses"].append(FakeResponse(204))
    document = document_factory(kind=DocumentKind.ISSUE, party_id=9, status="Draft")

    result = client.update_document(17, document)

    call = recorded_calls["calls"][0]
    assert call["method"] == "PUT"
    assert call["url"] == "http://backend.test/api/GoodsIssue/17"
    assert call["json"]["goodsIssueId"] == 17
    assert call["json"]["customerId"] == 9
    assert call["json"]["status"] == "Draft"
    assert result == DocumentResult(ok=True, status_code=204)


def test_delete_document(client, recorded_calls):
    """Deletes go to the kind-specific document URL."""

    recorded_calls["responses"].append(FakeResponse(200, {"success": True, "data": None}))

    result = client.delete_document("receipt", 8)

    assert recorded_calls["calls"][0]["method"] == "DELETE"
    assert recorded_calls["calls"][0]["url"] == "http://backend.test/api/goodsreceipt/8"
    assert result.ok
    assert result.document is None


def test_get_document_unwraps_envelope(client, recorded_calls, receipt_payload):
    """``{success, data}`` envelopes are unwrapped before parsing."""

    recorded_calls["responses"].append(FakeResponse(200, {"success": True, "data": receipt_payload, "message": ""}))

    result = client.get_document(DocumentKind.RECEIPT, 42)

    assert result.ok
    assert result.document.number == "GR20240315001"
    assert result.document.party_name == "Công ty Hòa Phát"


def test_get_by_id_returns_raw_record(client, recorded_calls):
    """Catalog lookups return the JSON mapping as received."""

    recorded_calls["responses"].append(FakeResponse(200, {"productId": 3, "name": "Thép"}))

    result = client.get_by_id("Product", 3)

    assert recorded_calls["calls"][0]["url"] == "http://backend.test/api/Product/3"
    assert result.document == {"productId": 3, "name": "Thép"}


def test_get_by_id_not_found(client, recorded_calls):
    """A 404 is a failed result carrying the status and backend message."""

    recorded_calls["responses"].append(FakeResponse(404, {"message": "Customer not found"}))

    result = client.get_by_id("customer", 99)

    assert not result.ok
    assert result.status_code == 404
    assert result.error == "Customer not found"


def test_get_by_id_rejects_unknown_resource(client):
    """Only product, supplier and customer lookups exist."""

    with pytest.raises(KeyError):
        client.get_by_id("warehouse", 1)


def test_error_without_json_body_reports_status(client, recorded_calls):
    """Non-JSON error bodies fall back to a status message."""

    recorded_calls["responses"].append(FakeResponse(500, raw=b"<html>oops</html>"))

    result = client.get_document(DocumentKind.ISSUE, 1)

    assert result.error == "Backend returned status 500"
    assert result.status_code == 500


def test_invalid_json_success_body(client, recorded_calls):
    """A 200 with a body that is not JSON is reported as a failure."""

    recorded_calls["responses"].append(FakeResponse(200, raw=b"not json"))

    result = client.get_document(DocumentKind.RECEIPT, 1)

    assert not result.ok
    assert result.error == "Backend response is not valid JSON"


def test_network_error_becomes_failed_result(client, recorded_calls):
    """Transport exceptions are caught and reported, not raised."""

    recorded_calls["responses"].append(requests.ConnectionError("connection refused"))

    result = client.get_document(DocumentKind.RECEIPT, 1)

    assert not result.ok
    assert result.status_code is None
    assert "connection refused" in result.error


def test_headers_without_token():
    """No Authorization header is sent without a token."""

    assert BackendClient("http://x")._headers() == {"Accept": "application/json"}


def test_from_settings():
    """The client takes its URL and timeout from loaded settings."""

    class Settings:
        backend_url = "http://configured/api"
        timeout_seconds = 7.5

    built = BackendClient.from_settings(Settings(), token="t")

    assert (built.base_url, built.timeout, built.token) == ("http://configured/api", 7.5, "t")


# ---------------------------------------------------------------------------
# submit_document
# ---------------------------------------------------------------------------


def test_submit_invalid_document_never_calls_backend(client, recorded_calls, document_factory):
    """Validation failures stop the submission before any request."""

    document = document_factory(party_id=None, details=[])

    result = services.submit_document(client, document)

    assert not result.ok
    assert recorded_calls["calls"] == []
    assert result.validation_errors == ("Please select a supplier", "At least one product line is required")
    assert result.error == "Please select a supplier"


def test_submit_creates_when_no_identifier(client, recorded_calls, document_factory, receipt_payload):
    """Documents without an id are created."""

    recorded_calls["responses"].append(FakeResponse(201, receipt_payload))

    result = services.submit_document(client, document_factory())

    assert result.ok
    assert recorded_calls["calls"][0]["method"] == "POST"


def test_submit_updates_known_document(client, recorded_calls, document_factory):
    """The document's own id selects an update."""

    recorded_calls["responses"].append(FakeResponse(204))

    result = services.submit_document(client, document_factory(document_id=12))

    assert result.ok
    assert recorded_calls["calls"][0]["url"].endswith("/goodsreceipt/12")


def test_rejected_submission_leaves_document_unchanged(client, recorded_calls, document_factory, line_factory):
    """A backend rejection is reported and the local document is untouched."""

    recorded_calls["responses"].append(FakeResponse(400, {"title": "Product is inactive"}))
    document = document_factory(details=[line_factory(quantity=3, unit_price="2500")], status="Draft")
    before = (document.details, document.status, document.total_amount)

    result = services.submit_document(client, document, document_id=5)

    assert not result.ok
    assert result.error == "Product is inactive"
    assert result.status_code == 400
    assert (document.details, document.status, document.total_amount) == before
    assert document.total_amount == Decimal("7500")
