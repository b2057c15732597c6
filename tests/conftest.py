"""Shared pytest fixtures and utilities for the warehouse ERP tests."""

from __future__ import annotations

import argparse
import json
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Sequence

import pytest

# Ensure source packages are importable without installation.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"

candidate_str = str(SRC_DIR)
if candidate_str not in sys.path:
    sys.path.insert(0, candidate_str)

from warehouse_erp import cli, export  # noqa: E402
from warehouse_erp.constants import DocumentKind  # noqa: E402
from warehouse_erp.models import (  # noqa: E402
    ExportColumn,
    ExportRequest,
    TransactionDocument,
    TransactionLine,
)

_CONFIG_TEMPLATE = (
    "[Backend]\n"
    "BaseUrl = {base_url}\n"
    "TimeoutSeconds = {timeout}\n\n"
    "[Locale]\n"
    "Name = {locale}\n\n"
    "[Export]\n"
    "OutputDir = {output_dir}\n"
)


@pytest.fixture(scope="session", autouse=True)
def _restore_sys_path() -> Iterator[None]:
    """Ensure sys.path modifications are undone after the test session."""

    original = sys.path.copy()
    try:
        yield
    finally:
        sys.path[:] = original


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the repository root path."""

    return PROJECT_ROOT


# ---------------------------------------------------------------------------
# Domain factories
# ---------------------------------------------------------------------------


@pytest.fixture
def line_factory() -> Callable[..., TransactionLine]:
    """Build valid lines with overridable fields."""

    def _make_line(
        product_id: int | None = 1,
        quantity: int | None = 10,
        unit_price: Decimal | str | None = Decimal("1000"),
        **extra: Any,
    ) -> TransactionLine:
        price = Decimal(unit_price) if isinstance(unit_price, str) else unit_price
        return TransactionLine(product_id=product_id, quantity=quantity, unit_price=price, **extra)

    return _make_line


@pytest.fixture
def document_factory(line_factory: Callable[..., TransactionLine]) -> Callable[..., TransactionDocument]:
    """Build documents; by default a valid receipt with one line."""

    def _make_document(
        *,
        kind: DocumentKind = DocumentKind.RECEIPT,
        party_id: int | None = 5,
        details: Sequence[TransactionLine] | None = None,
        **extra: Any,
    ) -> TransactionDocument:
        lines = tuple(details) if details is not None else (line_factory(),)
        return TransactionDocument(kind=kind, party_id=party_id, details=lines, **extra)

    return _make_document


@pytest.fixture
def sample_columns() -> list[ExportColumn]:
    """Three columns covering plain, formatted, and Vietnamese headers."""

    return [
        ExportColumn(key="sku", header="Mã SKU", width=20),
        ExportColumn(key="name", header="Tên sản phẩm", width=30),
        ExportColumn(key="price", header="Giá bán", formatter=lambda value: f"{value} đ"),
    ]


@pytest.fixture
def request_factory(sample_columns: list[ExportColumn]) -> Callable[..., ExportRequest]:
    """Build export requests around ``sample_columns``."""

    def _make_request(
        rows: Sequence[Mapping[str, Any]] = (),
        *,
        columns: Sequence[ExportColumn] | None = None,
        show_summary: bool = False,
        summary_data: Mapping[str, Any] | None = None,
        title: str = "Danh sách sản phẩm",
    ) -> ExportRequest:
        return ExportRequest(
            filename="danh-sach-san-pham",
            title=title,
            columns=list(columns) if columns is not None else sample_columns,
            rows=list(rows),
            show_summary=show_summary,
            summary_data=summary_data,
        )

    return _make_request


@pytest.fixture
def product_rows() -> Callable[[int], list[dict[str, Any]]]:
    """Return ``n`` product-like rows."""

    def _rows(count: int) -> list[dict[str, Any]]:
        return [
            {"sku": f"SKU-{index:03d}", "name": f"Sản phẩm {index}", "price": 1000 * (index + 1)}
            for index in range(count)
        ]

    return _rows


@pytest.fixture
def receipt_payload() -> dict[str, Any]:
    """A goods receipt as the backend returns it (camelCase keys)."""

    return {
        "goodsReceiptId": 42,
        "receiptNumber": "GR20240315001",
        "supplierId": 5,
        "supplierName": "Công ty Hòa Phát",
        "receiptDate": "2024-03-15T08:30:00Z",
        "status": "Draft",
        "notes": "Nhập hàng đầu tháng",
        "totalAmount": 1,
        "details": [
            {"productId": 1, "productName": "Thép cuộn", "quantity": 3, "unitPrice": 1500},
            {"productId": 2, "productName": "Xi măng", "quantity": 2, "unitPrice": 2500},
        ],
    }


@pytest.fixture
def recorded_pdf(monkeypatch: pytest.MonkeyPatch) -> dict[str, list]:
    """Record the text handed to reportlab paragraphs and tables, plus table widths."""

    recorded: dict[str, list] = {"paragraphs": [], "tables": [], "widths": []}
    real_paragraph = export.Paragraph
    real_table = export.Table

    def paragraph(text, style, *args, **kwargs):
        recorded["paragraphs"].append(text)
        return real_paragraph(text, style, *args, **kwargs)

    def table(data, *args, **kwargs):
        recorded["tables"].append(data)
        recorded["widths"].append(kwargs.get("colWidths"))
        return real_table(data, *args, **kwargs)

    monkeypatch.setattr(export, "Paragraph", paragraph)
    monkeypatch.setattr(export, "Table", table)
    return recorded


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config_factory(tmp_path: Path) -> Callable[..., Path]:
    """Write a ``config.ini`` into a fresh directory and return its path."""

    def _create_config(
        *,
        base_url: str = "http://backend.test/api",
        timeout: float = 5,
        locale: str = "vi_VN",
        output_dir: str = "exports",
        subdir: str = "bundle",
    ) -> Path:
        directory = tmp_path / subdir
        directory.mkdir(parents=True, exist_ok=True)
        config_path = directory / "config.ini"
        config_path.write_text(
            _CONFIG_TEMPLATE.format(
                base_url=base_url,
                timeout=timeout,
                locale=locale,
                output_dir=output_dir,
            ),
            encoding="utf-8",
        )
        return config_path

    return _create_config


# ---------------------------------------------------------------------------
# CLI layer fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_parser() -> argparse.ArgumentParser:
    """Return a fresh CLI parser instance for tests."""

    return argparse.ArgumentParser(prog="warehouse-cli", description="Warehouse CLI")


@pytest.fixture
def subparsers_action(
    cli_parser: argparse.ArgumentParser,
) -> argparse._SubParsersAction[argparse.ArgumentParser]:
    """Return the subparser action used to register commands."""

    return cli_parser.add_subparsers(dest="command")


@pytest.fixture
def command_spec_iterable() -> list[cli.CommandSpec]:
    """Provide a list of command specs for indexing tests."""

    def _make_spec(name: str) -> cli.CommandSpec:
        return cli.CommandSpec(
            name,
            f"{name} help",
            lambda subparsers: subparsers.add_parser(name),
            lambda *_: 0,
        )

    return [_make_spec("alpha"), _make_spec("beta"), _make_spec("gamma")]


@pytest.fixture
def json_file(tmp_path: Path) -> Callable[[Any, str], Path]:
    """Dump ``data`` as UTF-8 JSON into ``tmp_path`` and return the path."""

    def _write(data: Any, name: str = "document.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return path

    return _write

