"""Command-line entry points for the warehouse toolkit.

The CLI only wires argparse to the library: it reads JSON documents from
disk, hands them to the validation, totals, status-gate, export, and
submission modules, and prints the results. Every sub-command is described
by a :class:`CommandSpec` so that tests can build the parser and the command
table without running anything.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, MutableMapping, Optional, Sequence

from . import config, log
from .constants import DocumentKind
from .export import ExportError, write_export
from .formatters import LocaleConfig, format_currency, get_locale
from .models import TransactionDocument, document_from_mapping
from .reports import build_document_export, write_document_pdf
from .services import BackendClient, submit_document
from .status_gate import can_delete, can_edit, parse_status
from .totals import compute_totals
from .validation import validate_document

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID = 2
EXIT_MISSING_FILE = 3
EXIT_EXPORT_ERROR = 4


@dataclass(frozen=True)
class CliContext:
    """Settings and locale shared by every sub-command."""

    settings: Optional[config.ConfigSettings]
    locale: LocaleConfig


@dataclass(frozen=True)
class CommandSpec:
    """Describe how a CLI sub-command is configured and executed."""

    name: str
    help_text: str
    register: Callable[[argparse._SubParsersAction[argparse.ArgumentParser]], argparse.ArgumentParser]
    execute: Callable[[CliContext, argparse.Namespace], int]


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="warehouse-cli",
        description="Validate, total, and export goods receipts and goods issues.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional path to config.ini (searched upwards from the current directory by default).",
    )
    parser.add_argument(
        "--locale",
        default=None,
        help="Display locale (vi_VN or en_US); overrides [Locale] Name.",
    )
    return parser


def _add_kind_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in DocumentKind],
        default=DocumentKind.RECEIPT.value,
        help="Document type (default: receipt).",
    )


def configure_subcommands(
    parser: argparse.ArgumentParser,
) -> Mapping[str, CommandSpec]:
    """Wire all CLI sub-commands onto the supplied parser."""
    subparsers = parser.add_subparsers(dest="command", required=True, title="commands")
    specs = [
        register_validate_command(subparsers),
        register_totals_command(subparsers),
        register_gate_command(subparsers),
        register_export_command(subparsers),
        register_submit_command(subparsers),
    ]
    for spec in specs:
        spec.register(subparsers)
    return build_command_table(specs)


def register_validate_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``validate``."""
    name = "validate"
    help_text = "Check a JSON document and list every problem found."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        _add_kind_argument(parser)
        parser.add_argument("file", type=Path, help="JSON file holding one document.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_validate)


def register_totals_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``totals``."""
    name = "totals"
    help_text = "Print line subtotals and the document total."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        _add_kind_argument(parser)
        parser.add_argument("file", type=Path, help="JSON file holding one document.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_totals)


def register_gate_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``gate``."""
    name = "gate"
    help_text = "Show whether a status allows editing and deleting."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        _add_kind_argument(parser)
        parser.add_argument("status", help="Lifecycle status, e.g. Draft.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_gate)


def register_export_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``export``."""
    name = "export"
    help_text = "Export a JSON list of documents to CSV, Excel, or PDF, or print one document as a PDF slip."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        _add_kind_argument(parser)
        parser.add_argument("--format", dest="fmt", choices=["csv", "xlsx", "pdf"], default=None, help="List format (xlsx by default).")
        parser.add_argument("--single", action="store_true", help="Render one JSON document as a PDF slip.")
        parser.add_argument("--output", type=Path, default=None, help="Target directory ([Export] OutputDir by default).")
        parser.add_argument("--title", default=None, help="Override the list title.")
        parser.add_argument("--no-summary", action="store_true", help="Leave out the summary block.")
        parser.add_argument("file", type=Path, help="JSON file holding a list of documents, or one with --single.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_export)


def register_submit_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``submit``."""
    name = "submit"
    help_text = "Validate a JSON document and send it to the backend."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        _add_kind_argument(parser)
        parser.add_argument("--id", dest="document_id", type=int, default=None, help="Update this document instead of creating one.")
        parser.add_argument("--token", default=None, help="Bearer token for the backend.")
        parser.add_argument("file", type=Path, help="JSON file holding one document.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_submit)


def load_cli_context(config_path: Optional[Path] = None, locale_name: Optional[str] = None) -> CliContext:
    """Resolve settings and locale for CLI operations.

    An explicit ``config_path`` must exist. Without one, a discoverable
    ``config.ini`` is used when present and built-in defaults otherwise.
    """
    settings: Optional[config.ConfigSettings]
    if config_path is not None:
        settings = config.load_settings(Path(config_path))
    else:
        try:
            settings = config.load_settings()
        except FileNotFoundError:
            log.debug("No config.ini found; using built-in defaults")
            settings = None
    name = locale_name or (settings.locale_name if settings else config.DEFAULT_LOCALE)
    return CliContext(settings=settings, locale=get_locale(name))


def dispatch_command(
    context: CliContext,
    args: argparse.Namespace,
    command_table: Mapping[str, CommandSpec],
) -> int:
    """Dispatch the parsed arguments to the configured executor."""
    if not hasattr(args, "command") or args.command is None:
        raise KeyError("No command specified")
    spec = command_table.get(args.command)
    if spec is None:
        raise KeyError(f"Unknown command: {args.command}")
    return spec.execute(context, args)


def build_command_table(
    specs: Iterable[CommandSpec],
) -> MutableMapping[str, CommandSpec]:
    """Build an index of command specifications keyed by command name."""
    table: Dict[str, CommandSpec] = {}
    for spec in specs:
        if spec.name in table:
            raise ValueError(f"Duplicate command name: {spec.name}")
        table[spec.name] = spec
    return table


def read_json(path: Path) -> Any:
    """Load a UTF-8 JSON file, raising ``FileNotFoundError`` when absent."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


def load_document(path: Path, kind: DocumentKind) -> TransactionDocument:
    """Read one document of ``kind`` from ``path``."""
    raw = read_json(path)
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected a JSON object in {path}")
    return document_from_mapping(raw, kind)


def load_documents(path: Path, kind: DocumentKind) -> List[TransactionDocument]:
    """Read a list of documents; a single JSON object counts as a list of one."""
    raw = read_json(path)
    if isinstance(raw, Mapping):
        raw = [raw]
    if not isinstance(raw, list):
        raise ValueError(f"Expected a JSON list of documents in {path}")
    return [document_from_mapping(item, kind) for item in raw]


def run_validate(context: CliContext, args: argparse.Namespace) -> int:
    """Print validation messages; exit 2 when there are any."""
    document = load_document(args.file, DocumentKind(args.kind))
    errors = validate_document(document)
    if not errors:
        print("OK")
        return EXIT_OK
    for message in errors:
        print(message)
    log.info("Validation of '%s' failed with %d error(s)", args.file, len(errors))
    return EXIT_INVALID


def run_totals(context: CliContext, args: argparse.Namespace) -> int:
    """Print every line subtotal followed by the document total."""
    document = load_document(args.file, DocumentKind(args.kind))
    result = compute_totals(document)
    for index, subtotal in enumerate(result.lines, start=1):
        print(f"{index}: {format_currency(subtotal, context.locale)}")
    print(f"Total: {format_currency(result.total, context.locale)}")
    return EXIT_OK


def run_gate(context: CliContext, args: argparse.Namespace) -> int:
    """Print the edit/delete permissions for a status."""
    kind = DocumentKind(args.kind)
    if parse_status(args.status, kind) is None:
        log.warning("Unrecognized %s status '%s'", kind.value, args.status)
    print(f"can_edit: {str(can_edit(args.status, kind)).lower()}")
    print(f"can_delete: {str(can_delete(args.status, kind)).lower()}")
    return EXIT_OK


def run_export(context: CliContext, args: argparse.Namespace) -> int:
    """Export a document list, or one document slip, and print the written path."""
    kind = DocumentKind(args.kind)
    if args.output is not None:
        directory = args.output
    elif context.settings is not None:
        directory = context.settings.output_dir
    else:
        directory = Path.cwd() / config.DEFAULT_OUTPUT_DIR

    if args.single:
        if args.fmt not in (None, "pdf"):
            raise ValueError(f"Single document slips are PDF only, not '{args.fmt}'")
        target = write_document_pdf(load_document(args.file, kind), context.locale, directory)
        print(target)
        return EXIT_OK

    documents = load_documents(args.file, kind)
    request = build_document_export(
        documents,
        kind,
        context.locale,
        title=args.title,
        show_summary=not args.no_summary,
    )
    target = write_export(request, args.fmt or "xlsx", directory)
    print(target)
    return EXIT_OK


def run_submit(context: CliContext, args: argparse.Namespace) -> int:
    """Validate and send a document; exit 2 on validation failure."""
    if context.settings is None:
        raise FileNotFoundError(f"Configuration file not found: {config.CONFIG_FILE_NAME}")
    document = load_document(args.file, DocumentKind(args.kind))
    client = BackendClient.from_settings(context.settings, token=args.token)
    result = submit_document(client, document, document_id=args.document_id)
    if result.validation_errors:
        for message in result.validation_errors:
            print(message)
        return EXIT_INVALID
    if not result.ok:
        print(f"Submission failed: {result.error}")
        return EXIT_FAILURE
    number = getattr(result.document, "number", None)
    print(f"Submitted{f' {number}' if number else ''}")
    return EXIT_OK


def handle_cli_error(error: Exception) -> int:
    """Convert raised exceptions into user-friendly exit codes."""
    if isinstance(error, ExportError):
        log.error("%s", error)
        return EXIT_EXPORT_ERROR
    if isinstance(error, FileNotFoundError):
        log.error("%s", error)
        return EXIT_MISSING_FILE
    log.error("%s", error)
    return EXIT_FAILURE


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point that orchestrates parsing and execution."""
    parser = build_parser()
    command_table = configure_subcommands(parser)
    args = parser.parse_args(argv)
    try:
        context = load_cli_context(getattr(args, "config", None), getattr(args, "locale", None))
        return dispatch_command(context, args, command_table)
    except Exception as error:  # pragma: no cover - centralised error handler tested separately
        return handle_cli_error(error)
