"""CLI entry point for sheetdiff.

Usage:
    python -m sheetdiff compare <old_id_or_url> <new_id_or_url>
    python -m sheetdiff serve [--host HOST] [--port PORT]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from sheetdiff.client import SheetsDiffClient, create_transport
from sheetdiff.config import get_settings
from sheetdiff.exceptions import SheetDiffError
from sheetdiff.ids import parse_spreadsheet_id, validate_document_id
from sheetdiff.logging import configure_logging
from sheetdiff.models import ComparisonResult
from sheetdiff.render import render_ansi, render_plain_text, render_reconciliation

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_STRUCTURE_MISMATCH = 2


def print_result(result: ComparisonResult, *, color: bool) -> None:
    """Print the structural report followed by one diff block per sheet."""
    print(f"\nComparing sheet {result.old_id} and {result.new_id}")
    print("\nChecking Spreadsheets have the same number of sheets and sheet names")
    print(render_reconciliation(result.reconciliation))

    render = render_ansi if color else render_plain_text
    for report in result.diffs:
        print(f"\nINFO: Checking {report.sheet_name}")
        print(render(report.ops))


async def cmd_compare(args: argparse.Namespace) -> int:
    """Compare two spreadsheets and print the differences."""
    settings = get_settings()
    if args.fixtures:
        settings = settings.model_copy(update={"fixtures_dir": Path(args.fixtures)})

    old_id = parse_spreadsheet_id(args.old)
    new_id = parse_spreadsheet_id(args.new)

    try:
        validate_document_id(old_id)
        validate_document_id(new_id)
        transport = create_transport(settings, access_token=args.token)
    except (SheetDiffError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    client = SheetsDiffClient(transport, settings)
    try:
        result = await client.compare(old_id, new_id)
    except SheetDiffError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        await transport.close()

    color = args.color if args.color is not None else sys.stdout.isatty()
    print_result(result, color=color)

    if args.strict and not result.structure_matches:
        print("\nSpreadsheets have a different sheet structure", file=sys.stderr)
        return EXIT_STRUCTURE_MISMATCH
    return EXIT_OK


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the comparison web service."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "sheetdiff.web:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheetdiff",
        description="Compare the sheets and cell contents of two Google Sheets",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # compare subcommand
    compare_parser = subparsers.add_parser(
        "compare",
        help="Compare two spreadsheets",
    )
    compare_parser.add_argument(
        "old",
        help="Old spreadsheet ID or full Google Sheets URL",
    )
    compare_parser.add_argument(
        "new",
        help="New spreadsheet ID or full Google Sheets URL",
    )
    compare_parser.add_argument(
        "--token",
        default=None,
        help="OAuth2 access token (defaults to SHEETDIFF_ACCESS_TOKEN)",
    )
    compare_parser.add_argument(
        "--fixtures",
        default=None,
        help="Read spreadsheets from a local fixtures directory",
    )
    compare_parser.add_argument(
        "--color",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Colour the diff output (default: when stdout is a terminal)",
    )
    compare_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 2 when the sheet names or order differ",
    )
    compare_parser.set_defaults(func=cmd_compare)

    # serve subcommand
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the comparison web service",
    )
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Port")
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    configure_logging(
        is_production=settings.is_production,
        log_level="DEBUG" if args.verbose else "WARNING",
    )

    if args.command == "serve":
        return cmd_serve(args)
    result: int = asyncio.run(args.func(args))
    return result


if __name__ == "__main__":
    sys.exit(main())
