"""sheetdiff - Compare two versions of a Google Sheets spreadsheet.

Reconciles the sheet structure of two spreadsheets and diffs each matched
sheet's cell contents at character level.
"""

__version__ = "0.1.0"

from sheetdiff.client import SheetsDiffClient
from sheetdiff.diff import diff_sheets
from sheetdiff.engine import compare_documents, compare_documents_sync
from sheetdiff.exceptions import (
    FetchError,
    SerializationError,
    SheetDiffError,
    ValidationError,
)
from sheetdiff.models import (
    ComparisonResult,
    DiffKind,
    DiffOp,
    DiffReport,
    Document,
    ReconciliationEntry,
    ReconciliationReport,
    Sheet,
    SheetStatus,
)
from sheetdiff.render import render_ansi, render_markup, render_plain_text
from sheetdiff.serializer import serialize, stringify_cell
from sheetdiff.transport import (
    APIError,
    AuthenticationError,
    GoogleSheetsTransport,
    LocalFileTransport,
    NotFoundError,
    Transport,
    TransportError,
)

__all__ = [
    "APIError",
    "AuthenticationError",
    "ComparisonResult",
    "DiffKind",
    "DiffOp",
    "DiffReport",
    "Document",
    "FetchError",
    "GoogleSheetsTransport",
    "LocalFileTransport",
    "NotFoundError",
    "ReconciliationEntry",
    "ReconciliationReport",
    "SerializationError",
    "Sheet",
    "SheetDiffError",
    "SheetStatus",
    "SheetsDiffClient",
    "Transport",
    "TransportError",
    "ValidationError",
    "__version__",
    "compare_documents",
    "compare_documents_sync",
    "diff_sheets",
    "render_ansi",
    "render_markup",
    "render_plain_text",
    "serialize",
    "stringify_cell",
]
