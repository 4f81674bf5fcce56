"""Exceptions raised at the sheetdiff boundary.

The comparison core (reconcile, serialize, diff, render) is total and never
raises for well-formed input. Only id validation and document fetching fail.
"""

from __future__ import annotations

from typing import Any


class SheetDiffError(Exception):
    """Base exception for sheetdiff errors."""

    pass


class ValidationError(SheetDiffError):
    """Raised when a document identifier fails the allowed-character check.

    Identifiers may only contain letters, digits, hyphens and underscores.
    The comparison never starts when this is raised.
    """

    def __init__(self, document_id: str) -> None:
        self.document_id = document_id
        super().__init__(
            f"Invalid document ID '{document_id}': "
            "only letters, digits, '-' and '_' are allowed."
        )


class FetchError(SheetDiffError):
    """Raised when a document cannot be fetched or its payload is malformed."""

    def __init__(self, document_id: str, reason: str) -> None:
        self.document_id = document_id
        self.reason = reason
        super().__init__(f"Unable to fetch document '{document_id}': {reason}")


class SerializationError(SheetDiffError):
    """Raised when a cell value has no textual representation.

    Indicates the document source broke its contract: the Sheets API only
    returns strings, numbers, booleans or empty cells.
    """

    def __init__(self, value: Any, sheet_name: str | None = None) -> None:
        self.value = value
        self.sheet_name = sheet_name
        where = f" in sheet '{sheet_name}'" if sheet_name else ""
        super().__init__(
            f"Cannot serialize cell of type {type(value).__name__}{where}: {value!r}"
        )
