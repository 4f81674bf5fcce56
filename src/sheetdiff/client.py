"""SheetsDiffClient - Main API for sheetdiff.

Fetches two spreadsheets through a Transport and compares them.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from sheetdiff.config import Settings, get_settings
from sheetdiff.engine import compare_documents
from sheetdiff.exceptions import FetchError
from sheetdiff.ids import validate_document_id
from sheetdiff.models import ComparisonResult, Document, Sheet
from sheetdiff.transport import (
    GoogleSheetsTransport,
    LocalFileTransport,
    Transport,
    TransportError,
)


class SheetsDiffClient:
    """Client for comparing two Google Sheets.

    Example:
        >>> from sheetdiff.transport import GoogleSheetsTransport
        >>> transport = GoogleSheetsTransport(access_token="ya29...")
        >>> client = SheetsDiffClient(transport)
        >>> result = await client.compare("1BxiMVs0XRA5...", "1CyjNWt1YSB6...")
        >>> result.reconciliation.same_set
        True
    """

    def __init__(self, transport: Transport, settings: Settings | None = None) -> None:
        """Initialize the client.

        Args:
            transport: Transport implementation for fetching spreadsheet data
            settings: Comparison settings (defaults to the process settings)
        """
        self._transport = transport
        self._settings = settings or get_settings()

    async def fetch_document(self, document_id: str) -> Document:
        """Fetch a spreadsheet and convert it to a Document.

        Raises:
            FetchError: If the transport fails or returns malformed data
        """
        logger.info(f"Fetching spreadsheet {document_id}")
        try:
            metadata = await self._transport.get_metadata(document_id)
            values = await self._transport.get_values(document_id, metadata)
        except TransportError as e:
            raise FetchError(document_id, str(e)) from e

        try:
            sheets = tuple(
                Sheet.from_rows(info.title, _check_grid(grid))
                for info, grid in zip(metadata.sheets, values.grids, strict=True)
            )
        except (TypeError, ValueError) as e:
            raise FetchError(document_id, f"malformed sheet data: {e}") from e

        logger.debug(f"Fetched {document_id}: {len(sheets)} sheet(s)")
        return Document(document_id=document_id, sheets=sheets, title=metadata.title)

    async def compare(self, old_id: str, new_id: str) -> ComparisonResult:
        """Validate both ids, fetch both spreadsheets, and compare them.

        Args:
            old_id: Baseline spreadsheet id
            new_id: Spreadsheet compared against the baseline

        Raises:
            ValidationError: If either id has disallowed characters
            FetchError: If either spreadsheet cannot be fetched
        """
        validate_document_id(old_id)
        validate_document_id(new_id)

        old, new = await asyncio.gather(
            self.fetch_document(old_id),
            self.fetch_document(new_id),
        )
        return await compare_documents(
            old,
            new,
            max_workers=self._settings.max_workers,
            timeout=self._settings.diff_timeout,
        )


def create_transport(settings: Settings, access_token: str | None = None) -> Transport:
    """Pick the transport the settings call for.

    A fixtures directory selects LocalFileTransport; otherwise an access
    token is required for GoogleSheetsTransport.

    Raises:
        ValueError: If neither a fixtures directory nor a token is available
    """
    if settings.fixtures_dir is not None:
        return LocalFileTransport(settings.fixtures_dir)
    token = access_token or settings.access_token
    if not token:
        raise ValueError(
            "No access token configured. Set SHEETDIFF_ACCESS_TOKEN or pass --token."
        )
    return GoogleSheetsTransport(access_token=token, timeout=settings.request_timeout)


def _check_grid(grid: Any) -> list[list[Any]]:
    """Reject payloads that are not a list of row lists."""
    if not isinstance(grid, list) or not all(isinstance(row, list) for row in grid):
        raise TypeError("expected a list of rows")
    return grid
