"""Transport layer for fetching spreadsheet contents.

Defines the Transport protocol and implementations:
- GoogleSheetsTransport: Production transport using Google Sheets API
- LocalFileTransport: Test transport reading from local fixture files
"""

from __future__ import annotations

import json
import ssl
import urllib.parse
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

import certifi
import httpx
from loguru import logger

# API constants
API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
DEFAULT_TIMEOUT = 60
METADATA_FIELDS = "spreadsheetId,properties.title,sheets.properties(title,index)"
# Cells are fetched as authored (formula text), not as computed values
VALUE_RENDER_OPTION = "FORMULA"


class TransportError(Exception):
    """Base exception for transport errors."""


class AuthenticationError(TransportError):
    """Raised when authentication fails (401/403)."""


class NotFoundError(TransportError):
    """Raised when spreadsheet is not found (404)."""


class APIError(TransportError):
    """Raised when the API returns an error."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class SheetInfo:
    """Information about a single sheet within a spreadsheet."""

    title: str
    index: int


@dataclass(frozen=True)
class SpreadsheetMetadata:
    """Metadata about a spreadsheet, including sheet information.

    Used to compute ranges for the values fetch.
    """

    spreadsheet_id: str
    title: str
    sheets: tuple[SheetInfo, ...]
    raw: dict[str, Any]


@dataclass(frozen=True)
class SpreadsheetValues:
    """Cell values of every sheet, in the same order as the metadata sheets."""

    spreadsheet_id: str
    grids: tuple[list[list[Any]], ...]
    raw: dict[str, Any]


class Transport(ABC):
    """Abstract base class for spreadsheet data transport.

    Implementations must provide methods to fetch metadata and values
    from a spreadsheet source (Google API, local files, etc.).
    """

    @abstractmethod
    async def get_metadata(self, spreadsheet_id: str) -> SpreadsheetMetadata:
        """Fetch spreadsheet metadata without cell data.

        Args:
            spreadsheet_id: The spreadsheet identifier

        Returns:
            SpreadsheetMetadata with sheet information
        """
        ...

    @abstractmethod
    async def get_values(
        self,
        spreadsheet_id: str,
        metadata: SpreadsheetMetadata,
    ) -> SpreadsheetValues:
        """Fetch the cell values of every sheet.

        Args:
            spreadsheet_id: The spreadsheet identifier
            metadata: Previously fetched metadata

        Returns:
            SpreadsheetValues with one grid per sheet
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        ...


class GoogleSheetsTransport(Transport):
    """Production transport that fetches data from Google Sheets API.

    Handles authentication, SSL, and HTTP communication.
    """

    def __init__(
        self,
        access_token: str,
        timeout: int = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            access_token: OAuth2 access token with spreadsheets.readonly scope
            timeout: Request timeout in seconds
            client: Preconfigured HTTP client (tests inject a mock transport)
        """
        self._access_token = access_token
        self._timeout = timeout
        if client is None:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            client = httpx.AsyncClient(
                timeout=timeout,
                verify=ssl_context,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        self._client = client

    async def get_metadata(self, spreadsheet_id: str) -> SpreadsheetMetadata:
        """Fetch spreadsheet metadata from Google Sheets API."""
        query = urllib.parse.urlencode({"fields": METADATA_FIELDS})
        url = f"{API_BASE}/{spreadsheet_id}?{query}"
        response = await self._request(url)
        return _parse_metadata(response, spreadsheet_id)

    async def get_values(
        self,
        spreadsheet_id: str,
        metadata: SpreadsheetMetadata,
    ) -> SpreadsheetValues:
        """Fetch every sheet's values in one batchGet call."""
        if not metadata.sheets:
            return SpreadsheetValues(spreadsheet_id=spreadsheet_id, grids=(), raw={})

        params: list[tuple[str, str]] = [
            ("valueRenderOption", VALUE_RENDER_OPTION),
            ("majorDimension", "ROWS"),
        ]
        # A quoted sheet title on its own selects the whole sheet
        params.extend(("ranges", _quote_sheet_title(s.title)) for s in metadata.sheets)

        url = f"{API_BASE}/{spreadsheet_id}/values:batchGet?" + urllib.parse.urlencode(
            params, quote_via=urllib.parse.quote
        )
        response = await self._request(url)
        return _parse_values(response, spreadsheet_id, metadata)

    async def _request(self, url: str) -> Any:
        """Make an authenticated GET request."""
        logger.debug(f"GET {url}")
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 401:
                raise AuthenticationError("Invalid or expired access token") from e
            if status == 403:
                raise AuthenticationError(
                    "Access denied. Check your scopes and permissions."
                ) from e
            if status == 404:
                raise NotFoundError(
                    "Spreadsheet not found. Check the ID and sharing permissions."
                ) from e
            body = e.response.text
            raise APIError(f"API error ({status}): {body}", status_code=status) from e
        except httpx.RequestError as e:
            raise TransportError(f"Network error: {e}") from e
        except json.JSONDecodeError as e:
            raise TransportError(f"Invalid JSON in API response: {e}") from e

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


class LocalFileTransport(Transport):
    """Test transport that reads from local fixture files.

    Expected directory structure:
        fixtures_dir/
            <spreadsheet_id>/
                metadata.json   (spreadsheets.get response)
                values.json     (values:batchGet response)
    """

    def __init__(self, fixtures_dir: Path) -> None:
        """Initialize the transport.

        Args:
            fixtures_dir: Directory containing one folder per spreadsheet
        """
        self._fixtures_dir = fixtures_dir

    async def get_metadata(self, spreadsheet_id: str) -> SpreadsheetMetadata:
        """Read metadata from local file."""
        response = self._read(spreadsheet_id, "metadata.json")
        return _parse_metadata(response, spreadsheet_id)

    async def get_values(
        self,
        spreadsheet_id: str,
        metadata: SpreadsheetMetadata,
    ) -> SpreadsheetValues:
        """Read values from local file."""
        response = self._read(spreadsheet_id, "values.json")
        return _parse_values(response, spreadsheet_id, metadata)

    def _read(self, spreadsheet_id: str, name: str) -> Any:
        path = self._fixtures_dir / spreadsheet_id / name
        if not path.exists():
            raise NotFoundError(f"Fixture file not found: {path}")
        try:
            result: Any = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise TransportError(f"Invalid JSON in {path}: {e}") from e
        return result

    async def close(self) -> None:
        """No-op for local file transport."""
        pass


def _parse_metadata(response: Any, spreadsheet_id: str) -> SpreadsheetMetadata:
    """Build SpreadsheetMetadata from a spreadsheets.get response.

    Raises:
        TransportError: If the response does not have the documented shape
    """
    if not isinstance(response, dict):
        raise TransportError("Malformed metadata response: expected a JSON object")
    raw_sheets = response.get("sheets", [])
    properties = response.get("properties", {})
    if not isinstance(raw_sheets, list) or not isinstance(properties, dict):
        raise TransportError("Malformed metadata response: unexpected field types")

    sheets: list[SheetInfo] = []
    for position, sheet in enumerate(raw_sheets):
        props = sheet.get("properties") if isinstance(sheet, dict) else None
        if not isinstance(props, dict):
            raise TransportError(
                f"Malformed metadata response: sheet {position} has no properties"
            )
        title = props.get("title")
        index = props.get("index", position)
        if not isinstance(title, str) or not isinstance(index, int):
            raise TransportError(
                f"Malformed metadata response: sheet {position} has no title or index"
            )
        sheets.append(SheetInfo(title=title, index=index))
    # Tab order
    sheets.sort(key=lambda s: s.index)

    return SpreadsheetMetadata(
        spreadsheet_id=response.get("spreadsheetId", spreadsheet_id),
        title=str(properties.get("title", "")),
        sheets=tuple(sheets),
        raw=response,
    )


def _parse_values(
    response: Any,
    spreadsheet_id: str,
    metadata: SpreadsheetMetadata,
) -> SpreadsheetValues:
    """Build SpreadsheetValues from a values:batchGet response.

    Value ranges come back in request order. Sheets with no data have no
    "values" key.

    Raises:
        TransportError: If the response does not have the documented shape
    """
    if not isinstance(response, dict):
        raise TransportError("Malformed values response: expected a JSON object")
    value_ranges = response.get("valueRanges", [])
    if not isinstance(value_ranges, list) or not all(
        isinstance(vr, dict) for vr in value_ranges
    ):
        raise TransportError("Malformed values response: expected a list of value ranges")
    if len(value_ranges) != len(metadata.sheets):
        raise TransportError(
            f"Expected {len(metadata.sheets)} value ranges, got {len(value_ranges)}"
        )
    grids = tuple(vr.get("values", []) for vr in value_ranges)
    return SpreadsheetValues(spreadsheet_id=spreadsheet_id, grids=grids, raw=response)


def _quote_sheet_title(title: str) -> str:
    """Quote a sheet title for use as a whole-sheet A1 range.

    Titles are always quoted: an unquoted title such as "Q1" or "AB12" would
    be read as a cell reference on the first sheet.
    """
    escaped = title.replace("'", "''")
    return f"'{escaped}'"
