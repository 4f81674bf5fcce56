"""Shared test fixtures for sheetdiff."""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from loguru import logger

from sheetdiff.config import get_settings
from sheetdiff.transport import LocalFileTransport


def write_spreadsheet(
    fixtures_dir: Path,
    spreadsheet_id: str,
    sheets: list[tuple[str, list[list[Any]]]],
    title: str = "Test",
) -> None:
    """Write metadata.json and values.json for one spreadsheet."""
    folder = fixtures_dir / spreadsheet_id
    folder.mkdir(parents=True, exist_ok=True)

    metadata = {
        "spreadsheetId": spreadsheet_id,
        "properties": {"title": title},
        "sheets": [
            {
                "properties": {
                    "sheetId": index,
                    "title": name,
                    "index": index,
                    "gridProperties": {"rowCount": 1000, "columnCount": 26},
                }
            }
            for index, (name, _rows) in enumerate(sheets)
        ],
    }

    value_ranges: list[dict[str, Any]] = []
    for name, rows in sheets:
        value_range: dict[str, Any] = {"range": f"{name}!A1:Z1000", "majorDimension": "ROWS"}
        if rows:
            value_range["values"] = rows
        value_ranges.append(value_range)

    (folder / "metadata.json").write_text(json.dumps(metadata))
    (folder / "values.json").write_text(
        json.dumps({"spreadsheetId": spreadsheet_id, "valueRanges": value_ranges})
    )


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep SHEETDIFF_* variables from the host out of the tests."""
    for key in list(os.environ):
        if key.startswith("SHEETDIFF_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    # Sinks bound to captured streams must not outlive the test
    logger.remove()


@pytest.fixture
def fixtures_dir(tmp_path: Path) -> Path:
    """Directory with an old/new spreadsheet pair that differ in one cell."""
    write_spreadsheet(
        tmp_path,
        "old-sheet",
        [
            ("Sheet1", [["Name", "Age"], ["Alice", 30]]),
            ("Sheet2", [["a", "b"]]),
        ],
    )
    write_spreadsheet(
        tmp_path,
        "new-sheet",
        [
            ("Sheet1", [["Name", "Age"], ["Alice", 30]]),
            ("Sheet2", [["a", "c"]]),
        ],
    )
    return tmp_path


@pytest.fixture
def local_transport(fixtures_dir: Path) -> LocalFileTransport:
    """Create a transport that reads from the fixture spreadsheets."""
    return LocalFileTransport(fixtures_dir)


@pytest.fixture
def make_spreadsheet(tmp_path: Path) -> Any:
    """Factory writing extra spreadsheets next to the default fixtures."""

    def make(
        spreadsheet_id: str, sheets: list[tuple[str, list[list[Any]]]]
    ) -> Path:
        write_spreadsheet(tmp_path, spreadsheet_id, sheets)
        return tmp_path

    return make
