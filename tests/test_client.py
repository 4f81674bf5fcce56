"""Integration tests for SheetsDiffClient using local fixture files.

These tests use the LocalFileTransport pattern for testing without making
actual Google API calls.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from sheetdiff.client import SheetsDiffClient, create_transport
from sheetdiff.config import Settings
from sheetdiff.exceptions import FetchError, ValidationError
from sheetdiff.models import DiffKind, SheetStatus
from sheetdiff.transport import (
    GoogleSheetsTransport,
    LocalFileTransport,
    NotFoundError,
    SpreadsheetMetadata,
    Transport,
)


@pytest.fixture
def client(local_transport: LocalFileTransport) -> SheetsDiffClient:
    """Create a SheetsDiffClient with local file transport."""
    return SheetsDiffClient(local_transport, Settings())


class RecordingTransport(LocalFileTransport):
    """LocalFileTransport that records which spreadsheets were requested."""

    def __init__(self, fixtures_dir: Path) -> None:
        super().__init__(fixtures_dir)
        self.requested: list[str] = []

    async def get_metadata(self, spreadsheet_id: str) -> SpreadsheetMetadata:
        self.requested.append(spreadsheet_id)
        return await super().get_metadata(spreadsheet_id)


class TestFetchDocument:
    async def test_builds_document(self, client: SheetsDiffClient) -> None:
        document = await client.fetch_document("old-sheet")

        assert document.document_id == "old-sheet"
        assert document.title == "Test"
        assert document.sheet_names == ["Sheet1", "Sheet2"]
        assert document.sheets[0].rows == (("Name", "Age"), ("Alice", 30))

    async def test_sheet_without_values(self, make_spreadsheet, tmp_path: Path) -> None:
        make_spreadsheet("blank", [("Empty", []), ("Data", [["x"]])])
        client = SheetsDiffClient(LocalFileTransport(tmp_path), Settings())

        document = await client.fetch_document("blank")

        assert document.sheets[0].rows == ()
        assert document.sheets[1].rows == (("x",),)

    async def test_missing_spreadsheet(self, client: SheetsDiffClient) -> None:
        with pytest.raises(FetchError) as exc_info:
            await client.fetch_document("does-not-exist")

        assert exc_info.value.document_id == "does-not-exist"
        assert "does-not-exist" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, NotFoundError)

    async def test_malformed_values(self, make_spreadsheet, tmp_path: Path) -> None:
        make_spreadsheet("broken", [("Sheet1", [["a"]])])
        values_path = tmp_path / "broken" / "values.json"
        values_path.write_text(
            json.dumps({"valueRanges": [{"range": "Sheet1", "values": "oops"}]})
        )
        client = SheetsDiffClient(LocalFileTransport(tmp_path), Settings())

        with pytest.raises(FetchError, match="malformed"):
            await client.fetch_document("broken")

    async def test_value_range_count_mismatch(
        self, make_spreadsheet, tmp_path: Path
    ) -> None:
        make_spreadsheet("short", [("Sheet1", [["a"]]), ("Sheet2", [["b"]])])
        (tmp_path / "short" / "values.json").write_text(json.dumps({"valueRanges": []}))
        client = SheetsDiffClient(LocalFileTransport(tmp_path), Settings())

        with pytest.raises(FetchError, match="Expected 2 value ranges"):
            await client.fetch_document("short")

    async def test_invalid_json(self, make_spreadsheet, tmp_path: Path) -> None:
        make_spreadsheet("garbled", [("Sheet1", [["a"]])])
        (tmp_path / "garbled" / "metadata.json").write_text("{not json")
        client = SheetsDiffClient(LocalFileTransport(tmp_path), Settings())

        with pytest.raises(FetchError, match="Invalid JSON"):
            await client.fetch_document("garbled")

    @pytest.mark.parametrize(
        "metadata",
        [
            ["Sheet1"],
            {"sheets": ["oops"]},
            {"sheets": [{"properties": "Sheet1"}]},
        ],
    )
    async def test_wrongly_shaped_metadata(
        self, metadata: object, make_spreadsheet, tmp_path: Path
    ) -> None:
        make_spreadsheet("odd", [("Sheet1", [["a"]])])
        (tmp_path / "odd" / "metadata.json").write_text(json.dumps(metadata))
        client = SheetsDiffClient(LocalFileTransport(tmp_path), Settings())

        with pytest.raises(FetchError, match="Malformed metadata") as exc_info:
            await client.fetch_document("odd")

        assert exc_info.value.document_id == "odd"

    @pytest.mark.parametrize(
        "values",
        [
            [["a"]],
            {"valueRanges": ["oops"]},
        ],
    )
    async def test_wrongly_shaped_values(
        self, values: object, make_spreadsheet, tmp_path: Path
    ) -> None:
        make_spreadsheet("odd", [("Sheet1", [["a"]])])
        (tmp_path / "odd" / "values.json").write_text(json.dumps(values))
        client = SheetsDiffClient(LocalFileTransport(tmp_path), Settings())

        with pytest.raises(FetchError, match="Malformed values") as exc_info:
            await client.fetch_document("odd")

        assert "'odd'" in str(exc_info.value)


class TestCompare:
    async def test_compare_fixture_pair(self, client: SheetsDiffClient) -> None:
        result = await client.compare("old-sheet", "new-sheet")

        assert result.old_id == "old-sheet"
        assert result.new_id == "new-sheet"
        assert result.reconciliation.same_set
        assert result.reconciliation.same_order
        assert [d.sheet_name for d in result.diffs] == ["Sheet1", "Sheet2"]
        assert not result.diffs[0].has_changes
        assert result.diffs[1].plain_text == "'a','[-b-]{+c+}',\n"

    async def test_sheet_only_in_old(
        self, make_spreadsheet, tmp_path: Path
    ) -> None:
        make_spreadsheet("with-extra", [("Sheet1", [["a"]]), ("Extra", [["x"]])])
        make_spreadsheet("without-extra", [("Sheet1", [["a"]])])
        client = SheetsDiffClient(LocalFileTransport(tmp_path), Settings())

        result = await client.compare("with-extra", "without-extra")

        (entry,) = result.reconciliation.by_status(SheetStatus.ONLY_IN_OLD)
        assert entry.sheet_name == "Extra"
        assert [d.sheet_name for d in result.diffs] == ["Sheet1"]
        assert result.diffs[0].ops[0].kind == DiffKind.EQUAL

    async def test_invalid_id_rejected_before_fetch(self, fixtures_dir: Path) -> None:
        transport = RecordingTransport(fixtures_dir)
        client = SheetsDiffClient(transport, Settings())

        with pytest.raises(ValidationError) as exc_info:
            await client.compare("old-sheet", "new sheet!")

        assert exc_info.value.document_id == "new sheet!"
        assert transport.requested == []

    async def test_fetch_failure_aborts(self, client: SheetsDiffClient) -> None:
        with pytest.raises(FetchError) as exc_info:
            await client.compare("old-sheet", "missing")

        assert exc_info.value.document_id == "missing"


class TestCreateTransport:
    def test_fixtures_dir_selects_local_transport(self, tmp_path: Path) -> None:
        transport = create_transport(Settings(fixtures_dir=tmp_path))

        assert isinstance(transport, LocalFileTransport)

    async def test_token_selects_google_transport(self) -> None:
        transport: Transport = create_transport(Settings(access_token="ya29.test"))

        assert isinstance(transport, GoogleSheetsTransport)
        await transport.close()

    def test_missing_token(self) -> None:
        with pytest.raises(ValueError, match="No access token"):
            create_transport(Settings())
