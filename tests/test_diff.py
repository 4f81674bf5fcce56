"""Tests for the character-level diff engine."""

from __future__ import annotations

import time

import pytest

from sheetdiff.diff import diff, diff_sheets
from sheetdiff.models import DiffKind, DiffOp, Sheet
from sheetdiff.serializer import serialize

TEXT_PAIRS = [
    ("", ""),
    ("", "abc"),
    ("abc", ""),
    ("The cat sat on the mat.", "The dog sat on the log."),
    ("'a','b',\n'c','d',\n", "'a','b',\n'c','e',\n'f',\n"),
    ("'Total','=SUM(A1:A9)',\n", "'Total','=SUM(A1:A10)',\n"),
    ("abcdef", "fedcba"),
]


def rebuild_old(ops: tuple[DiffOp, ...]) -> str:
    return "".join(op.text for op in ops if op.kind != DiffKind.INSERT)


def rebuild_new(ops: tuple[DiffOp, ...]) -> str:
    return "".join(op.text for op in ops if op.kind != DiffKind.DELETE)


class TestDiffIdentity:
    def test_identical_text_is_single_equal(self) -> None:
        assert diff("'a','b',\n", "'a','b',\n") == (DiffOp(DiffKind.EQUAL, "'a','b',\n"),)

    def test_empty_text_has_no_ops(self) -> None:
        assert diff("", "") == ()

    def test_insert_into_empty(self) -> None:
        assert diff("", "abc") == (DiffOp(DiffKind.INSERT, "abc"),)

    def test_delete_everything(self) -> None:
        assert diff("abc", "") == (DiffOp(DiffKind.DELETE, "abc"),)


class TestDiffRoundTrip:
    @pytest.mark.parametrize(("old", "new"), TEXT_PAIRS)
    def test_ops_rebuild_both_texts(self, old: str, new: str) -> None:
        """Delete+Equal rebuilds old text, Insert+Equal rebuilds new text."""
        ops = diff(old, new)

        assert rebuild_old(ops) == old
        assert rebuild_new(ops) == new

    @pytest.mark.parametrize(("old", "new"), TEXT_PAIRS)
    def test_no_empty_ops(self, old: str, new: str) -> None:
        assert all(op.text for op in diff(old, new))

    def test_large_input_round_trip(self) -> None:
        """Tens of thousands of characters with scattered edits."""
        rows = [[f"row{i}", f"value {i}", f"=A{i}*2"] for i in range(1500)]
        changed = [list(row) for row in rows]
        changed[10][1] = "changed"
        changed[700][2] = "=A700*3"
        del changed[1200]
        changed.append(["extra", "row", ""])

        old_text = serialize(Sheet.from_rows("Big", rows))
        new_text = serialize(Sheet.from_rows("Big", changed))
        assert len(old_text) > 30_000

        ops = diff(old_text, new_text)

        assert rebuild_old(ops) == old_text
        assert rebuild_new(ops) == new_text
        assert any(op.kind == DiffKind.EQUAL and len(op.text) > 1000 for op in ops)


class TestDiffContent:
    def test_single_cell_change(self) -> None:
        """Changing one cell yields a delete and an insert between equal spans."""
        ops = diff("'a','b',\n", "'a','c',\n")

        assert ops == (
            DiffOp(DiffKind.EQUAL, "'a','"),
            DiffOp(DiffKind.DELETE, "b"),
            DiffOp(DiffKind.INSERT, "c"),
            DiffOp(DiffKind.EQUAL, "',\n"),
        )

    def test_semantic_cleanup_merges_fragments(self) -> None:
        """Unrelated words come out as whole-word edits, not letter soup."""
        ops = diff("mouse", "sofas")

        assert ops == (
            DiffOp(DiffKind.DELETE, "mouse"),
            DiffOp(DiffKind.INSERT, "sofas"),
        )

    def test_deterministic(self) -> None:
        old, new = TEXT_PAIRS[3]

        assert diff(old, new) == diff(old, new)

    def test_line_mode_off_gives_valid_script(self) -> None:
        old = "'x',\n" * 200
        new = "'x',\n" * 100 + "'y',\n" + "'x',\n" * 100

        ops = diff(old, new, line_mode=False)

        assert rebuild_old(ops) == old
        assert rebuild_new(ops) == new


class TestDiffSheets:
    def test_report_is_labelled_with_old_sheet(self) -> None:
        old = Sheet.from_rows("Sheet1", [["a", "b"]])
        new = Sheet.from_rows("Sheet1", [["a", "c"]])

        report = diff_sheets(old, new)

        assert report.sheet_name == "Sheet1"
        assert report.has_changes
        assert report.old_text() == serialize(old)
        assert report.new_text() == serialize(new)

    def test_identical_sheets_have_no_changes(self) -> None:
        sheet = Sheet.from_rows("Sheet1", [["Name", "Age"], ["Alice", 30]])

        report = diff_sheets(sheet, sheet)

        assert not report.has_changes
        assert [op.kind for op in report.ops] == [DiffKind.EQUAL]

    def test_empty_sheets(self) -> None:
        report = diff_sheets(Sheet("A"), Sheet("A"))

        assert report.ops == ()
        assert not report.has_changes


class TestDiffScaling:
    def test_every_row_edited_stays_fast(self) -> None:
        """Edits on every row are aligned row by row, then cell by cell."""
        rows = [[f"row{i}", f"value {i}", f"=A{i}*2", f"note {i}"] for i in range(800)]
        changed = [[a, f"{b} updated", c, d] for a, b, c, d in rows]
        old_text = serialize(Sheet.from_rows("Big", rows))
        new_text = serialize(Sheet.from_rows("Big", changed))
        assert len(old_text) > 20_000

        start = time.perf_counter()
        ops = diff(old_text, new_text)
        elapsed = time.perf_counter() - start

        assert elapsed < 1.0
        assert rebuild_old(ops) == old_text
        assert rebuild_new(ops) == new_text
        assert DiffOp(DiffKind.INSERT, " updated") in ops

    def test_wide_row_rewritten_stays_fast(self) -> None:
        old_text = serialize(Sheet.from_rows("Wide", [[f"c{i}" for i in range(3000)]]))
        new_text = serialize(Sheet.from_rows("Wide", [[f"d{i}x" for i in range(3000)]]))

        start = time.perf_counter()
        ops = diff(old_text, new_text)
        elapsed = time.perf_counter() - start

        assert elapsed < 1.0
        assert rebuild_old(ops) == old_text
        assert rebuild_new(ops) == new_text

    def test_wide_row_single_cell_change_is_precise(self) -> None:
        cells = [f"c{i}" for i in range(3000)]
        changed = list(cells)
        changed[1500] = "c1500!"

        ops = diff(
            serialize(Sheet.from_rows("Wide", [cells])),
            serialize(Sheet.from_rows("Wide", [changed])),
        )

        assert [op for op in ops if op.kind != DiffKind.EQUAL] == [
            DiffOp(DiffKind.INSERT, "!")
        ]

    def test_long_replaced_cell_is_not_refined(self) -> None:
        old = "'" + "a" * 300 + "',\n"
        new = "'" + "b" * 300 + "',\n"

        ops = diff(old, new)

        assert ops == (
            DiffOp(DiffKind.EQUAL, "'"),
            DiffOp(DiffKind.DELETE, "a" * 300),
            DiffOp(DiffKind.INSERT, "b" * 300),
            DiffOp(DiffKind.EQUAL, "',\n"),
        )
