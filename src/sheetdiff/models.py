"""Data types shared by the comparison pipeline.

Every type here is a frozen dataclass: documents are snapshots taken once per
comparison run, and reports are derived from them without later mutation.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Sheet:
    """A named 2-D grid of cell values.

    Rows may be ragged; cells hold whatever the document source returned
    (strings, numbers, booleans or None for empty cells).
    """

    name: str
    rows: tuple[tuple[Any, ...], ...] = ()

    @classmethod
    def from_rows(cls, name: str, rows: Iterable[Iterable[Any]]) -> Sheet:
        """Build a Sheet from any nested iterable of cell values."""
        return cls(name=name, rows=tuple(tuple(row) for row in rows))


@dataclass(frozen=True)
class Document:
    """One spreadsheet snapshot: an ordered sequence of sheets."""

    document_id: str
    sheets: tuple[Sheet, ...] = ()
    title: str = ""

    @property
    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.sheets]


class SheetStatus(Enum):
    """Outcome of matching one sheet name between two documents."""

    MATCHED_SAME_POSITION = "matched_same_position"
    MATCHED_DIFFERENT_POSITION = "matched_different_position"
    ONLY_IN_OLD = "only_in_old"
    ONLY_IN_NEW = "only_in_new"

    @property
    def is_matched(self) -> bool:
        return self in (
            SheetStatus.MATCHED_SAME_POSITION,
            SheetStatus.MATCHED_DIFFERENT_POSITION,
        )


@dataclass(frozen=True)
class ReconciliationEntry:
    """One line of the structural report."""

    sheet_name: str
    status: SheetStatus
    old_index: int | None  # None for ONLY_IN_NEW
    new_index: int | None  # None for ONLY_IN_OLD


@dataclass(frozen=True)
class ReconciliationReport:
    """Structural comparison of the sheet lists of two documents."""

    entries: tuple[ReconciliationEntry, ...]
    same_set: bool
    same_order: bool

    def matched_pairs(self) -> list[tuple[int, int]]:
        """Return (old_index, new_index) for every matched sheet, in old order."""
        pairs = [
            (entry.old_index, entry.new_index)
            for entry in self.entries
            if entry.status.is_matched
            and entry.old_index is not None
            and entry.new_index is not None
        ]
        return sorted(pairs)

    def by_status(self, status: SheetStatus) -> list[ReconciliationEntry]:
        return [entry for entry in self.entries if entry.status == status]


class DiffKind(Enum):
    """Kind of a character-level edit."""

    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"


@dataclass(frozen=True)
class DiffOp:
    """One unit of an edit script."""

    kind: DiffKind
    text: str


@dataclass(frozen=True)
class DiffReport:
    """Character-level diff of one sheet's serialized content."""

    sheet_name: str
    ops: tuple[DiffOp, ...]

    @property
    def has_changes(self) -> bool:
        return any(op.kind != DiffKind.EQUAL for op in self.ops)

    def old_text(self) -> str:
        """Rebuild the old serialization from Delete and Equal ops."""
        return "".join(op.text for op in self.ops if op.kind != DiffKind.INSERT)

    def new_text(self) -> str:
        """Rebuild the new serialization from Insert and Equal ops."""
        return "".join(op.text for op in self.ops if op.kind != DiffKind.DELETE)

    @property
    def plain_text(self) -> str:
        from sheetdiff.render import render_plain_text

        return render_plain_text(self.ops)

    @property
    def markup(self) -> str:
        from sheetdiff.render import render_markup

        return render_markup(self.ops)


@dataclass(frozen=True)
class ComparisonResult:
    """Everything a driver needs to display one comparison."""

    old_id: str
    new_id: str
    reconciliation: ReconciliationReport
    diffs: tuple[DiffReport, ...] = ()

    @property
    def structure_matches(self) -> bool:
        return self.reconciliation.same_set and self.reconciliation.same_order

    @property
    def has_changes(self) -> bool:
        return not self.structure_matches or any(d.has_changes for d in self.diffs)
