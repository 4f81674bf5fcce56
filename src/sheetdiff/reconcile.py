"""Structural reconciliation of sheet names between two documents.

Matching is position-first: a new sheet whose name equals the old sheet at
the same index is paired with it, and every other new sheet is paired with
the first old sheet of that name that is still unpaired. Each old sheet is
paired at most once, so with duplicate names the surplus copies are reported
as existing on one side only.
"""

from __future__ import annotations

from loguru import logger

from sheetdiff.models import (
    Document,
    ReconciliationEntry,
    ReconciliationReport,
    SheetStatus,
)


def reconcile(old: Document, new: Document) -> ReconciliationReport:
    """Compare the ordered sheet names of two documents.

    Never raises and never stops the comparison; callers decide whether a
    structural mismatch should halt them.

    Args:
        old: The baseline document
        new: The document compared against the baseline

    Returns:
        ReconciliationReport with one entry per new sheet, followed by one
        entry per old sheet that was never matched
    """
    old_names = old.sheet_names
    new_names = new.sheet_names

    # name -> old indices holding it, in order
    old_positions: dict[str, list[int]] = {}
    for index, name in enumerate(old_names):
        old_positions.setdefault(name, []).append(index)

    same_position = {
        index
        for index, name in enumerate(new_names)
        if index < len(old_names) and old_names[index] == name
    }
    matched_old = set(same_position)
    entries: list[ReconciliationEntry] = []

    for new_index, name in enumerate(new_names):
        if new_index in same_position:
            entries.append(
                ReconciliationEntry(
                    name, SheetStatus.MATCHED_SAME_POSITION, new_index, new_index
                )
            )
            continue

        old_index = _first_unmatched(old_positions.get(name, []), matched_old)
        if old_index is None:
            logger.debug(f"Sheet '{name}' only exists in {new.document_id}")
            entries.append(
                ReconciliationEntry(name, SheetStatus.ONLY_IN_NEW, None, new_index)
            )
            continue

        matched_old.add(old_index)
        logger.debug(f"Sheet '{name}' moved from index {old_index} to {new_index}")
        entries.append(
            ReconciliationEntry(
                name, SheetStatus.MATCHED_DIFFERENT_POSITION, old_index, new_index
            )
        )

    for old_index, name in enumerate(old_names):
        if old_index not in matched_old:
            logger.debug(f"Sheet '{name}' only exists in {old.document_id}")
            entries.append(
                ReconciliationEntry(name, SheetStatus.ONLY_IN_OLD, old_index, None)
            )

    same_order = len(old_names) == len(new_names) and len(same_position) == len(
        new_names
    )

    return ReconciliationReport(
        entries=tuple(entries),
        same_set=set(old_names) == set(new_names),
        same_order=same_order,
    )


def _first_unmatched(positions: list[int], matched: set[int]) -> int | None:
    """Pick the first old index for a name that has not been paired yet."""
    for index in positions:
        if index not in matched:
            return index
    return None
