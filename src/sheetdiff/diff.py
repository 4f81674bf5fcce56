"""Character-level diffing of serialized sheet content.

Serialized sheets are aligned in three passes: whole rows, then the cells of
rows that changed, then the characters of short replaced cell spans. Rows and
cells are compared as tokens with SequenceMatcher; diff-match-patch refines
the remaining spans and runs a semantic cleanup pass that folds
single-character noise into readable edits.

Every pass is bounded by input size rather than a wall-clock deadline, so the
same inputs always produce the same edit script.
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher

from diff_match_patch import diff_match_patch
from loguru import logger

from sheetdiff.models import DiffKind, DiffOp, DiffReport, Sheet
from sheetdiff.serializer import serialize

_KINDS: dict[int, DiffKind] = {
    diff_match_patch.DIFF_EQUAL: DiffKind.EQUAL,
    diff_match_patch.DIFF_INSERT: DiffKind.INSERT,
    diff_match_patch.DIFF_DELETE: DiffKind.DELETE,
}

_ROW = re.compile(r"[^\n]*\n|[^\n]+")
# A quoted cell with its trailing comma, a row break, or any other run of text
_CELL = re.compile(r"'(?:[^']|'')*',|\n|[^'\n]+|'")

# Replaced spans longer than this (both sides together) are not refined
# character by character
REFINE_LIMIT = 200
# Replaced row blocks of different heights are aligned cell by cell only up
# to this many cells
BLOCK_LIMIT = 2000

RawDiff = list[tuple[int, str]]


def diff(
    old_text: str,
    new_text: str,
    *,
    timeout: float = 0.0,
    line_mode: bool = True,
) -> tuple[DiffOp, ...]:
    """Compute a semantically cleaned edit script between two strings.

    Args:
        old_text: Baseline text
        new_text: Text compared against the baseline
        timeout: Seconds before a character-level refinement settles for a
            non-minimal diff. 0 disables the deadline.
        line_mode: Align rows and cells before refining characters. When
            False the whole texts are diffed character by character.

    Returns:
        Ordered DiffOps. Equal+Delete texts rebuild old_text, Equal+Insert
        texts rebuild new_text.
    """
    dmp = diff_match_patch()
    dmp.Diff_Timeout = timeout

    if line_mode:
        raw = _diff_rows(dmp, old_text, new_text)
        dmp.diff_cleanupMerge(raw)
    else:
        raw = dmp.diff_main(old_text, new_text, False)
    dmp.diff_cleanupSemantic(raw)

    return tuple(DiffOp(_KINDS[op], text) for op, text in raw if text)


def _diff_rows(dmp: diff_match_patch, old_text: str, new_text: str) -> RawDiff:
    old_rows = _ROW.findall(old_text)
    new_rows = _ROW.findall(new_text)

    raw: RawDiff = []
    matcher = SequenceMatcher(None, old_rows, new_rows)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            raw.append((dmp.DIFF_EQUAL, "".join(old_rows[i1:i2])))
        elif tag == "delete":
            raw.append((dmp.DIFF_DELETE, "".join(old_rows[i1:i2])))
        elif tag == "insert":
            raw.append((dmp.DIFF_INSERT, "".join(new_rows[j1:j2])))
        elif i2 - i1 == j2 - j1:
            # Edited rows in place: pair them up one to one
            for old_row, new_row in zip(old_rows[i1:i2], new_rows[j1:j2]):
                raw.extend(_diff_cells(dmp, old_row, new_row))
        else:
            raw.extend(
                _diff_cells(
                    dmp,
                    "".join(old_rows[i1:i2]),
                    "".join(new_rows[j1:j2]),
                    limit=BLOCK_LIMIT,
                )
            )
    return raw


def _diff_cells(
    dmp: diff_match_patch,
    old_text: str,
    new_text: str,
    *,
    limit: int | None = None,
) -> RawDiff:
    old_cells = _CELL.findall(old_text)
    new_cells = _CELL.findall(new_text)
    if limit is not None and len(old_cells) + len(new_cells) > limit:
        return _replace(dmp, old_text, new_text)

    raw: RawDiff = []
    matcher = SequenceMatcher(None, old_cells, new_cells)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        old_span = "".join(old_cells[i1:i2])
        new_span = "".join(new_cells[j1:j2])
        if tag == "equal":
            raw.append((dmp.DIFF_EQUAL, old_span))
        elif tag == "replace" and len(old_span) + len(new_span) <= REFINE_LIMIT:
            raw.extend(dmp.diff_main(old_span, new_span, False))
        else:
            raw.extend(_replace(dmp, old_span, new_span))
    return raw


def _replace(dmp: diff_match_patch, old_text: str, new_text: str) -> RawDiff:
    raw: RawDiff = []
    if old_text:
        raw.append((dmp.DIFF_DELETE, old_text))
    if new_text:
        raw.append((dmp.DIFF_INSERT, new_text))
    return raw


def diff_sheets(
    old_sheet: Sheet,
    new_sheet: Sheet,
    *,
    timeout: float = 0.0,
    line_mode: bool = True,
) -> DiffReport:
    """Serialize two sheets and diff their canonical text.

    The report is labelled with the old sheet's name.
    """
    old_text = serialize(old_sheet)
    new_text = serialize(new_sheet)
    ops = diff(old_text, new_text, timeout=timeout, line_mode=line_mode)

    logger.debug(
        f"Diffed sheet '{old_sheet.name}': {len(old_text)} -> {len(new_text)} chars, "
        f"{sum(op.kind != DiffKind.EQUAL for op in ops)} edit(s)"
    )
    return DiffReport(sheet_name=old_sheet.name, ops=ops)
