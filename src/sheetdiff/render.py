"""Human-readable renderings of comparison results.

Plain text uses wdiff-style markers, ANSI output colours edits for a
terminal, and markup output wraps each op in an inline HTML element. All
content is escaped before it reaches markup.
"""

from __future__ import annotations

from collections.abc import Iterable
from html import escape

from sheetdiff.models import (
    ComparisonResult,
    DiffKind,
    DiffOp,
    ReconciliationReport,
    SheetStatus,
)

DELETE_OPEN, DELETE_CLOSE = "[-", "-]"
INSERT_OPEN, INSERT_CLOSE = "{+", "+}"

ANSI_RED = "\x1b[31m"
ANSI_GREEN = "\x1b[32m"
ANSI_RESET = "\x1b[0m"

_STATUS_LABELS: dict[SheetStatus, str] = {
    SheetStatus.MATCHED_SAME_POSITION: "exists in both spreadsheets",
    SheetStatus.MATCHED_DIFFERENT_POSITION: "moved",
    SheetStatus.ONLY_IN_OLD: "only in old spreadsheet",
    SheetStatus.ONLY_IN_NEW: "only in new spreadsheet",
}

_MARKUP_TAGS: dict[DiffKind, tuple[str, str]] = {
    DiffKind.EQUAL: ("span", "diff-equal"),
    DiffKind.INSERT: ("ins", "diff-insert"),
    DiffKind.DELETE: ("del", "diff-delete"),
}

PAGE_STYLE = """
body { font-family: sans-serif; padding: 24px; }
table.sheets { border-collapse: collapse; margin-bottom: 24px; }
table.sheets td, table.sheets th { border: 1px solid #ddd; padding: 4px 8px; }
pre.diff { white-space: pre-wrap; font-family: monospace; background: #fafafa; padding: 12px; }
ins.diff-insert { background: #e6ffe6; text-decoration: none; }
del.diff-delete { background: #ffe6e6; }
.status-only_in_old, .status-only_in_new { color: #b00020; }
.status-matched_different_position { color: #b26a00; }
"""


def render_plain_text(ops: Iterable[DiffOp]) -> str:
    """Render ops as text, marking deletions ``[-x-]`` and insertions ``{+x+}``."""
    parts: list[str] = []
    for op in ops:
        if op.kind == DiffKind.DELETE:
            parts.append(f"{DELETE_OPEN}{op.text}{DELETE_CLOSE}")
        elif op.kind == DiffKind.INSERT:
            parts.append(f"{INSERT_OPEN}{op.text}{INSERT_CLOSE}")
        else:
            parts.append(op.text)
    return "".join(parts)


def render_ansi(ops: Iterable[DiffOp]) -> str:
    """Render ops for a terminal: deletions in red, insertions in green."""
    parts: list[str] = []
    for op in ops:
        if op.kind == DiffKind.DELETE:
            parts.append(f"{ANSI_RED}{op.text}{ANSI_RESET}")
        elif op.kind == DiffKind.INSERT:
            parts.append(f"{ANSI_GREEN}{op.text}{ANSI_RESET}")
        else:
            parts.append(op.text)
    return "".join(parts)


def render_markup(ops: Iterable[DiffOp]) -> str:
    """Render ops as inline HTML.

    Each op becomes ``<span>``, ``<ins>`` or ``<del>`` with a ``diff-*``
    class. Text is HTML-escaped (quotes included) and newlines are shown
    as a pilcrow followed by ``<br>``.
    """
    parts: list[str] = []
    for op in ops:
        tag, css_class = _MARKUP_TAGS[op.kind]
        text = escape(op.text, quote=True).replace("\n", "&para;<br>")
        parts.append(f'<{tag} class="{css_class}">{text}</{tag}>')
    return "".join(parts)


def render_reconciliation(report: ReconciliationReport) -> str:
    """Render the structural report as plain text, one sheet per line."""
    lines: list[str] = []
    for entry in report.entries:
        label = _STATUS_LABELS[entry.status]
        if entry.status == SheetStatus.MATCHED_DIFFERENT_POSITION:
            label = f"{label} (position {entry.old_index} -> {entry.new_index})"
        lines.append(f"{entry.sheet_name}: {label}")

    if report.same_set and report.same_order:
        lines.append("Sheets have the same titles in the same order")
    elif report.same_set:
        lines.append("Sheets have the same titles in a different order")
    else:
        lines.append("Spreadsheets have different sheets")
    return "\n".join(lines)


def render_html_page(result: ComparisonResult) -> str:
    """Render a full HTML page for a comparison."""
    title = escape(f"Comparing {result.old_id} and {result.new_id}")

    rows = []
    for entry in result.reconciliation.entries:
        rows.append(
            f'<tr class="status-{entry.status.value}">'
            f"<td>{escape(entry.sheet_name)}</td>"
            f"<td>{_position(entry.old_index)}</td>"
            f"<td>{_position(entry.new_index)}</td>"
            f"<td>{escape(_STATUS_LABELS[entry.status])}</td></tr>"
        )

    summary = escape(render_reconciliation(result.reconciliation).splitlines()[-1])

    sections = []
    for report in result.diffs:
        heading = escape(report.sheet_name)
        state = "changed" if report.has_changes else "unchanged"
        sections.append(
            f'<section class="sheet-diff">'
            f"<h2>{heading} <small>({state})</small></h2>"
            f'<pre class="diff">{report.markup}</pre>'
            f"</section>"
        )

    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        f"<head><meta charset=\"utf-8\"><title>{title}</title>"
        f"<style>{PAGE_STYLE}</style></head>\n"
        "<body>\n"
        f"<h1>{title}</h1>\n"
        f'<p class="summary">{summary}</p>\n'
        '<table class="sheets"><tr><th>Sheet</th><th>Old</th><th>New</th>'
        "<th>Status</th></tr>\n"
        + "\n".join(rows)
        + "\n</table>\n"
        + "\n".join(sections)
        + "\n</body>\n</html>\n"
    )


def _position(index: int | None) -> str:
    return "" if index is None else str(index)
