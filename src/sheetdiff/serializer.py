"""Canonical text serialization of a sheet's cell grid.

Each cell is written as ``'<text>',`` and each row ends with a newline:

    'Name','Age',
    'Alice','30',

Quotes are doubled and backslashes, newlines and carriage returns are
escaped inside cells, so the delimiters never appear unescaped in content.
"""

from __future__ import annotations

import math
from typing import Any

from sheetdiff.exceptions import SerializationError
from sheetdiff.models import Sheet

ROW_SEPARATOR = "\n"

_CELL_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        "\n": "\\n",
        "\r": "\\r",
        "'": "''",
    }
)


def stringify_cell(value: Any) -> str:
    """Convert a cell value to text.

    Covers every kind the Sheets API returns with FORMULA rendering:
    strings, numbers, booleans and empty cells.

    Raises:
        SerializationError: If the value is of any other type
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    raise SerializationError(value)


def serialize_row(row: tuple[Any, ...] | list[Any]) -> str:
    """Serialize one row, including its trailing row separator."""
    cells = "".join(
        "'" + stringify_cell(cell).translate(_CELL_ESCAPES) + "'," for cell in row
    )
    return cells + ROW_SEPARATOR


def serialize(sheet: Sheet) -> str:
    """Serialize a sheet to its canonical text form.

    An empty sheet serializes to the empty string; an empty row to a bare
    newline.

    Raises:
        SerializationError: If a cell violates the document source contract
    """
    try:
        return "".join(serialize_row(row) for row in sheet.rows)
    except SerializationError as e:
        raise SerializationError(e.value, sheet_name=sheet.name) from e
