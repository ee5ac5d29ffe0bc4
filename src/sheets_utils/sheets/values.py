"""Conversion of API cell values to text.

The values API returns JSON scalars: strings, numbers, booleans, or nothing
for an empty cell. Reads hand back plain strings.
"""

from __future__ import annotations

from typing import Any, Union

CellValue = Union[str, int, float, bool, None]


def cell_to_text(value: CellValue) -> str:
    """Render a single cell value as text.

    Booleans use the spreadsheet spelling (TRUE/FALSE), whole floats drop the
    trailing ``.0`` and other floats use the shortest round-trip form.
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
        if value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        return repr(value)
    raise TypeError(f"Unsupported cell value type: {type(value).__name__}")


def grid_to_text(rows: list[list[Any]]) -> list[list[str]]:
    """Convert every cell of a grid, keeping row lengths as they are."""
    return [[cell_to_text(cell) for cell in row] for row in rows]
