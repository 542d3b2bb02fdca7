"""
Row diffing + message formatting utilities for sheetdiff.

Responsibilities:
- Freeze raw Sheets API `values` into an immutable Snapshot.
- Compare two snapshots positionally (row i of the new snapshot against row i
  of the old one) and report the changed indices.
- Render a changed row as a readable, comma-joined line.
- Resolve the row's first cell against the id lookup to build a Discord
  mention prefix.

This module is intentionally pure (no network, no Discord, no Google),
so it's easy to test and tweak.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from sheetdiff.models import Cell, MalformedRow, Row, RowChange, SerializationFailure, Snapshot


# Discord rejects webhook messages over 2000 characters
MAX_MESSAGE_CHARS = 2000


# -----------------------------
# Snapshot building
# -----------------------------

def freeze_values(values: Any) -> Snapshot:
    """
    Turns the `values` list of a ValueRange into a tuple of tuples.
    """
    if not isinstance(values, list):
        raise MalformedRow(f"Expected a list of rows, got {type(values).__name__}")

    rows: List[Row] = []
    for i, row in enumerate(values):
        if not isinstance(row, list):
            raise MalformedRow(f"Row {i} is not a list ({type(row).__name__})")
        rows.append(tuple(row))
    return tuple(rows)


def dump_values(snapshot: Snapshot) -> str:
    try:
        return json.dumps([list(row) for row in snapshot], ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationFailure(f"Failed to serialize sheet data: {e}") from e


# -----------------------------
# Diffing
# -----------------------------

def cells_equal(a: Cell, b: Cell) -> bool:
    # JSON equality: 1, 1.0 and True are different values
    return type(a) is type(b) and a == b


def rows_equal(a: Row, b: Row) -> bool:
    if len(a) != len(b):
        return False
    return all(cells_equal(x, y) for x, y in zip(a, b))


def changed_indices(old: Snapshot, new: Snapshot) -> List[int]:
    """
    Indices (ascending) where both snapshots have a row and the rows differ.
    Rows past the end of the shorter snapshot are never reported.
    """
    return [i for i, (new_row, old_row) in enumerate(zip(new, old)) if not rows_equal(new_row, old_row)]


def diff_snapshots(old: Snapshot, new: Snapshot) -> List[RowChange]:
    return [RowChange(index=i, row=new[i]) for i in changed_indices(old, new)]


# -----------------------------
# Message formatting
# -----------------------------

def render_cell(value: Cell) -> str:
    if isinstance(value, str):
        return value
    # numbers, booleans and null in their JSON spelling
    return json.dumps(value)


def render_row(row: Sequence[Cell]) -> str:
    return ", ".join(render_cell(v) for v in row)


def row_code(row: Row) -> str:
    """
    The first cell identifies whoever the row belongs to (e.g. a student number).
    """
    if not row:
        raise MalformedRow("Changed row has no first cell")
    first = row[0]
    if not isinstance(first, str):
        raise MalformedRow(f"First cell is not a string ({type(first).__name__}: {first!r})")
    return first.upper()


def mention_prefix(code: str, ids: Dict[str, str]) -> str:
    user_id = ids.get(code.upper())
    return f"<@{user_id}> " if user_id else ""


def truncate_message(content: str, max_chars: int = MAX_MESSAGE_CHARS) -> str:
    if len(content) <= max_chars:
        return content
    return content[:max_chars - 3] + "..."


def compose_message(row: Row, ids: Dict[str, str]) -> str:
    content = render_row(row)
    extra = mention_prefix(row_code(row), ids)
    return truncate_message(f"{extra}{content}")
