"""Validation helpers shared across buffer primitives."""

from __future__ import annotations

from .document import BufferDocument
from .state import Cursor
from .sync import BufferValidationError


def ensure_cursor(document: BufferDocument, cursor: Cursor) -> Cursor:
    row, col = cursor
    if document.line_count == 0:
        if cursor != (0, 0):
            raise BufferValidationError("Empty document only accepts (0, 0)", cursor=cursor)
        return cursor
    if row < 0 or row >= document.line_count:
        raise BufferValidationError("Row out of range", cursor=cursor)
    line = document.get_line(row)
    if col < 0 or col > len(line):
        raise BufferValidationError("Column out of range", cursor=cursor)
    return cursor


def ensure_line_index(
    document: BufferDocument, index: int, *, allow_end: bool = False
) -> int:
    """Check ``index`` addresses a line; ``allow_end`` also accepts one past the end."""

    limit = document.line_count + (1 if allow_end else 0)
    if index < 0 or index >= limit:
        raise BufferValidationError(
            f"Line {index} out of range for {document.line_count} lines",
            cursor=(index, 0),
        )
    return index
