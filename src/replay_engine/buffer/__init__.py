"""Edit buffer, cursor state, and highlight cache."""

from .buffer import EditorBuffer, Transaction
from .document import BufferDocument, split_lines
from .highlight import (
    HighlightCache,
    HighlightSpan,
    Highlighter,
    LineSpans,
    PlainHighlighter,
    PygmentsHighlighter,
)
from .state import BufferState, Cursor
from .sync import BufferValidationError, BufferView
from .validation import ensure_cursor, ensure_line_index

__all__ = [
    "BufferDocument",
    "BufferState",
    "BufferValidationError",
    "BufferView",
    "Cursor",
    "EditorBuffer",
    "HighlightCache",
    "HighlightSpan",
    "Highlighter",
    "LineSpans",
    "PlainHighlighter",
    "PygmentsHighlighter",
    "Transaction",
    "ensure_cursor",
    "ensure_line_index",
    "split_lines",
]
