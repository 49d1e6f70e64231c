"""Boundary types handed from the buffer to rendering hosts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .highlight import HighlightSpan, LineSpans
from .state import Cursor


@dataclass(frozen=True, slots=True)
class BufferView:
    """Read-only snapshot of the buffer a renderer may hold on to."""

    lines: tuple[str, ...]
    cursor: Cursor
    scroll_offset: int
    revision: int
    language_hint: str | None
    spans: tuple[LineSpans, ...] = ()

    def visible_lines(self, height: int) -> Sequence[str]:
        return self.lines[self.scroll_offset : self.scroll_offset + height]

    def spans_for_line(self, line: int) -> tuple[HighlightSpan, ...]:
        if 0 <= line < len(self.spans):
            return self.spans[line]
        return ()


class BufferValidationError(RuntimeError):
    """Raised when a buffer primitive receives an out-of-range position."""

    def __init__(self, message: str, *, cursor: Cursor | None = None) -> None:
        super().__init__(message)
        self.cursor = cursor
