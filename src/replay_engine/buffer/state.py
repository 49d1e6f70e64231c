"""Cursor and viewport state for the replay buffer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

Cursor = Tuple[int, int]  # (line, column)


@dataclass(slots=True)
class BufferState:
    """Mutable cursor and scroll info for one buffer."""

    cursor: Cursor = (0, 0)
    scroll_offset: int = 0

    def set_cursor(self, line: int, col: int) -> None:
        self.cursor = (line, col)

    def follow_cursor(self, viewport_height: int, line_count: int) -> int:
        """Scroll so the cursor line sits inside the viewport, centred when moved."""

        if viewport_height <= 0:
            self.scroll_offset = 0
            return self.scroll_offset
        line = self.cursor[0]
        top = self.scroll_offset
        if line < top or line >= top + viewport_height:
            top = line - viewport_height // 2
        max_top = max(line_count - viewport_height, 0)
        self.scroll_offset = max(0, min(top, max_top))
        return self.scroll_offset
