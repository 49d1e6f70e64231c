"""Edit buffer façade combining document, cursor state, and highlight cache."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import ContextManager, Optional, Sequence

from replay_engine.runtime import telemetry

from .document import BufferDocument
from .highlight import HighlightCache, Highlighter, LineSpans
from .state import BufferState, Cursor
from .sync import BufferView
from .validation import ensure_cursor, ensure_line_index


class EditorBuffer:
    """Lines, cursor, scroll, and highlight spans mutated through edit primitives.

    Every content mutation runs inside a :class:`Transaction`, which bumps the
    revision and marks the touched lines stale in the highlight cache.
    """

    def __init__(
        self,
        *,
        name: str = "editor",
        document: Optional[BufferDocument] = None,
        state: Optional[BufferState] = None,
        highlighter: Optional[Highlighter] = None,
        language_hint: Optional[str] = None,
    ) -> None:
        self.name = name
        self.document = document or BufferDocument()
        self.state = state or BufferState()
        self.language_hint = language_hint
        self.highlights = HighlightCache(highlighter)
        self.highlights.reset(self.document.line_count)

    @classmethod
    def from_text(
        cls,
        text: str,
        *,
        name: str = "editor",
        highlighter: Optional[Highlighter] = None,
        language_hint: Optional[str] = None,
    ) -> "EditorBuffer":
        return cls(
            name=name,
            document=BufferDocument.from_text(text),
            highlighter=highlighter,
            language_hint=language_hint,
        )

    @property
    def lines(self) -> Sequence[str]:
        return self.document.snapshot()

    @property
    def revision(self) -> int:
        return self.document.version

    @property
    def cursor(self) -> Cursor:
        return self.state.cursor

    def load(self, text: str, *, language_hint: Optional[str] = None) -> None:
        """Replace the whole content, e.g. when a new file is opened."""

        with Transaction(self, "load") as tx:
            self.document = BufferDocument.from_text(
                text, version=self.document.version + 1
            )
            self.language_hint = language_hint
            self.state = BufferState()
            self.highlights.reset(self.document.line_count)
            tx.commit(0, self.document.line_count)

    def move_cursor(self, line: int, col: int = 0) -> Cursor:
        """Move the cursor, clamping to the nearest existing position."""

        count = self.document.line_count
        if count == 0:
            self.state.set_cursor(0, 0)
            return self.state.cursor
        line = max(0, min(line, count - 1))
        col = max(0, min(col, len(self.document.get_line(line))))
        self.state.set_cursor(line, col)
        return self.state.cursor

    def type_char(self, char: str) -> Cursor:
        """Insert ``char`` at the cursor; ``"\\n"`` splits the line."""

        if self.document.line_count == 0:
            with Transaction(self, "open_line") as tx:
                self.document = self.document.update_lines(0, 0, [""])
                self.highlights.insert(0)
                tx.commit(0, 1)
        row, col = ensure_cursor(self.document, self.state.cursor)
        line = self.document.get_line(row)
        with Transaction(self, "type_char") as tx:
            if char == "\n":
                self.document = self.document.update_lines(
                    row, row + 1, [line[:col], line[col:]]
                )
                self.highlights.insert(row + 1)
                self.state.set_cursor(row + 1, 0)
                tx.commit(row, row + 2)
            else:
                self.document = self.document.update_lines(
                    row, row + 1, [line[:col] + char + line[col:]]
                )
                self.state.set_cursor(row, col + len(char))
                tx.commit(row, row + 1)
        return self.state.cursor

    def insert_line(self, line: int, text: str = "") -> Cursor:
        """Open a new line at index ``line`` (``line_count`` appends)."""

        ensure_line_index(self.document, line, allow_end=True)
        with Transaction(self, "insert_line") as tx:
            self.document = self.document.update_lines(line, line, [text])
            self.highlights.insert(line)
            self.state.set_cursor(line, len(text))
            tx.commit(line, line + 1)
        return self.state.cursor

    def delete_line(self, line: int) -> Cursor:
        """Remove line ``line``; following lines shift up."""

        ensure_line_index(self.document, line)
        with Transaction(self, "delete_line") as tx:
            self.document = self.document.update_lines(line, line + 1, [])
            self.highlights.remove(line)
            remaining = self.document.line_count
            self.state.set_cursor(min(line, max(remaining - 1, 0)), 0)
            tx.commit(line, line)
        return self.state.cursor

    def scroll_to_cursor(self, viewport_height: int) -> int:
        return self.state.follow_cursor(viewport_height, self.document.line_count)

    def highlight_spans(self) -> tuple[LineSpans, ...]:
        """Per-line spans valid for the current revision; only stale lines are re-lexed."""

        return self.highlights.spans(self.revision, self.lines, self.language_hint)

    def snapshot(self, *, with_highlights: bool = True) -> BufferView:
        return BufferView(
            lines=tuple(self.lines),
            cursor=self.state.cursor,
            scroll_offset=self.state.scroll_offset,
            revision=self.revision,
            language_hint=self.language_hint,
            spans=self.highlight_spans() if with_highlights else (),
        )

    def to_text(self) -> str:
        return self.document.to_text()


class Transaction(AbstractContextManager["Transaction"]):
    """Wraps one buffer mutation in a telemetry span and stale-marks its lines."""

    def __init__(self, buffer: EditorBuffer, label: str) -> None:
        self.buffer = buffer
        self.label = label
        self._span_cm: Optional[ContextManager[object]] = None

    def __enter__(self) -> "Transaction":
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component=True,
            metadata={"buffer": self.buffer.name},
        )
        self._span_cm.__enter__()
        return self

    def commit(self, start: int, end: int) -> None:
        self.buffer.highlights.invalidate(start, end)

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._span_cm is not None:
            self._span_cm.__exit__(exc_type, exc, tb)
        return False
