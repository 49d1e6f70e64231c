"""Cooperative executor applying due operations to the edit buffer."""

from __future__ import annotations

import threading
from collections import deque
from typing import Callable, Deque, Dict, Iterable, List, Optional

from replay_engine.buffer import BufferView, EditorBuffer, Highlighter

from .operations import (
    DeleteLine,
    EditOperation,
    EmitCommand,
    InsertLine,
    MoveCursorTo,
    PauseFor,
    TypeChar,
)

COMMAND_LOG_LIMIT = 50
DEFAULT_VIEWPORT_HEIGHT = 40


class AnimationExecutor:
    """Drains whatever queue it is given, as fast as elapsed time allows.

    Each tick adds the elapsed milliseconds to a time budget; while the budget
    covers the head operation's delay, that operation is popped, applied as a
    whole, and its delay subtracted. Nothing here blocks.
    """

    def __init__(
        self,
        buffer: Optional[EditorBuffer] = None,
        *,
        highlighter: Optional[Highlighter] = None,
        exit_event: Optional[threading.Event] = None,
        viewport_height: int = DEFAULT_VIEWPORT_HEIGHT,
    ) -> None:
        self.buffer = buffer or EditorBuffer(highlighter=highlighter)
        self.exit_event = exit_event or threading.Event()
        self.viewport_height = viewport_height
        self.commands: Deque[str] = deque(maxlen=COMMAND_LOG_LIMIT)
        self.applied_count = 0
        self._queue: Deque[EditOperation] = deque()
        self._budget = 0.0
        self._appliers: Dict[type, Callable[[EditOperation], None]] = {
            MoveCursorTo: self._apply_move,
            TypeChar: self._apply_type,
            DeleteLine: self._apply_delete,
            InsertLine: self._apply_insert,
            PauseFor: self._apply_pause,
            EmitCommand: self._apply_command,
        }

    @property
    def exhausted(self) -> bool:
        return not self._queue

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def budget_ms(self) -> float:
        return self._budget

    def peek(self) -> Optional[EditOperation]:
        return self._queue[0] if self._queue else None

    def load(self, operations: Iterable[EditOperation]) -> None:
        """Queue the next phase; leftover budget carries over."""

        self._queue = deque(operations)

    def clear(self) -> None:
        self._queue.clear()
        self._budget = 0.0

    def open_document(self, text: str, *, language_hint: Optional[str] = None) -> None:
        self.buffer.load(text, language_hint=language_hint)
        self.buffer.scroll_to_cursor(self.viewport_height)

    def set_viewport_height(self, height: int) -> None:
        self.viewport_height = max(height, 1)
        self.buffer.scroll_to_cursor(self.viewport_height)

    def tick(self, elapsed_ms: float) -> List[EditOperation]:
        """Advance by ``elapsed_ms`` and apply every operation now due."""

        if self.exit_event.is_set():
            return []
        if not self._queue:
            self._budget = 0.0
            return []
        self._budget += max(elapsed_ms, 0.0)
        return self.drain()

    def drain(self) -> List[EditOperation]:
        """Apply due operations using only the budget already accumulated."""

        applied: List[EditOperation] = []
        while self._queue and not self.exit_event.is_set():
            head = self._queue[0]
            if head.delay_ms > self._budget:
                break
            self._queue.popleft()
            self._budget -= head.delay_ms
            self._apply(head)
            applied.append(head)
        return applied

    def _apply(self, operation: EditOperation) -> None:
        self._appliers[type(operation)](operation)
        self.applied_count += 1
        self.buffer.scroll_to_cursor(self.viewport_height)

    def _apply_move(self, operation: MoveCursorTo) -> None:
        self.buffer.move_cursor(operation.line, operation.col)

    def _apply_type(self, operation: TypeChar) -> None:
        self.buffer.type_char(operation.char)

    def _apply_delete(self, operation: DeleteLine) -> None:
        self.buffer.delete_line(operation.line)

    def _apply_insert(self, operation: InsertLine) -> None:
        self.buffer.insert_line(operation.line, operation.text)

    def _apply_pause(self, operation: PauseFor) -> None:
        del operation

    def _apply_command(self, operation: EmitCommand) -> None:
        self.commands.append(operation.text)

    def snapshot(self) -> BufferView:
        return self.buffer.snapshot()


__all__ = ["AnimationExecutor", "COMMAND_LOG_LIMIT", "DEFAULT_VIEWPORT_HEIGHT"]
