"""Turn a file's hunks into an ordered list of edit operations.

The walker replays every hunk against a private copy of the old lines. That
copy is how Removed and Context lines get checked against what the buffer
will really contain, and how the final result is compared with the new
content. Nothing but the returned operations escapes a compile call.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from replay_engine.git.models import DiffHunk, FileChange, LineKind
from replay_engine.runtime import telemetry

from .operations import (
    DeleteLine,
    EditOperation,
    InsertLine,
    MoveCursorTo,
    PauseFor,
    TypeChar,
)
from .states import PlaybackState
from .timing import WAITING_BETWEEN_HUNKS_MULTIPLIER, TimingModel


class MalformedHunkError(ValueError):
    """A hunk does not apply to the content it claims to describe."""

    def __init__(
        self, message: str, *, path: str, hunk_index: Optional[int] = None
    ) -> None:
        location = path if hunk_index is None else f"{path} (hunk {hunk_index})"
        super().__init__(f"{location}: {message}")
        self.path = path
        self.hunk_index = hunk_index
        self.reason = message


class _FileWalker:
    def __init__(self, change: FileChange) -> None:
        self.change = change
        self.lines: List[str] = change.old_lines
        self.ops: List[EditOperation] = []
        self.cursor = 0
        self.offset = 0
        self.consumed = 0  # old-content lines already covered by earlier hunks

    def fail(self, message: str, hunk_index: Optional[int] = None) -> MalformedHunkError:
        return MalformedHunkError(message, path=self.change.path, hunk_index=hunk_index)

    def run(self) -> Tuple[EditOperation, ...]:
        for index, hunk in enumerate(self.change.hunks):
            self._walk_hunk(index, hunk)
        if self.ops and isinstance(self.ops[-1], PauseFor):
            self.ops.pop()
        if self.lines != self.change.new_lines:
            raise self.fail("replayed hunks do not reproduce the new content")
        return tuple(self.ops)

    def _check_ranges(self, index: int, hunk: DiffHunk) -> int:
        context = sum(1 for line in hunk.lines if line.kind is LineKind.CONTEXT)
        if context + hunk.removed_count != hunk.old_length:
            raise self.fail(
                f"old range spans {hunk.old_length} lines but hunk carries "
                f"{context + hunk.removed_count}",
                index,
            )
        if context + hunk.added_count != hunk.new_length:
            raise self.fail(
                f"new range spans {hunk.new_length} lines but hunk carries "
                f"{context + hunk.added_count}",
                index,
            )
        start = max(hunk.old_start - 1, 0)
        if start < self.consumed:
            raise self.fail("hunk overlaps or precedes the previous hunk", index)
        if start + hunk.old_length > len(self.change.old_lines):
            raise self.fail("old range runs past the end of the file", index)
        return start

    def _expect(self, index: int, position: int, text: str, what: str) -> None:
        if position >= len(self.lines) or self.lines[position] != text:
            raise self.fail(f"{what} line {position + 1} does not match {text!r}", index)

    def _walk_hunk(self, index: int, hunk: DiffHunk) -> None:
        start = self._check_ranges(index, hunk)
        position = start + self.offset
        self.consumed = start + hunk.old_length

        if hunk.is_pure_context:
            for change in hunk.lines:
                self._expect(index, position, change.text, "context")
                position += 1
            return

        self.ops.append(
            MoveCursorTo(line=position, col=0, distance=abs(position - self.cursor))
        )
        self.cursor = position

        for change in hunk.lines:
            if change.kind is LineKind.CONTEXT:
                self._expect(index, position, change.text, "context")
                position += 1
                self.cursor = position
            elif change.kind is LineKind.REMOVED:
                self._expect(index, position, change.text, "removed")
                self.ops.append(DeleteLine(line=position))
                del self.lines[position]
                self.cursor = position
            else:
                self.ops.append(InsertLine(line=position, text=""))
                self.ops.extend(TypeChar(char=char) for char in change.text)
                self.lines.insert(position, change.text)
                self.cursor = position
                position += 1

        self.offset += hunk.added_count - hunk.removed_count
        self.ops.append(
            PauseFor(
                multiplier=WAITING_BETWEEN_HUNKS_MULTIPLIER,
                phase=PlaybackState.WAITING_BETWEEN_HUNKS,
            )
        )


def compile_file_change(change: FileChange) -> Tuple[EditOperation, ...]:
    """Untimed operations that turn ``change.old_content`` into ``new_content``."""

    return _FileWalker(change).run()


class DiffCompiler:
    """Compiles and schedules one file at a time, with a telemetry span per file."""

    def __init__(self, timing: TimingModel, *, logger_name: Optional[str] = None) -> None:
        self.timing = timing
        self._logger_name = logger_name

    def compile(self, change: FileChange) -> Tuple[EditOperation, ...]:
        with telemetry.span(
            "compiler::compile",
            component="compiler",
            logger_name=self._logger_name,
            metadata={"path": change.path, "hunks": len(change.hunks)},
        ) as handle:
            operations = compile_file_change(change)
            handle.add_metadata("operations", len(operations))
        return self.timing.schedule(operations)


__all__ = ["DiffCompiler", "MalformedHunkError", "compile_file_change"]
