"""Line-level hunk generation for two blob revisions."""

from __future__ import annotations

from difflib import SequenceMatcher
from typing import List, Sequence

from replay_engine.buffer.document import split_lines

from .models import DiffHunk, LineChange, LineKind


def generate_hunks(old_text: str, new_text: str, *, context: int = 0) -> List[DiffHunk]:
    """Extract ordered hunks from ``old_text`` to ``new_text``.

    A replace opcode yields its Removed lines followed by its Added lines.
    ``context`` surrounding unchanged lines are attached as Context lines and
    close-together changes merge into one hunk, as in a unified diff.
    """

    old_lines = split_lines(old_text)
    new_lines = split_lines(new_text)
    return hunks_from_lines(old_lines, new_lines, context=context)


def hunks_from_lines(
    old_lines: Sequence[str], new_lines: Sequence[str], *, context: int = 0
) -> List[DiffHunk]:
    matcher = SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    hunks: List[DiffHunk] = []

    for group in matcher.get_grouped_opcodes(context):
        if all(tag == "equal" for tag, *_ in group):
            continue
        old_begin, old_end = group[0][1], group[-1][2]
        new_begin, new_end = group[0][3], group[-1][4]
        lines: List[LineChange] = []
        for tag, i1, i2, j1, j2 in group:
            if tag == "equal":
                lines.extend(LineChange(LineKind.CONTEXT, text) for text in old_lines[i1:i2])
                continue
            if tag in ("delete", "replace"):
                lines.extend(LineChange(LineKind.REMOVED, text) for text in old_lines[i1:i2])
            if tag in ("insert", "replace"):
                lines.extend(LineChange(LineKind.ADDED, text) for text in new_lines[j1:j2])
        hunks.append(
            DiffHunk(
                old_start=old_begin + 1,
                old_length=old_end - old_begin,
                new_start=new_begin + 1,
                new_length=new_end - new_begin,
                lines=tuple(lines),
            )
        )

    return hunks


def changed_line_count(hunks: Sequence[DiffHunk]) -> int:
    return sum(hunk.added_count + hunk.removed_count for hunk in hunks)


__all__ = ["generate_hunks", "hunks_from_lines", "changed_line_count"]
