"""Pure builders for the side panes: no widgets, just rows of text."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import groupby
from typing import List, Optional, Sequence, Tuple

from replay_engine.git.models import CommitMetadata, FileChange, FileStatus, display_key

NO_COMMIT = "No commit loaded"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

STATUS_GLYPHS = {
    FileStatus.ADDED: "+",
    FileStatus.DELETED: "-",
    FileStatus.MODIFIED: "~",
    FileStatus.RENAMED: ">",
}


@dataclass(frozen=True, slots=True)
class FileTreeRow:
    text: str
    status: Optional[FileStatus] = None
    is_directory: bool = False
    current: bool = False
    additions: int = 0
    deletions: int = 0


def status_glyph(status: FileStatus) -> str:
    return STATUS_GLYPHS.get(status, " ")


def file_tree_rows(
    changes: Sequence[FileChange], current_index: Optional[int] = None
) -> Tuple[List[FileTreeRow], Optional[int]]:
    """Rows grouped under ``dir/`` headers, plus the row index of the current file.

    ``current_index`` refers to the position in ``changes``, not in the rows.
    """

    indexed = sorted(enumerate(changes), key=lambda item: display_key(item[1].path))
    rows: List[FileTreeRow] = []
    current_row: Optional[int] = None

    for directory, group in groupby(indexed, key=lambda item: display_key(item[1].path)[0]):
        indent = ""
        if directory:
            rows.append(FileTreeRow(text=f"{directory}/", is_directory=True))
            indent = "  "
        for index, change in group:
            is_current = index == current_index
            if is_current:
                current_row = len(rows)
            filename = display_key(change.path)[1]
            rows.append(
                FileTreeRow(
                    text=(
                        f"{indent}{status_glyph(change.status)} {filename}"
                        f" +{change.additions} -{change.deletions}"
                    ),
                    status=change.status,
                    current=is_current,
                    additions=change.additions,
                    deletions=change.deletions,
                )
            )
    return rows, current_row


def status_lines(commit: Optional[CommitMetadata]) -> List[str]:
    if commit is None:
        return [NO_COMMIT]
    lines = [
        f"hash: {commit.short_hash}",
        f"author: {commit.author}",
        f"date: {commit.date.strftime(DATE_FORMAT)}",
    ]
    lines.extend(line for line in commit.message.splitlines() if line.strip())
    return lines


__all__ = [
    "FileTreeRow",
    "NO_COMMIT",
    "STATUS_GLYPHS",
    "file_tree_rows",
    "status_glyph",
    "status_lines",
]
