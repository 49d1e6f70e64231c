"""Commit, file change, and hunk data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from replay_engine.buffer.document import split_lines


class FileStatus(str, Enum):
    ADDED = "A"
    DELETED = "D"
    MODIFIED = "M"
    RENAMED = "R"
    COPIED = "C"

    @classmethod
    def from_code(cls, code: str) -> "FileStatus":
        """Map a ``git diff --name-status`` letter (``R100`` etc.) to a status."""

        letter = code[:1].upper()
        if letter == "T":
            return cls.MODIFIED
        return cls(letter)


class LineKind(str, Enum):
    CONTEXT = "context"
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class LineChange:
    kind: LineKind
    text: str


@dataclass(frozen=True, slots=True)
class DiffHunk:
    """One old-range/new-range substitution.

    ``old_start``/``new_start`` are 1-based and always name the first line the
    hunk touches, also for zero-length ranges (where the insertion lands).
    """

    old_start: int
    old_length: int
    new_start: int
    new_length: int
    lines: tuple[LineChange, ...] = ()

    @property
    def added_count(self) -> int:
        return sum(1 for change in self.lines if change.kind is LineKind.ADDED)

    @property
    def removed_count(self) -> int:
        return sum(1 for change in self.lines if change.kind is LineKind.REMOVED)

    @property
    def is_pure_context(self) -> bool:
        return self.added_count == 0 and self.removed_count == 0


@dataclass(frozen=True, slots=True)
class FileChange:
    path: str
    status: FileStatus
    old_content: str = ""
    new_content: str = ""
    hunks: tuple[DiffHunk, ...] = ()
    old_path: Optional[str] = None
    exclusion_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status is FileStatus.ADDED and self.old_content:
            raise ValueError(f"Added file '{self.path}' cannot have old content")
        if self.status is FileStatus.DELETED and self.new_content:
            raise ValueError(f"Deleted file '{self.path}' cannot have new content")

    @property
    def old_lines(self) -> List[str]:
        return split_lines(self.old_content)

    @property
    def new_lines(self) -> List[str]:
        return split_lines(self.new_content)

    @property
    def is_excluded(self) -> bool:
        return self.exclusion_reason is not None

    @property
    def additions(self) -> int:
        return sum(hunk.added_count for hunk in self.hunks)

    @property
    def deletions(self) -> int:
        return sum(hunk.removed_count for hunk in self.hunks)


def display_key(path: str) -> tuple[str, str]:
    """File-tree sort key: (directory, filename), root files under ``""``."""

    directory, _, filename = path.rpartition("/")
    return directory, filename


@dataclass(frozen=True, slots=True)
class CommitMetadata:
    hash: str
    author: str
    date: datetime
    message: str
    changes: tuple[FileChange, ...] = field(default_factory=tuple)

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    @property
    def subject(self) -> str:
        for line in self.message.splitlines():
            if line.strip():
                return line.strip()
        return ""


__all__ = [
    "CommitMetadata",
    "DiffHunk",
    "FileChange",
    "FileStatus",
    "LineChange",
    "LineKind",
    "display_key",
]
