"""Commit data model and the git-backed retrieval collaborator."""

from .diff import changed_line_count, generate_hunks, hunks_from_lines
from .filters import ExclusionPolicy, MAX_BLOB_SIZE, MAX_CHANGE_LINES, is_binary
from .models import (
    CommitMetadata,
    DiffHunk,
    FileChange,
    FileStatus,
    LineChange,
    LineKind,
    display_key,
)
from .repository import (
    CommitSource,
    EmptyHistoryError,
    GitRepository,
    HistoryExhaustedError,
    RetrievalError,
)

__all__ = [
    "CommitMetadata",
    "CommitSource",
    "DiffHunk",
    "EmptyHistoryError",
    "ExclusionPolicy",
    "FileChange",
    "FileStatus",
    "GitRepository",
    "HistoryExhaustedError",
    "LineChange",
    "LineKind",
    "MAX_BLOB_SIZE",
    "MAX_CHANGE_LINES",
    "RetrievalError",
    "changed_line_count",
    "display_key",
    "generate_hunks",
    "hunks_from_lines",
    "is_binary",
]
