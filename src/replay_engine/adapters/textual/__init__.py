"""Textual adapter surface for the replay engine."""

from .controller import ReplayUIHooks, TextualReplayAdapter
from .panes import FileTreeRow, file_tree_rows, status_lines

__all__ = [
    "FileTreeRow",
    "ReplayUIHooks",
    "TextualReplayAdapter",
    "file_tree_rows",
    "status_lines",
]
