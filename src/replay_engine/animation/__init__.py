"""Diff compilation, timing, execution, and playback sequencing."""

from .compiler import DiffCompiler, MalformedHunkError, compile_file_change
from .executor import AnimationExecutor
from .operations import (
    DeleteLine,
    EditOperation,
    EmitCommand,
    InsertLine,
    MoveCursorTo,
    OpKind,
    PauseFor,
    TypeChar,
)
from .playback import PlaybackMode, PlaybackSnapshot, PlaybackStateMachine, SkippedFile
from .selector import CommitSelector, SelectionMode
from .states import PlaybackState
from .timing import TimingModel, cursor_move_multiplier, duration

__all__ = [
    "AnimationExecutor",
    "CommitSelector",
    "DeleteLine",
    "DiffCompiler",
    "EditOperation",
    "EmitCommand",
    "InsertLine",
    "MalformedHunkError",
    "MoveCursorTo",
    "OpKind",
    "PauseFor",
    "PlaybackMode",
    "PlaybackSnapshot",
    "PlaybackState",
    "PlaybackStateMachine",
    "SelectionMode",
    "SkippedFile",
    "TimingModel",
    "TypeChar",
    "compile_file_change",
    "cursor_move_multiplier",
    "duration",
]
