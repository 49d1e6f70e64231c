"""Atomic, timed edit operations produced by the compiler."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from .states import PlaybackState


class OpKind(str, Enum):
    MOVE_CURSOR = "move_cursor"
    TYPE_CHAR = "type_char"
    DELETE_LINE = "delete_line"
    INSERT_LINE = "insert_line"
    PAUSE = "pause"
    EMIT_COMMAND = "emit_command"


@dataclass(frozen=True, slots=True)
class MoveCursorTo:
    line: int
    col: int = 0
    distance: int = 0
    delay_ms: float = 0.0

    kind = OpKind.MOVE_CURSOR

    @property
    def phase(self) -> PlaybackState:
        return PlaybackState.MOVING_CURSOR


@dataclass(frozen=True, slots=True)
class TypeChar:
    char: str
    delay_ms: float = 0.0

    kind = OpKind.TYPE_CHAR

    @property
    def phase(self) -> PlaybackState:
        return PlaybackState.TYPING


@dataclass(frozen=True, slots=True)
class DeleteLine:
    line: int
    delay_ms: float = 0.0

    kind = OpKind.DELETE_LINE

    @property
    def phase(self) -> PlaybackState:
        return PlaybackState.DELETING_LINE


@dataclass(frozen=True, slots=True)
class InsertLine:
    line: int
    text: str = ""
    delay_ms: float = 0.0

    kind = OpKind.INSERT_LINE

    @property
    def phase(self) -> PlaybackState:
        return PlaybackState.INSERTING_LINE


@dataclass(frozen=True, slots=True)
class PauseFor:
    """Idle beat of ``multiplier`` x base speed."""

    multiplier: float
    phase: PlaybackState = PlaybackState.WAITING_BETWEEN_HUNKS
    delay_ms: float = 0.0

    kind = OpKind.PAUSE


@dataclass(frozen=True, slots=True)
class EmitCommand:
    """Scripted shell command shown in the command pane."""

    text: str
    phase: PlaybackState = PlaybackState.GIT_ADD
    delay_ms: float = 0.0

    kind = OpKind.EMIT_COMMAND


EditOperation = Union[MoveCursorTo, TypeChar, DeleteLine, InsertLine, PauseFor, EmitCommand]


def with_delay(operation: EditOperation, delay_ms: float) -> EditOperation:
    return replace(operation, delay_ms=delay_ms)


__all__ = [
    "DeleteLine",
    "EditOperation",
    "EmitCommand",
    "InsertLine",
    "MoveCursorTo",
    "OpKind",
    "PauseFor",
    "TypeChar",
    "with_delay",
]
