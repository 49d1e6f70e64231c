"""Durations for every operation kind, all scaled from one base typing speed.

Every multiplier below is relative to the per-character delay, so a single
speed knob rescales the whole session proportionally.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from .operations import EditOperation, OpKind, with_delay

TYPE_CHAR_MULTIPLIER = 1.0
DELETE_LINE_MULTIPLIER = 10.0
INSERT_LINE_MULTIPLIER = 6.7
EMIT_COMMAND_MULTIPLIER = 0.0

WAITING_BETWEEN_HUNKS_MULTIPLIER = 50.0
GIT_ADD_MULTIPLIER = 16.7
GIT_COMMIT_MULTIPLIER = 16.7
GIT_PUSH_MULTIPLIER = 66.7
CHECKOUT_MULTIPLIER = 16.7
OPENING_FILE_MULTIPLIER = 33.3
WAITING_FOR_NEXT_MULTIPLIER = 100.0

# (max line distance, multiplier); anything further uses the cap.
CURSOR_MOVE_TIERS: Tuple[Tuple[int, float], ...] = (
    (3, 2.0),
    (10, 5.0),
    (40, 10.0),
)
CURSOR_MOVE_CAP = 20.0

_FIXED_MULTIPLIERS = {
    OpKind.TYPE_CHAR: TYPE_CHAR_MULTIPLIER,
    OpKind.DELETE_LINE: DELETE_LINE_MULTIPLIER,
    OpKind.INSERT_LINE: INSERT_LINE_MULTIPLIER,
    OpKind.EMIT_COMMAND: EMIT_COMMAND_MULTIPLIER,
}


def cursor_move_multiplier(distance: int) -> float:
    distance = abs(distance)
    for limit, multiplier in CURSOR_MOVE_TIERS:
        if distance <= limit:
            return multiplier
    return CURSOR_MOVE_CAP


def duration(
    kind: OpKind,
    base_speed_ms: float,
    *,
    distance: int = 0,
    multiplier: float | None = None,
) -> float:
    """Milliseconds an operation of ``kind`` takes at ``base_speed_ms`` per char.

    Cursor moves need the line ``distance``; pauses need their ``multiplier``.
    """

    if base_speed_ms < 0:
        raise ValueError("base_speed_ms cannot be negative")
    if kind is OpKind.MOVE_CURSOR:
        return cursor_move_multiplier(distance) * base_speed_ms
    if kind is OpKind.PAUSE:
        if multiplier is None:
            raise ValueError("pause durations need a multiplier")
        return multiplier * base_speed_ms
    return _FIXED_MULTIPLIERS[kind] * base_speed_ms


class TimingModel:
    """Assigns each compiled operation its delay from the previous one."""

    def __init__(self, base_speed_ms: float) -> None:
        if base_speed_ms < 0:
            raise ValueError("base_speed_ms cannot be negative")
        self.base_speed_ms = float(base_speed_ms)

    def duration_of(self, operation: EditOperation) -> float:
        return duration(
            operation.kind,
            self.base_speed_ms,
            distance=getattr(operation, "distance", 0),
            multiplier=getattr(operation, "multiplier", None),
        )

    def schedule(self, operations: Iterable[EditOperation]) -> Tuple[EditOperation, ...]:
        return tuple(with_delay(op, self.duration_of(op)) for op in operations)

    def total_ms(self, operations: Iterable[EditOperation]) -> float:
        return sum(self.duration_of(op) for op in operations)


__all__ = [
    "CHECKOUT_MULTIPLIER",
    "CURSOR_MOVE_CAP",
    "CURSOR_MOVE_TIERS",
    "DELETE_LINE_MULTIPLIER",
    "GIT_ADD_MULTIPLIER",
    "GIT_COMMIT_MULTIPLIER",
    "GIT_PUSH_MULTIPLIER",
    "INSERT_LINE_MULTIPLIER",
    "OPENING_FILE_MULTIPLIER",
    "TYPE_CHAR_MULTIPLIER",
    "TimingModel",
    "WAITING_BETWEEN_HUNKS_MULTIPLIER",
    "WAITING_FOR_NEXT_MULTIPLIER",
    "cursor_move_multiplier",
    "duration",
]
