import pytest

from replay_engine.animation import (
    DeleteLine,
    EmitCommand,
    InsertLine,
    MoveCursorTo,
    OpKind,
    PauseFor,
    TimingModel,
    TypeChar,
    cursor_move_multiplier,
    duration,
)
from replay_engine.animation.timing import CURSOR_MOVE_CAP, GIT_PUSH_MULTIPLIER


def test_fixed_multipliers() -> None:
    assert duration(OpKind.TYPE_CHAR, 10.0) == pytest.approx(10.0)
    assert duration(OpKind.DELETE_LINE, 10.0) == pytest.approx(100.0)
    assert duration(OpKind.INSERT_LINE, 10.0) == pytest.approx(67.0)
    assert duration(OpKind.EMIT_COMMAND, 10.0) == 0.0


def test_cursor_moves_are_tiered_and_capped() -> None:
    assert cursor_move_multiplier(0) == 2.0
    assert cursor_move_multiplier(3) == 2.0
    assert cursor_move_multiplier(4) == 5.0
    assert cursor_move_multiplier(40) == 10.0
    assert cursor_move_multiplier(41) == CURSOR_MOVE_CAP
    assert cursor_move_multiplier(10_000) == CURSOR_MOVE_CAP
    assert cursor_move_multiplier(-5) == cursor_move_multiplier(5)


def test_pause_needs_multiplier() -> None:
    with pytest.raises(ValueError):
        duration(OpKind.PAUSE, 10.0)
    assert duration(OpKind.PAUSE, 10.0, multiplier=GIT_PUSH_MULTIPLIER) == pytest.approx(667.0)


def test_negative_speed_rejected() -> None:
    with pytest.raises(ValueError):
        TimingModel(-1.0)


@pytest.mark.parametrize(
    "first, second",
    [
        (TypeChar("a"), DeleteLine(0)),
        (InsertLine(0), MoveCursorTo(9, distance=9)),
        (PauseFor(50.0), TypeChar("z")),
    ],
)
def test_doubling_speed_preserves_ratios(first, second) -> None:
    slow = TimingModel(20.0)
    fast = TimingModel(10.0)

    assert slow.duration_of(first) == pytest.approx(2 * fast.duration_of(first))
    assert slow.duration_of(second) == pytest.approx(2 * fast.duration_of(second))
    assert slow.duration_of(first) / slow.duration_of(second) == pytest.approx(
        fast.duration_of(first) / fast.duration_of(second)
    )


def test_schedule_sets_delays_without_mutating_input() -> None:
    model = TimingModel(5.0)
    operations = [TypeChar("a"), EmitCommand("git push"), PauseFor(16.7)]

    scheduled = model.schedule(operations)

    assert [op.delay_ms for op in scheduled] == pytest.approx([5.0, 0.0, 83.5])
    assert all(op.delay_ms == 0.0 for op in operations)
    assert model.total_ms(operations) == pytest.approx(88.5)
