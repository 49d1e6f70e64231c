import pytest

from replay_engine.buffer import (
    BufferDocument,
    BufferState,
    BufferValidationError,
    EditorBuffer,
    ensure_cursor,
    ensure_line_index,
    split_lines,
)


def make_buffer(text: str = "alpha\nbeta\ngamma\n") -> EditorBuffer:
    return EditorBuffer.from_text(text)


def test_split_lines_ignores_trailing_newline() -> None:
    assert split_lines("") == []
    assert split_lines("a") == ["a"]
    assert split_lines("a\n") == ["a"]
    assert split_lines("a\n\nb") == ["a", "", "b"]
    assert split_lines("\n") == [""]


def test_document_update_returns_new_version() -> None:
    document = BufferDocument.from_text("one\ntwo\n")
    updated = document.update_lines(1, 2, ["TWO", "three"])

    assert document.snapshot() == ("one", "two")
    assert updated.snapshot() == ("one", "TWO", "three")
    assert updated.version == document.version + 1
    assert updated.to_text() == "one\nTWO\nthree\n"


def test_every_mutation_bumps_revision() -> None:
    buffer = make_buffer()
    revisions = [buffer.revision]

    buffer.insert_line(1, "")
    revisions.append(buffer.revision)
    buffer.type_char("x")
    revisions.append(buffer.revision)
    buffer.delete_line(0)
    revisions.append(buffer.revision)

    assert revisions == sorted(set(revisions))


def test_move_cursor_clamps() -> None:
    buffer = make_buffer()

    assert buffer.move_cursor(10, 99) == (2, len("gamma"))
    assert buffer.move_cursor(-4, -1) == (0, 0)


def test_move_cursor_does_not_touch_content() -> None:
    buffer = make_buffer()
    revision = buffer.revision

    buffer.move_cursor(2)

    assert buffer.revision == revision


def test_insert_line_and_type() -> None:
    buffer = make_buffer()

    buffer.insert_line(1, "")
    for char in "new":
        buffer.type_char(char)

    assert list(buffer.lines) == ["alpha", "new", "beta", "gamma"]
    assert buffer.cursor == (1, 3)


def test_insert_line_at_end_appends() -> None:
    buffer = make_buffer("only\n")

    buffer.insert_line(1, "last")

    assert list(buffer.lines) == ["only", "last"]
    assert buffer.cursor == (1, 4)


def test_insert_line_past_end_rejected() -> None:
    buffer = make_buffer("only\n")

    with pytest.raises(BufferValidationError):
        buffer.insert_line(3)


def test_type_newline_splits_line() -> None:
    buffer = make_buffer("helloworld\n")
    buffer.move_cursor(0, 5)

    buffer.type_char("\n")

    assert list(buffer.lines) == ["hello", "world"]
    assert buffer.cursor == (1, 0)


def test_type_into_empty_buffer_opens_a_line() -> None:
    buffer = EditorBuffer()

    buffer.type_char("a")

    assert list(buffer.lines) == ["a"]
    assert buffer.cursor == (0, 1)


def test_delete_line_keeps_cursor_in_range() -> None:
    buffer = make_buffer()

    buffer.delete_line(2)
    assert buffer.cursor == (1, 0)

    buffer.delete_line(0)
    buffer.delete_line(0)
    assert list(buffer.lines) == []
    assert buffer.cursor == (0, 0)


def test_delete_line_out_of_range() -> None:
    buffer = make_buffer()

    with pytest.raises(BufferValidationError) as excinfo:
        buffer.delete_line(3)

    assert excinfo.value.cursor == (3, 0)


def test_load_resets_cursor_and_scroll() -> None:
    buffer = make_buffer()
    buffer.move_cursor(2, 3)
    revision = buffer.revision

    buffer.load("x\n", language_hint="main.py")

    assert list(buffer.lines) == ["x"]
    assert buffer.cursor == (0, 0)
    assert buffer.revision > revision
    assert buffer.language_hint == "main.py"


def test_follow_cursor_centres_when_leaving_viewport() -> None:
    state = BufferState(cursor=(50, 0))

    offset = state.follow_cursor(10, 100)

    assert offset == 45
    state.set_cursor(52, 0)
    assert state.follow_cursor(10, 100) == 45


def test_follow_cursor_clamps_to_document() -> None:
    state = BufferState(cursor=(98, 0))

    assert state.follow_cursor(10, 100) == 90
    state.set_cursor(0, 0)
    assert state.follow_cursor(10, 100) == 0


def test_snapshot_is_read_only_view() -> None:
    buffer = make_buffer()
    buffer.move_cursor(1, 2)

    view = buffer.snapshot()
    buffer.delete_line(0)

    assert view.lines == ("alpha", "beta", "gamma")
    assert view.cursor == (1, 2)
    assert view.visible_lines(2) == ("alpha", "beta")


def test_ensure_cursor_rules() -> None:
    empty = BufferDocument()
    assert ensure_cursor(empty, (0, 0)) == (0, 0)
    with pytest.raises(BufferValidationError):
        ensure_cursor(empty, (0, 1))

    document = BufferDocument.from_text("abc\n")
    assert ensure_cursor(document, (0, 3)) == (0, 3)
    with pytest.raises(BufferValidationError):
        ensure_cursor(document, (0, 4))
    with pytest.raises(BufferValidationError):
        ensure_cursor(document, (1, 0))


def test_ensure_line_index_allow_end() -> None:
    document = BufferDocument.from_text("a\nb\n")

    assert ensure_line_index(document, 2, allow_end=True) == 2
    with pytest.raises(BufferValidationError):
        ensure_line_index(document, 2)


def test_edit_marks_only_touched_lines_stale() -> None:
    buffer = make_buffer()
    buffer.highlight_spans()

    buffer.move_cursor(1, 0)
    buffer.type_char("b")

    assert buffer.highlights.stale_lines() == [1]
    assert buffer.state.cursor == (1, 1)
