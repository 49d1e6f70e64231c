from typing import List, Optional, Sequence, Tuple

from replay_engine.buffer import (
    EditorBuffer,
    HighlightCache,
    HighlightSpan,
    PlainHighlighter,
    PygmentsHighlighter,
)


class RecordingHighlighter:
    """Marks the whole line as ``word`` and remembers what it was asked."""

    def __init__(self) -> None:
        self.calls: List[str] = []

    def highlight(
        self, text: str, language_hint: Optional[str]
    ) -> Sequence[Tuple[Tuple[int, int], str]]:
        self.calls.append(text)
        width = len(text.encode("utf-8"))
        return [((0, width), "word")] if width else []


class ExplodingHighlighter:
    def highlight(
        self, text: str, language_hint: Optional[str]
    ) -> Sequence[Tuple[Tuple[int, int], str]]:
        raise RuntimeError("tokenizer crashed")


def test_spans_computed_once_per_revision() -> None:
    highlighter = RecordingHighlighter()
    buffer = EditorBuffer.from_text("a\nb\nc\n", highlighter=highlighter)

    first = buffer.highlight_spans()
    second = buffer.highlight_spans()

    assert first == second
    assert highlighter.calls == ["a", "b", "c"]
    assert buffer.highlights.highlight_calls == 3


def test_only_touched_lines_are_relexed() -> None:
    highlighter = RecordingHighlighter()
    buffer = EditorBuffer.from_text("a\nb\nc\n", highlighter=highlighter)
    buffer.highlight_spans()
    highlighter.calls.clear()

    buffer.move_cursor(1, 1)
    buffer.type_char("x")
    spans = buffer.highlight_spans()

    assert highlighter.calls == ["bx"]
    assert spans[1] == (HighlightSpan(start=0, end=2, kind="word"),)


def test_insert_and_delete_shift_cached_lines() -> None:
    highlighter = RecordingHighlighter()
    buffer = EditorBuffer.from_text("a\nb\nc\n", highlighter=highlighter)
    buffer.highlight_spans()
    highlighter.calls.clear()

    buffer.insert_line(1, "zz")
    buffer.delete_line(0)
    spans = buffer.highlight_spans()

    assert highlighter.calls == ["zz"]
    assert [[span.end for span in line] for line in spans] == [[2], [1], [1]]


def test_keystroke_reuses_untouched_line_spans() -> None:
    lines = "\n".join(f"line{n}" for n in range(200)) + "\n"
    buffer = EditorBuffer.from_text(lines, highlighter=RecordingHighlighter())
    before = buffer.snapshot().spans

    buffer.move_cursor(100, 6)
    buffer.type_char("x")
    after = buffer.snapshot().spans

    assert after[100] is not before[100]
    assert all(after[n] is before[n] for n in range(200) if n != 100)
    assert buffer.highlights.highlight_calls == 201


def test_stale_lines_follow_inserts_and_removals() -> None:
    cache = HighlightCache(RecordingHighlighter())
    cache.spans(1, ["a", "b", "c", "d"], None)

    cache.invalidate(2)
    cache.insert(0)
    assert cache.stale_lines() == [0, 3]

    cache.remove(1)
    assert cache.stale_lines() == [0, 2]


def test_view_spans_for_line_is_an_index_lookup() -> None:
    buffer = EditorBuffer.from_text("a\nb\n", highlighter=RecordingHighlighter())
    view = buffer.snapshot()

    assert view.spans_for_line(1) == (HighlightSpan(start=0, end=1, kind="word"),)
    assert view.spans_for_line(5) == ()


def test_highlighter_failure_falls_back_to_plain() -> None:
    buffer = EditorBuffer.from_text("boom\n\n", highlighter=ExplodingHighlighter())

    spans = buffer.highlight_spans()

    assert spans == ((HighlightSpan(start=0, end=4, kind="text"),), ())


def test_plain_highlighter_returns_nothing() -> None:
    assert PlainHighlighter().highlight("def f(): pass", "x.py") == ()


def test_cache_invalidate_marks_range_stale() -> None:
    cache = HighlightCache(RecordingHighlighter())
    cache.spans(1, ["a", "b", "c"], None)

    cache.invalidate(0, 2)

    assert cache.stale_lines() == [0, 1]


def test_pygments_highlighter_classifies_python() -> None:
    highlighter = PygmentsHighlighter()

    spans = highlighter.highlight("def name(): return 1", "module.py")
    kinds = {kind for _range, kind in spans}

    assert ((0, 3), "keyword") in spans
    assert "function" in kinds
    assert "number" in kinds


def test_pygments_highlighter_unknown_file_is_plain() -> None:
    assert PygmentsHighlighter().highlight("anything", "notes.unknown-ext") == ()
    assert PygmentsHighlighter().highlight("anything", None) == ()


def test_char_range_handles_multibyte_text() -> None:
    text = "é = 1"
    start = len("é = ".encode("utf-8"))
    span = HighlightSpan(start=start, end=start + 1, kind="number")

    assert span.char_range(text) == (4, 5)
