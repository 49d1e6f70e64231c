"""Per-line highlight cache and the pygments-backed tokenizer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Set, Tuple

from pygments.lexers import get_lexer_for_filename
from pygments.token import Token
from pygments.util import ClassNotFound

from replay_engine.runtime import telemetry

ByteRange = Tuple[int, int]
PLAIN_KIND = "text"


@dataclass(frozen=True, slots=True)
class HighlightSpan:
    """Token kind for ``[start, end)`` bytes of one buffer line."""

    start: int
    end: int
    kind: str

    def char_range(self, text: str) -> tuple[int, int]:
        """Translate the byte range into character offsets within ``text``."""

        encoded = text.encode("utf-8")
        start = len(encoded[: self.start].decode("utf-8", errors="ignore"))
        end = len(encoded[: self.end].decode("utf-8", errors="ignore"))
        return start, end


LineSpans = Tuple[HighlightSpan, ...]


class Highlighter(Protocol):
    def highlight(
        self, text: str, language_hint: Optional[str]
    ) -> Sequence[Tuple[ByteRange, str]]:
        ...


class PlainHighlighter:
    """Highlighter that never colours anything."""

    def highlight(
        self, text: str, language_hint: Optional[str]
    ) -> Sequence[Tuple[ByteRange, str]]:
        del text, language_hint
        return ()


# Checked in order; the first matching parent wins.
_KIND_TABLE: Tuple[Tuple[Any, str], ...] = (
    (Token.Comment, "comment"),
    (Token.Keyword.Type, "type"),
    (Token.Keyword, "keyword"),
    (Token.Name.Builtin, "builtin"),
    (Token.Name.Function, "function"),
    (Token.Name.Class, "type"),
    (Token.Name.Decorator, "attribute"),
    (Token.Name.Attribute, "attribute"),
    (Token.Name.Tag, "tag"),
    (Token.Literal.String, "string"),
    (Token.Literal.Number, "number"),
    (Token.Operator, "operator"),
    (Token.Punctuation, "punctuation"),
)


def token_kind(ttype: Any) -> Optional[str]:
    for parent, kind in _KIND_TABLE:
        if ttype in parent:
            return kind
    return None


class PygmentsHighlighter:
    """Tokenizes single lines with the lexer matching the file name."""

    def __init__(self) -> None:
        self._lexers: Dict[str, Any] = {}

    def _lexer_for(self, language_hint: Optional[str]) -> Any:
        if not language_hint:
            return None
        if language_hint not in self._lexers:
            try:
                lexer = get_lexer_for_filename(
                    language_hint, stripnl=False, ensurenl=False
                )
            except ClassNotFound:
                lexer = None
            self._lexers[language_hint] = lexer
        return self._lexers[language_hint]

    def highlight(
        self, text: str, language_hint: Optional[str]
    ) -> Sequence[Tuple[ByteRange, str]]:
        lexer = self._lexer_for(language_hint)
        if lexer is None:
            return ()
        spans: List[Tuple[ByteRange, str]] = []
        offset = 0
        for _index, ttype, value in lexer.get_tokens_unprocessed(text):
            width = len(value.encode("utf-8"))
            kind = token_kind(ttype)
            if kind is not None and width:
                spans.append(((offset, offset + width), kind))
            offset += width
        return spans


class HighlightCache:
    """Spans per line, recomputed only for lines marked stale.

    Entries are kept parallel to the buffer lines; inserts and deletes shift
    them so untouched lines keep their span tuples. The per-line tuple of
    entries is memoised per content revision.
    """

    def __init__(
        self,
        highlighter: Optional[Highlighter] = None,
        *,
        logger_name: Optional[str] = None,
    ) -> None:
        self.highlighter: Highlighter = highlighter or PlainHighlighter()
        self._entries: List[LineSpans] = []
        self._stale: Set[int] = set()
        self._memo: Optional[Tuple[int, Tuple[LineSpans, ...]]] = None
        self._logger_name = logger_name
        self.highlight_calls = 0

    def reset(self, line_count: int) -> None:
        self._entries = [()] * line_count
        self._stale = set(range(line_count))
        self._memo = None

    def invalidate(self, start: int, end: Optional[int] = None) -> None:
        stop = start + 1 if end is None else end
        self._stale.update(range(max(start, 0), min(stop, len(self._entries))))
        self._memo = None

    def insert(self, index: int, count: int = 1) -> None:
        self._entries[index:index] = [()] * count
        shifted = {line + count if line >= index else line for line in self._stale}
        self._stale = shifted | set(range(index, index + count))
        self._memo = None

    def remove(self, index: int) -> None:
        del self._entries[index]
        self._stale.discard(index)
        self._stale = {line - 1 if line > index else line for line in self._stale}
        self._memo = None

    def stale_lines(self) -> List[int]:
        return sorted(self._stale)

    def spans(
        self, revision: int, lines: Sequence[str], language_hint: Optional[str]
    ) -> Tuple[LineSpans, ...]:
        """One span tuple per line; untouched lines hand back the same tuple."""

        if self._memo is not None and self._memo[0] == revision:
            return self._memo[1]
        if len(self._entries) != len(lines):
            self.reset(len(lines))
        for index in sorted(self._stale):
            self._entries[index] = self._highlight_line(index, lines[index], language_hint)
        self._stale.clear()
        result = tuple(self._entries)
        self._memo = (revision, result)
        return result

    def _highlight_line(
        self, index: int, text: str, language_hint: Optional[str]
    ) -> LineSpans:
        self.highlight_calls += 1
        try:
            raw = self.highlighter.highlight(text, language_hint)
            return tuple(HighlightSpan(start, end, kind) for (start, end), kind in raw)
        except Exception as exc:
            telemetry.record_event(
                "highlight.fallback",
                level="warning",
                data={"line": index, "hint": language_hint, "error": str(exc)},
                logger_name=self._logger_name,
            )
            width = len(text.encode("utf-8"))
            if not width:
                return ()
            return (HighlightSpan(0, width, PLAIN_KIND),)


__all__ = [
    "HighlightSpan",
    "Highlighter",
    "HighlightCache",
    "LineSpans",
    "PlainHighlighter",
    "PygmentsHighlighter",
    "PLAIN_KIND",
    "token_kind",
]
