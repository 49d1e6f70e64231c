"""Choose which commit plays next."""

from __future__ import annotations

import random
from enum import Enum
from typing import List, Optional

from replay_engine.git.repository import (
    CommitSource,
    EmptyHistoryError,
    HistoryExhaustedError,
)
from replay_engine.runtime import telemetry


class SelectionMode(str, Enum):
    FIXED = "fixed"
    RANDOM = "random"
    ASC = "asc"
    DESC = "desc"
    RANGE = "range"


class CommitSelector:
    """Hands out commit identifiers for playback.

    FIXED resolves its reference once and returns it forever. RANDOM, ASC and
    DESC lazily cache the non-merge history on first use. RANGE walks ``A..B``
    in ``range_order``: ASC oldest first, DESC newest first, RANDOM drawn the
    same way RANDOM mode is. Ordered walks wrap around when ``wrap`` is set and
    raise :class:`HistoryExhaustedError` otherwise.
    """

    def __init__(
        self,
        source: CommitSource,
        *,
        mode: SelectionMode = SelectionMode.RANDOM,
        reference: Optional[str] = None,
        range_order: SelectionMode = SelectionMode.ASC,
        wrap: bool = True,
        rng: Optional[random.Random] = None,
        logger_name: Optional[str] = None,
    ) -> None:
        if mode in (SelectionMode.FIXED, SelectionMode.RANGE) and not reference:
            raise ValueError(f"{mode.value} selection needs a reference")
        if range_order not in (SelectionMode.RANDOM, SelectionMode.ASC, SelectionMode.DESC):
            raise ValueError(f"range order cannot be {range_order.value}")
        self.source = source
        self.mode = mode
        self.reference = reference
        self.range_order = range_order
        self.wrap = wrap
        self._rng = rng or random.Random()
        self._logger_name = logger_name
        self._history: Optional[List[str]] = None
        self._fixed: Optional[str] = None
        self._previous: Optional[int] = None
        self._cursor = 0

    @classmethod
    def for_request(
        cls,
        source: CommitSource,
        *,
        commit: Optional[str] = None,
        order: str = "random",
        wrap: bool = True,
        rng: Optional[random.Random] = None,
    ) -> "CommitSelector":
        """Pick the mode from CLI-style inputs (``--commit`` and ``--order``)."""

        if commit and ".." in commit:
            return cls(
                source,
                mode=SelectionMode.RANGE,
                reference=commit,
                range_order=SelectionMode(order),
                wrap=wrap,
                rng=rng,
            )
        if commit:
            return cls(source, mode=SelectionMode.FIXED, reference=commit, wrap=wrap, rng=rng)
        return cls(source, mode=SelectionMode(order), wrap=wrap, rng=rng)

    def history(self) -> List[str]:
        if self._history is None:
            rev_range = self.reference if self.mode is SelectionMode.RANGE else None
            self._history = list(self.source.list_commit_identifiers(rev_range))
            telemetry.record_event(
                "selector.history_cached",
                data={"mode": self.mode.value, "commits": len(self._history)},
                logger_name=self._logger_name,
            )
        return self._history

    def next(self) -> str:
        if self.mode is SelectionMode.FIXED:
            if self._fixed is None:
                assert self.reference is not None
                self._fixed = self.source.resolve_identifier(self.reference)
            return self._fixed

        history = self.history()
        if not history:
            raise EmptyHistoryError(
                "No non-merge commits found in repository", reference=self.reference
            )
        if self._order is SelectionMode.RANDOM:
            return history[self._draw(len(history))]
        return history[self._step(len(history))]

    @property
    def _order(self) -> SelectionMode:
        return self.range_order if self.mode is SelectionMode.RANGE else self.mode

    def _draw(self, size: int) -> int:
        if size == 1:
            index = 0
        elif self._previous is None:
            index = self._rng.randrange(size)
        else:
            # uniform over every index except the previous one
            index = self._rng.randrange(size - 1)
            if index >= self._previous:
                index += 1
        self._previous = index
        return index

    def _step(self, size: int) -> int:
        if self._cursor >= size:
            if not self.wrap:
                raise HistoryExhaustedError(
                    "All commits have been played", reference=self.reference
                )
            self._cursor = 0
        position = self._cursor
        self._cursor += 1
        # full history is newest first, a range oldest first
        newest_first = self.mode is not SelectionMode.RANGE
        if (self._order is SelectionMode.ASC) == newest_first:
            return size - 1 - position
        return position

    def reset(self) -> None:
        self._cursor = 0
        self._previous = None


__all__ = ["CommitSelector", "SelectionMode"]
