"""Playback state machine sequencing commits, files, hunks, and git beats."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from replay_engine.buffer import BufferView
from replay_engine.git.models import CommitMetadata, FileChange
from replay_engine.git.repository import CommitSource, RetrievalError
from replay_engine.runtime import telemetry

from .compiler import DiffCompiler, MalformedHunkError
from .executor import AnimationExecutor
from .operations import EditOperation, EmitCommand, PauseFor
from .selector import CommitSelector
from .states import PlaybackState
from .timing import (
    CHECKOUT_MULTIPLIER,
    GIT_ADD_MULTIPLIER,
    GIT_COMMIT_MULTIPLIER,
    GIT_PUSH_MULTIPLIER,
    OPENING_FILE_MULTIPLIER,
    WAITING_FOR_NEXT_MULTIPLIER,
    TimingModel,
)

_Segment = Tuple[PlaybackState, Tuple[EditOperation, ...]]


class PlaybackMode(str, Enum):
    SINGLE = "single"
    CONTINUOUS = "continuous"


@dataclass(frozen=True, slots=True)
class SkippedFile:
    path: str
    reason: str


@dataclass(frozen=True, slots=True)
class PlaybackSnapshot:
    """Everything a renderer needs, frozen at one instant."""

    state: PlaybackState
    commit: Optional[CommitMetadata]
    file_index: Optional[int]
    file_path: Optional[str]
    buffer: BufferView
    commands: Tuple[str, ...]
    skipped: Tuple[SkippedFile, ...]
    error: Optional[str] = None


class PlaybackStateMachine:
    """Owns the walk Checkout -> files/hunks -> GitAdd/Commit/Push -> Finished.

    Each phase is a contiguous batch of scheduled operations handed to the
    executor; the next batch is only loaded once the executor reports the
    current one exhausted.
    """

    def __init__(
        self,
        source: CommitSource,
        selector: CommitSelector,
        *,
        timing: TimingModel,
        executor: Optional[AnimationExecutor] = None,
        mode: PlaybackMode = PlaybackMode.SINGLE,
        exit_event: Optional[threading.Event] = None,
        logger_name: Optional[str] = None,
    ) -> None:
        self.source = source
        self.selector = selector
        self.timing = timing
        self.exit_event = exit_event or threading.Event()
        self.executor = executor or AnimationExecutor(exit_event=self.exit_event)
        self.executor.exit_event = self.exit_event
        self.mode = mode
        self.compiler = DiffCompiler(timing, logger_name=logger_name)
        self._logger_name = logger_name
        self._state = PlaybackState.CHECKOUT
        self._segment_state = PlaybackState.CHECKOUT
        self._commit: Optional[CommitMetadata] = None
        self._plan: Optional[Iterator[_Segment]] = None
        self._file_index: Optional[int] = None
        self._skipped: List[SkippedFile] = []
        self.error: Optional[str] = None
        self.commits_played = 0

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def commit(self) -> Optional[CommitMetadata]:
        return self._commit

    @property
    def file_index(self) -> Optional[int]:
        return self._file_index

    @property
    def current_file(self) -> Optional[FileChange]:
        if self._commit is None or self._file_index is None:
            return None
        return self._commit.changes[self._file_index]

    @property
    def skipped(self) -> Tuple[SkippedFile, ...]:
        return tuple(self._skipped)

    @property
    def finished(self) -> bool:
        return self._state is PlaybackState.FINISHED

    def start(self) -> CommitMetadata:
        """Select and load the first commit; retrieval errors propagate."""

        identifier = self.selector.next()
        metadata = self.source.resolve_commit(identifier)
        self.load_commit(metadata)
        return metadata

    def load_commit(self, metadata: CommitMetadata) -> None:
        self._commit = metadata
        self._skipped = []
        self._file_index = None
        self._plan = self._segments(metadata)
        self.executor.clear()
        telemetry.record_event(
            "playback.commit",
            data={"commit": metadata.short_hash, "files": len(metadata.changes)},
            logger_name=self._logger_name,
        )
        self._transition(PlaybackState.CHECKOUT)
        self._advance_segment()

    def request_exit(self) -> None:
        self.exit_event.set()

    def tick(self, elapsed_ms: float) -> None:
        if self.exit_event.is_set():
            self._finish("exit requested")
            return
        if self.finished or self._plan is None:
            return

        self.executor.tick(elapsed_ms)
        while self.executor.exhausted and not self.finished:
            if not self._advance_segment():
                break
            self.executor.drain()
        self._sync_state()

    def snapshot(self) -> PlaybackSnapshot:
        current = self.current_file
        return PlaybackSnapshot(
            state=self._state,
            commit=self._commit,
            file_index=self._file_index,
            file_path=current.path if current else None,
            buffer=self.executor.snapshot(),
            commands=tuple(self.executor.commands),
            skipped=self.skipped,
            error=self.error,
        )

    def _advance_segment(self) -> bool:
        """Load the next phase; ``False`` when a commit boundary was crossed."""

        assert self._plan is not None
        try:
            state, operations = next(self._plan)
        except StopIteration:
            self.commits_played += 1
            if self.mode is PlaybackMode.SINGLE:
                self._finish("commit complete")
            else:
                self._next_commit()
            return False
        self._segment_state = state
        self.executor.load(operations)
        self._transition(state)
        return True

    def _next_commit(self) -> None:
        try:
            identifier = self.selector.next()
            if self._commit is not None and identifier == self._commit.hash:
                metadata = self._commit
            else:
                metadata = self.source.resolve_commit(identifier)
        except RetrievalError as exc:
            self.error = str(exc)
            telemetry.record_event(
                "playback.retrieval_failed",
                level="error",
                data={"error": str(exc)},
                logger_name=self._logger_name,
            )
            self._finish("retrieval failed")
            return
        self.load_commit(metadata)

    def _segments(self, commit: CommitMetadata) -> Iterator[_Segment]:
        yield self._command_segment(
            PlaybackState.CHECKOUT, f"git checkout {commit.short_hash}", CHECKOUT_MULTIPLIER
        )
        for index, change in enumerate(commit.changes):
            self._file_index = index
            self.executor.open_document(change.old_content, language_hint=change.path)
            yield PlaybackState.OPENING_FILE, self.timing.schedule(
                [PauseFor(OPENING_FILE_MULTIPLIER, phase=PlaybackState.OPENING_FILE)]
            )
            body = self._compile_body(change)
            if body:
                yield body[0].phase, body

        yield self._command_segment(PlaybackState.GIT_ADD, "git add .", GIT_ADD_MULTIPLIER)
        yield self._command_segment(
            PlaybackState.GIT_COMMIT,
            f'git commit -m "{_escape(commit.subject)}"',
            GIT_COMMIT_MULTIPLIER,
        )
        yield self._command_segment(PlaybackState.GIT_PUSH, "git push", GIT_PUSH_MULTIPLIER)
        if self.mode is PlaybackMode.CONTINUOUS:
            yield PlaybackState.WAITING_FOR_NEXT, self.timing.schedule(
                [PauseFor(WAITING_FOR_NEXT_MULTIPLIER, phase=PlaybackState.WAITING_FOR_NEXT)]
            )

    def _command_segment(
        self, state: PlaybackState, command: str, multiplier: float
    ) -> _Segment:
        return state, self.timing.schedule(
            [EmitCommand(command, phase=state), PauseFor(multiplier, phase=state)]
        )

    def _compile_body(self, change: FileChange) -> Tuple[EditOperation, ...]:
        if change.exclusion_reason is not None:
            self._skip(change.path, change.exclusion_reason)
            return ()
        try:
            return self.compiler.compile(change)
        except MalformedHunkError as exc:
            self._skip(change.path, exc.reason)
            return ()

    def _skip(self, path: str, reason: str) -> None:
        self._skipped.append(SkippedFile(path=path, reason=reason))
        telemetry.record_event(
            "playback.file_skipped",
            level="warning",
            data={"path": path, "reason": reason},
            logger_name=self._logger_name,
        )

    def _sync_state(self) -> None:
        if self.finished:
            return
        head = self.executor.peek()
        self._transition(head.phase if head is not None else self._segment_state)

    def _transition(self, state: PlaybackState) -> None:
        if state is self._state:
            return
        self._state = state
        telemetry.record_event(
            "playback.state",
            level="debug",
            data={"state": state.value},
            logger_name=self._logger_name,
        )

    def _finish(self, reason: str) -> None:
        if self.finished:
            return
        self._transition(PlaybackState.FINISHED)
        telemetry.record_event(
            "playback.finished",
            data={"reason": reason, "commits": self.commits_played},
            logger_name=self._logger_name,
        )


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


__all__ = [
    "PlaybackMode",
    "PlaybackSnapshot",
    "PlaybackStateMachine",
    "SkippedFile",
]
