"""Minimal Textual adapter that pushes playback snapshots into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from replay_engine.animation.playback import PlaybackSnapshot, PlaybackStateMachine
from replay_engine.buffer import BufferView

from .panes import FileTreeRow, file_tree_rows, status_lines


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class ReplayUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_editor: Callable[[BufferView], None]
    update_status: Callable[[Sequence[str]], None] = _noop
    update_files: Callable[[List[FileTreeRow], Optional[int]], None] = _noop
    show_command: Callable[[Sequence[str]], None] = _noop
    # Optional realtime log callback a host may use to surface debug lines
    log: Callable[[str], None] = _noop


class TextualReplayAdapter:
    """Bridges a PlaybackStateMachine to a Textual-friendly surface.

    Every tick produces a snapshot, but a hook only fires when the part of
    the snapshot it renders differs from what it was last given.
    """

    def __init__(self, machine: PlaybackStateMachine, hooks: ReplayUIHooks) -> None:
        self.machine = machine
        self.hooks = hooks
        self._seen: Dict[str, object] = {}
        self.refresh()

    @property
    def finished(self) -> bool:
        return self.machine.finished

    def tick(self, elapsed_ms: float) -> PlaybackSnapshot:
        self.machine.tick(elapsed_ms)
        return self.refresh()

    def request_exit(self) -> None:
        self._log_state("exit requested")
        self.machine.request_exit()
        self.machine.tick(0.0)
        self.refresh()

    def set_viewport_height(self, height: int) -> None:
        self.machine.executor.set_viewport_height(height)
        self.refresh()

    def refresh(self) -> PlaybackSnapshot:
        snapshot = self.machine.snapshot()
        commit_id = snapshot.commit.hash if snapshot.commit else None
        view = snapshot.buffer

        if self._changed("editor", (view.revision, view.cursor, view.scroll_offset)):
            self.hooks.update_editor(view)
        if self._changed("status", (commit_id, snapshot.state, snapshot.error)):
            self.hooks.update_status(self._status(snapshot))
            self._log_state("state ->", state=snapshot.state.value, commit=commit_id)
        if self._changed("files", (commit_id, snapshot.file_index)):
            changes = snapshot.commit.changes if snapshot.commit else ()
            rows, current = file_tree_rows(changes, snapshot.file_index)
            self.hooks.update_files(rows, current)
        if self._changed("commands", snapshot.commands):
            self.hooks.show_command(snapshot.commands)
        return snapshot

    def _changed(self, key: str, value: object) -> bool:
        if key in self._seen and self._seen[key] == value:
            return False
        self._seen[key] = value
        return True

    @staticmethod
    def _status(snapshot: PlaybackSnapshot) -> Tuple[str, ...]:
        lines = status_lines(snapshot.commit)
        lines.append(f"state: {snapshot.state.label}")
        if snapshot.error:
            lines.append(f"error: {snapshot.error}")
        return tuple(lines)

    def _log_state(self, prefix: str, **fields: object) -> None:
        parts = [prefix]
        for key, value in fields.items():
            if value is not None:
                parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))


__all__ = ["ReplayUIHooks", "TextualReplayAdapter"]
