"""Executable Textual app that hosts the replay engine."""

from __future__ import annotations

import argparse
import sys
import time
from typing import List, Optional, Sequence

try:  # pragma: no cover - imported only when the app is run
    from rich.text import Text
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Horizontal, Vertical
    from textual.widgets import Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use replay_engine.adapters.textual.app"
    ) from exc

from replay_engine.animation import (
    AnimationExecutor,
    CommitSelector,
    PlaybackMode,
    PlaybackStateMachine,
    TimingModel,
)
from replay_engine.buffer import BufferView, PygmentsHighlighter
from replay_engine.git import ExclusionPolicy, GitRepository, RetrievalError
from replay_engine.runtime import telemetry
from replay_engine.runtime.settings import ReplaySettings, resolve_settings

from .controller import ReplayUIHooks, TextualReplayAdapter
from .panes import FileTreeRow

KIND_STYLES = {
    "comment": "italic grey50",
    "type": "bold cyan",
    "keyword": "bold magenta",
    "builtin": "cyan",
    "function": "blue",
    "attribute": "yellow",
    "tag": "red",
    "string": "green",
    "number": "bright_yellow",
    "operator": "bright_white",
    "punctuation": "white",
    "text": "default",
}

STATUS_STYLES = {
    "+": "green",
    "-": "red",
    "~": "yellow",
    ">": "cyan",
}


def build_machine(settings: ReplaySettings) -> PlaybackStateMachine:
    """Wire repository, selector, timing, and executor from resolved settings."""

    repository = GitRepository.open(settings.path, policy=ExclusionPolicy(settings.ignore))
    selector = CommitSelector.for_request(
        repository, commit=settings.commit, order=settings.order, wrap=settings.loop
    )
    return PlaybackStateMachine(
        repository,
        selector,
        timing=TimingModel(settings.speed_ms),
        executor=AnimationExecutor(highlighter=PygmentsHighlighter()),
        mode=PlaybackMode.CONTINUOUS if settings.loop else PlaybackMode.SINGLE,
    )


def render_editor(view: BufferView, height: int) -> Text:
    """Visible lines with a line-number gutter, token colours, and the cursor."""

    text = Text(no_wrap=True)
    gutter = len(str(max(len(view.lines), 1)))
    cursor_line, cursor_col = view.cursor
    for offset, line in enumerate(view.visible_lines(height)):
        index = view.scroll_offset + offset
        current = index == cursor_line
        text.append(f"{index + 1:>{gutter}} ", style="bold" if current else "grey42")
        row = Text(line)
        for span in view.spans_for_line(index):
            start, end = span.char_range(line)
            row.stylize(KIND_STYLES.get(span.kind, "default"), start, end)
        if current:
            if cursor_col >= len(line):
                row.append(" ")
            row.stylize("reverse", cursor_col, cursor_col + 1)
        text.append_text(row)
        text.append("\n")
    return text


def render_files(rows: List[FileTreeRow], current: Optional[int]) -> Text:
    text = Text(no_wrap=True)
    for index, row in enumerate(rows):
        if row.is_directory:
            text.append(row.text, style="bold blue")
        else:
            stripped = row.text.lstrip()
            glyph = stripped[:1]
            style = "bold reverse" if index == current else ""
            text.append(row.text[: len(row.text) - len(stripped)])
            text.append(glyph, style=STATUS_STYLES.get(glyph, ""))
            text.append(stripped[1:], style=style)
        text.append("\n")
    return text


class ReplayApp(App[None]):
    """Editor, file tree, status, and command panes driven by playback ticks."""

    CSS = """
	Screen {
		layout: horizontal;
	}

	#sidebar {
		width: 40;
	}

	#status-pane {
		height: auto;
		padding: 1 2;
		background: $surface-darken-1;
	}

	#files-pane {
		height: 1fr;
		padding: 1 2;
		background: $surface-darken-1;
		overflow: auto;
	}

	#command-pane {
		height: 8;
		padding: 0 1;
		background: $surface-darken-2;
	}

	#editor-pane {
		width: 1fr;
		padding: 0 1;
		content-align: left top;
	}
	"""

    def __init__(
        self, machine: PlaybackStateMachine, *, frame_interval: float = 1.0 / 30
    ) -> None:
        super().__init__()
        self.machine = machine
        self.frame_interval = frame_interval
        self.adapter: TextualReplayAdapter | None = None
        self._editor_widget: Static | None = None
        self._status_widget: Static | None = None
        self._files_widget: Static | None = None
        self._command_widget: Static | None = None
        self._last_tick: float | None = None
        self._viewport_height = 0

    def compose(self) -> ComposeResult:
        with Horizontal():
            with Vertical(id="sidebar"):
                self._status_widget = Static("", id="status-pane")
                self._files_widget = Static("", id="files-pane")
                self._command_widget = Static("", id="command-pane")
                yield self._status_widget
                yield self._files_widget
                yield self._command_widget
            self._editor_widget = Static("", id="editor-pane")
            yield self._editor_widget

    async def on_mount(self) -> None:
        hooks = ReplayUIHooks(
            update_editor=self._update_editor,
            update_status=self._update_status,
            update_files=self._update_files,
            show_command=self._show_command,
            log=self._log_line,
        )
        self.adapter = TextualReplayAdapter(self.machine, hooks)
        self._last_tick = time.monotonic()
        self.set_interval(self.frame_interval, self._tick)

    async def on_key(self, event: events.Key) -> None:
        event.stop()
        if self.adapter:
            self.adapter.request_exit()
        self.exit()

    def _tick(self) -> None:
        if not self.adapter:
            return
        now = time.monotonic()
        elapsed_ms = (now - (self._last_tick or now)) * 1000.0
        self._last_tick = now
        self._sync_viewport()
        self.adapter.tick(elapsed_ms)
        if self.adapter.finished:
            self.exit()

    def _sync_viewport(self) -> None:
        if not (self.adapter and self._editor_widget):
            return
        height = self._editor_widget.content_size.height
        if height > 0 and height != self._viewport_height:
            self._viewport_height = height
            self.adapter.set_viewport_height(height)
            self._update_editor(self.machine.executor.snapshot())

    def _update_editor(self, view: BufferView) -> None:
        if self._editor_widget:
            height = self._viewport_height or self.machine.executor.viewport_height
            self._editor_widget.update(render_editor(view, height))

    def _update_status(self, lines: Sequence[str]) -> None:
        if self._status_widget:
            self._status_widget.update("\n".join(lines))

    def _update_files(self, rows: List[FileTreeRow], current: Optional[int]) -> None:
        if self._files_widget:
            self._files_widget.update(render_files(rows, current))

    def _show_command(self, commands: Sequence[str]) -> None:
        if self._command_widget:
            recent = list(commands)[-6:]
            self._command_widget.update("\n".join(f"$ {line}" for line in recent))

    def _log_line(self, line: str) -> None:
        telemetry.get_logger("replay_engine.ui").debug(line)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="replay-engine",
        description="Replay git commits as a live-coding session in the terminal.",
    )
    parser.add_argument(
        "-p",
        "--path",
        default=None,
        help="Repository path (default: REPLAY_ENGINE_PATH or the current directory)",
    )
    parser.add_argument(
        "-c",
        "--commit",
        default=None,
        help="Commit to replay, or a range A..B played oldest first",
    )
    parser.add_argument(
        "-s",
        "--speed",
        type=float,
        default=None,
        help="Milliseconds per typed character (default: 30)",
    )
    parser.add_argument(
        "--order",
        choices=("random", "asc", "desc"),
        default=None,
        help="Order in which commits are played (default: random)",
    )
    loop = parser.add_mutually_exclusive_group()
    loop.add_argument(
        "--loop",
        dest="loop",
        action="store_true",
        default=None,
        help="Keep playing commits after the first one",
    )
    loop.add_argument(
        "--no-loop",
        dest="loop",
        action="store_false",
        help="Stop after a single commit",
    )
    parser.add_argument(
        "-i",
        "--ignore",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Glob of paths to skip (repeatable)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=None,
        help="Frames per second of the UI tick (default: 30)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        settings = resolve_settings(
            path=args.path,
            commit=args.commit,
            speed_ms=args.speed,
            order=args.order,
            loop=args.loop,
            ignore=args.ignore,
            fps=args.fps,
        )
    except ValueError as exc:
        parser.error(str(exc))

    telemetry.configure(preset="tui")
    try:
        machine = build_machine(settings)
        machine.start()
    except RetrievalError as exc:
        telemetry.record_event(
            "playback.retrieval_failed", level="error", data={"error": str(exc)}
        )
        print(f"replay-engine: {exc}", file=sys.stderr)
        return 1

    app = ReplayApp(machine, frame_interval=settings.frame_interval)
    app.run()
    if machine.error:
        print(f"replay-engine: {machine.error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - manual run
    sys.exit(main())
