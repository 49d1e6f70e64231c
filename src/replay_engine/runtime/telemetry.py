"""Structured logging and profiling on top of telelog.

Engine code only ever calls four things from here:

``configure(...)`` -- install a preset or an explicit ``telelog.Config``
``get_logger(name)`` -- a cached logger bound to the active config
``record_event(name, ...)`` -- one ``event::<name>`` line with key/value data
``span(name, ...)`` -- profile a block, optionally as a tracked component

The ``tui`` preset keeps console output off so log lines never land on top of
the full-screen replay.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "REPLAY_ENGINE_"
ROOT_LOGGER = "replay_engine"

_loggers: Dict[str, Any] = {}
_config: Optional[Any] = None


def _setting(name: str) -> Optional[str]:
    value = os.getenv(f"{ENV_PREFIX}{name}")
    return value if value else None


def _enabled(name: str) -> bool:
    return (_setting(name) or "").lower() in {"1", "true", "yes", "on"}


def _text(value: Any) -> str:
    if isinstance(value, (dict, list, tuple, set)):
        return repr(value)
    return value if isinstance(value, str) else str(value)


def _pairs(payload: Dict[str, Any]) -> List[Tuple[str, str]]:
    return [(str(key), _text(value)) for key, value in payload.items()]


def _level() -> str:
    return (_setting("LOG_LEVEL") or "INFO").upper()


def _development(config: Any) -> None:
    config.with_min_level("DEBUG")
    config.with_console_output(True)
    config.with_colored_output(True)
    config.with_json_format(False)


def _production(config: Any) -> None:
    config.with_min_level("INFO")
    config.with_console_output(False)
    config.with_file_output(_setting("LOG_FILE") or "replay_engine.log")
    config.with_buffering(True)


def _performance(config: Any) -> None:
    config.with_min_level("DEBUG")
    config.with_console_output(False)
    config.with_json_format(True)
    config.with_buffering(True)
    config.with_file_output(_setting("LOG_FILE") or "replay_engine-performance.log")


def _tui(config: Any) -> None:
    config.with_min_level(_level())
    config.with_console_output(False)
    if _setting("LOG_FILE"):
        config.with_file_output(_setting("LOG_FILE"))


def _from_environment(config: Any) -> None:
    config.with_min_level(_level())
    console = not _enabled("DISABLE_CONSOLE")
    config.with_console_output(console)
    if console:
        config.with_colored_output(not _enabled("NO_COLOR"))
    if _enabled("LOG_JSON"):
        config.with_json_format(True)
    if _setting("LOG_FILE"):
        config.with_file_output(_setting("LOG_FILE"))
    if _enabled("LOG_BUFFERED"):
        config.with_buffering(True)
        config.with_buffer_size(int(_setting("LOG_BUFFER_SIZE") or "2048"))


_PRESETS: Dict[str, Callable[[Any], None]] = {
    "development": _development,
    "production": _production,
    "performance": _performance,
    "tui": _tui,
}


def _build(apply: Callable[[Any], None]) -> Any:
    config = tl.Config()
    apply(config)
    # spans rely on profiling being on
    config.with_profiling(True)
    return config


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Swap the active telelog configuration and drop cached loggers.

    ``preset`` is one of ``development``, ``production``, ``performance`` or
    ``tui``; ``config`` is an explicit ``telelog.Config``. Passing neither
    rebuilds the configuration from ``REPLAY_ENGINE_*`` variables.
    """

    global _config
    if config is not None and preset is not None:
        raise ValueError("Provide either `config` or `preset`, not both.")
    if preset is not None:
        try:
            apply = _PRESETS[preset.lower()]
        except KeyError:
            raise ValueError(f"Unknown preset '{preset}'.") from None
        _config = _build(apply)
    elif config is not None:
        config.with_profiling(True)
        _config = config
    else:
        _config = _build(_from_environment)
    _loggers.clear()


def get_logger(name: Optional[str] = None) -> Any:
    """Cached ``telelog.Logger`` for ``name`` (default ``REPLAY_ENGINE_LOGGER``)."""

    global _config
    key = name or _setting("LOGGER") or ROOT_LOGGER
    if key not in _loggers:
        if _config is None:
            _config = _build(_from_environment)
        _loggers[key] = tl.Logger.with_config(key, _config)
    return _loggers[key]


def _emit(log: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    name = level.lower()
    structured = getattr(log, f"{name}_with", None)
    if structured is not None:
        structured(message, _pairs(payload))
        return
    plain = getattr(log, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {payload}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Log ``event::<name>`` with ``data`` attached as key/value pairs."""

    _emit(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


@dataclass
class SpanHandle:
    """Yielded by :func:`span`; collects metadata reported on failure."""

    logger: Any
    name: str
    component: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _text(value)

    def fail(self, reason: str) -> None:
        payload: Dict[str, Any] = {"span": self.name, **self.metadata, "reason": reason}
        if self.component:
            payload["component"] = self.component
        _emit(self.logger, "error", "span::fail", payload)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile the enclosed block; exceptions are logged and re-raised.

    ``component=True`` tracks the block as a component called ``name``; a
    string names the component explicitly. ``metadata`` is attached to the
    logger context while the block runs.
    """

    log = get_logger(logger_name)
    component_name: Optional[str] = name if component is True else (component or None)
    context = {key: _text(value) for key, value in (metadata or {}).items()}
    handle = SpanHandle(
        logger=log,
        name=name,
        component=component_name,
        metadata=dict(context),
    )

    with ExitStack() as stack:
        for key, value in context.items():
            log.add_context(key, value)
            stack.callback(log.remove_context, key)
        if handle.component:
            stack.enter_context(log.track_component(handle.component))
        stack.enter_context(log.profile(name))
        try:
            yield handle
        except Exception as exc:
            handle.fail(str(exc))
            raise


__all__ = ["SpanHandle", "configure", "get_logger", "record_event", "span"]
