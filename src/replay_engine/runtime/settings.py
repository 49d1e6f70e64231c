"""Resolve run settings from CLI overrides, environment, and defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

ENV_PREFIX = "REPLAY_ENGINE_"

DEFAULT_SPEED_MS = 30.0
DEFAULT_FPS = 30
ORDERS = ("random", "asc", "desc")


@dataclass(frozen=True, slots=True)
class ReplaySettings:
    """Fully resolved knobs handed to the engine as plain values."""

    path: str = "."
    commit: Optional[str] = None
    speed_ms: float = DEFAULT_SPEED_MS
    order: str = "random"
    loop: bool = True
    ignore: tuple[str, ...] = field(default_factory=tuple)
    fps: int = DEFAULT_FPS

    def __post_init__(self) -> None:
        if self.speed_ms <= 0:
            raise ValueError(f"speed must be positive, got {self.speed_ms!r}")
        if self.order not in ORDERS:
            raise ValueError(
                f"order must be one of {', '.join(ORDERS)}, got {self.order!r}"
            )
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps!r}")

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.fps


def _env_value(environ: Mapping[str, str], name: str) -> Optional[str]:
    raw = environ.get(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _env_flag(environ: Mapping[str, str], name: str) -> Optional[bool]:
    raw = _env_value(environ, name)
    if raw is None:
        return None
    return raw.lower() in {"1", "true", "yes", "on"}


def _parse_number(name: str, raw: str, kind: type) -> float | int:
    try:
        return kind(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def resolve_settings(
    *,
    path: Optional[str] = None,
    commit: Optional[str] = None,
    speed_ms: Optional[float] = None,
    order: Optional[str] = None,
    loop: Optional[bool] = None,
    ignore: Optional[list[str]] = None,
    fps: Optional[int] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ReplaySettings:
    """Merge explicit overrides over ``REPLAY_ENGINE_*`` variables over defaults.

    ``None`` means "not given on the command line". Looping defaults to on,
    except when a single commit was requested.
    """

    env = os.environ if environ is None else environ

    if speed_ms is None:
        raw = _env_value(env, "SPEED")
        speed_ms = (
            float(_parse_number("REPLAY_ENGINE_SPEED", raw, float))
            if raw
            else DEFAULT_SPEED_MS
        )
    if fps is None:
        raw = _env_value(env, "FPS")
        fps = int(_parse_number("REPLAY_ENGINE_FPS", raw, int)) if raw else DEFAULT_FPS
    if order is None:
        order = (_env_value(env, "ORDER") or "random").lower()
    if loop is None:
        env_loop = _env_flag(env, "LOOP")
        if env_loop is not None:
            loop = env_loop
        else:
            loop = commit is None

    patterns: list[str] = list(ignore or [])
    env_ignore = _env_value(env, "IGNORE")
    if not patterns and env_ignore:
        patterns = [item.strip() for item in env_ignore.split(",") if item.strip()]

    return ReplaySettings(
        path=path or _env_value(env, "PATH") or ".",
        commit=commit,
        speed_ms=speed_ms,
        order=order,
        loop=loop,
        ignore=tuple(patterns),
        fps=fps,
    )


__all__ = ["ReplaySettings", "resolve_settings", "DEFAULT_SPEED_MS", "DEFAULT_FPS"]
