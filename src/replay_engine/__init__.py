"""UI-agnostic engine that replays git commits as live typing."""

__all__ = [
    "adapters",
    "animation",
    "buffer",
    "git",
    "runtime",
]

__version__ = "0.1.0"
