"""Which files are too noisy to animate: lock files, generated assets, user globs."""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Iterable, Optional

# Blobs above this size are treated like binaries and never loaded.
MAX_BLOB_SIZE = 500 * 1024

# Files with more changed lines than this are skipped.
MAX_CHANGE_LINES = 2000

EXCLUDED_FILES = frozenset(
    {
        "yarn.lock",
        "package-lock.json",
        "pnpm-lock.yaml",
        "bun.lock",
        "bun.lockb",
        "Cargo.lock",
        "Gemfile.lock",
        "poetry.lock",
        "Pipfile.lock",
        "composer.lock",
        "go.sum",
        "Package.resolved",
        "pubspec.lock",
        "packages.lock.json",
        "project.assets.json",
        "mix.lock",
        "gradle.lockfile",
        "buildscript-gradle.lockfile",
        "build.sbt.lock",
        "MODULE.bazel.lock",
    }
)

EXCLUDED_PATTERNS = (
    ".min.js",
    ".min.css",
    ".bundle.js",
    ".bundle.css",
    ".js.map",
    ".css.map",
    ".d.ts.map",
    ".snap",
    "__snapshots__",
)

GENERATED_REASON = "lock/generated file"
BINARY_REASON = "binary file"


class ExclusionPolicy:
    """Decides whether a path is skipped, and why."""

    def __init__(
        self,
        patterns: Iterable[str] = (),
        *,
        max_change_lines: int = MAX_CHANGE_LINES,
    ) -> None:
        self.patterns = tuple(pattern for pattern in patterns if pattern)
        self.max_change_lines = max_change_lines

    def matches_user_pattern(self, path: str) -> bool:
        return any(fnmatchcase(path, pattern) for pattern in self.patterns)

    def should_exclude(self, path: str) -> bool:
        if self.matches_user_pattern(path):
            return True
        filename = path.rsplit("/", 1)[-1]
        if filename in EXCLUDED_FILES:
            return True
        return any(
            filename.endswith(pattern) or pattern in path
            for pattern in EXCLUDED_PATTERNS
        )

    def reason_for(self, path: str, changed_lines: int) -> Optional[str]:
        if self.should_exclude(path):
            return GENERATED_REASON
        if changed_lines > self.max_change_lines:
            return f"too many changes ({changed_lines} lines)"
        return None


def is_binary(data: bytes) -> bool:
    return len(data) > MAX_BLOB_SIZE or b"\x00" in data


__all__ = [
    "ExclusionPolicy",
    "EXCLUDED_FILES",
    "EXCLUDED_PATTERNS",
    "MAX_BLOB_SIZE",
    "MAX_CHANGE_LINES",
    "GENERATED_REASON",
    "BINARY_REASON",
    "is_binary",
]
