"""Version-control data access on top of the ``git`` command line."""

from __future__ import annotations

import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from replay_engine.runtime import telemetry

from .diff import changed_line_count, generate_hunks
from .filters import BINARY_REASON, MAX_BLOB_SIZE, ExclusionPolicy, is_binary
from .models import CommitMetadata, FileChange, FileStatus, display_key


class RetrievalError(RuntimeError):
    """A commit, reference, or repository could not be read."""

    def __init__(self, message: str, *, reference: Optional[str] = None) -> None:
        super().__init__(message)
        self.reference = reference


class EmptyHistoryError(RetrievalError):
    """The history holds no playable commits."""


class HistoryExhaustedError(RetrievalError):
    """Ordered playback has already played every commit."""


class CommitSource(Protocol):
    """What the playback core needs from a version-control backend."""

    def resolve_identifier(self, reference: str) -> str:
        ...

    def resolve_commit(self, identifier: str) -> CommitMetadata:
        ...

    def list_commit_identifiers(self, rev_range: Optional[str] = None) -> Sequence[str]:
        ...


class GitRepository:
    """Reads commits, blobs, and hunks by shelling out to ``git``."""

    def __init__(
        self,
        root: str | Path,
        *,
        policy: Optional[ExclusionPolicy] = None,
        git_binary: str = "git",
        logger_name: Optional[str] = None,
    ) -> None:
        self.root = Path(root)
        self.policy = policy or ExclusionPolicy()
        self.git_binary = git_binary
        self._logger_name = logger_name

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        policy: Optional[ExclusionPolicy] = None,
        git_binary: str = "git",
    ) -> "GitRepository":
        start = Path(path)
        if not start.exists():
            raise RetrievalError(f"Path does not exist: {start}")
        probe = cls(start if start.is_dir() else start.parent, git_binary=git_binary)
        try:
            toplevel = probe._run("rev-parse", "--show-toplevel").strip()
        except RetrievalError as exc:
            raise RetrievalError(
                f"Not a Git repository: {start} (or any parent directories)"
            ) from exc
        return cls(toplevel, policy=policy, git_binary=git_binary)

    def _run_bytes(self, *args: str) -> bytes:
        command = [self.git_binary, "-C", str(self.root), *args]
        try:
            result = subprocess.run(command, capture_output=True, check=False)
        except FileNotFoundError as exc:
            raise RetrievalError(f"git executable not found: {self.git_binary}") from exc
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise RetrievalError(f"git {' '.join(args)} failed: {stderr}")
        return result.stdout

    def _run(self, *args: str) -> str:
        return self._run_bytes(*args).decode("utf-8", errors="replace")

    def resolve_identifier(self, reference: str) -> str:
        try:
            output = self._run("rev-parse", "--verify", "--quiet", f"{reference}^{{commit}}")
        except RetrievalError as exc:
            raise RetrievalError(
                f"Invalid commit hash or commit not found: {reference}",
                reference=reference,
            ) from exc
        return output.strip()

    def has_head(self) -> bool:
        try:
            self._run("rev-parse", "--verify", "--quiet", "HEAD")
        except RetrievalError:
            return False
        return True

    def list_commit_identifiers(self, rev_range: Optional[str] = None) -> List[str]:
        """Non-merge commits from HEAD (newest first) or from ``A..B`` (oldest first)."""

        with telemetry.span(
            "git::list_commits",
            component="git",
            logger_name=self._logger_name,
            metadata={"range": rev_range or "HEAD"},
        ):
            if rev_range is None:
                if not self.has_head():
                    return []
                output = self._run("rev-list", "--no-merges", "HEAD")
            else:
                output = self._run(
                    "rev-list", "--no-merges", "--reverse", *_parse_range(rev_range)
                )
        return [line.strip() for line in output.splitlines() if line.strip()]

    def resolve_commit(self, identifier: str) -> CommitMetadata:
        with telemetry.span(
            "git::resolve_commit",
            component="git",
            logger_name=self._logger_name,
            metadata={"commit": identifier},
        ) as handle:
            commit_id = self.resolve_identifier(identifier)
            header = self._run("show", "-s", "--format=%H%x00%an%x00%at%x00%B", commit_id)
            parts = header.split("\x00", 3)
            if len(parts) < 4:
                raise RetrievalError(
                    f"Unexpected commit header for {identifier}", reference=identifier
                )
            full_hash, author, timestamp, message = parts
            parent = self._first_parent(commit_id)
            changes = self._extract_changes(commit_id, parent)
            handle.add_metadata("files", len(changes))
            return CommitMetadata(
                hash=full_hash.strip(),
                author=author,
                date=datetime.fromtimestamp(int(timestamp), tz=timezone.utc),
                message=message.rstrip("\n"),
                changes=tuple(sorted(changes, key=lambda c: display_key(c.path))),
            )

    def _first_parent(self, commit_id: str) -> Optional[str]:
        tokens = self._run("rev-list", "--parents", "-n", "1", commit_id).split()
        return tokens[1] if len(tokens) > 1 else None

    def _extract_changes(self, commit_id: str, parent: Optional[str]) -> List[FileChange]:
        if parent is None:
            raw = self._run(
                "diff-tree", "-r", "-z", "--no-commit-id", "--root",
                "--name-status", commit_id,
            )
        else:
            raw = self._run(
                "diff-tree", "-r", "-z", "-M", "--name-status", parent, commit_id
            )
        tokens = [token for token in raw.split("\x00") if token]
        changes: List[FileChange] = []
        index = 0
        while index < len(tokens):
            status = FileStatus.from_code(tokens[index])
            if status in (FileStatus.RENAMED, FileStatus.COPIED):
                old_path, path = tokens[index + 1], tokens[index + 2]
                index += 3
            else:
                old_path, path = None, tokens[index + 1]
                index += 2
            changes.append(
                self._build_change(commit_id, parent, status, path, old_path)
            )
        return changes

    def _build_change(
        self,
        commit_id: str,
        parent: Optional[str],
        status: FileStatus,
        path: str,
        old_path: Optional[str],
    ) -> FileChange:
        old_data: Optional[bytes] = b""
        new_data: Optional[bytes] = b""
        if status is not FileStatus.ADDED and parent is not None:
            old_data = self._read_blob(parent, old_path or path)
        if status is not FileStatus.DELETED:
            new_data = self._read_blob(commit_id, path)

        if old_data is None or new_data is None or is_binary(old_data) or is_binary(new_data):
            return FileChange(
                path=path,
                status=status,
                old_path=old_path,
                exclusion_reason=BINARY_REASON,
            )

        old_text = old_data.decode("utf-8", errors="replace")
        new_text = new_data.decode("utf-8", errors="replace")
        hunks = generate_hunks(old_text, new_text)
        return FileChange(
            path=path,
            status=status,
            old_content=old_text,
            new_content=new_text,
            hunks=tuple(hunks),
            old_path=old_path,
            exclusion_reason=self.policy.reason_for(path, changed_line_count(hunks)),
        )

    def _read_blob(self, revision: str, path: str) -> Optional[bytes]:
        """Blob bytes, or ``None`` for non-blob entries and blobs over the size ceiling."""

        spec = f"{revision}:{path}"
        try:
            if int(self._run("cat-file", "-s", spec)) > MAX_BLOB_SIZE:
                return None
            return self._run_bytes("cat-file", "blob", spec)
        except RetrievalError:
            # gitlinks have no object in this repository
            return None


def _parse_range(rev_range: str) -> List[str]:
    if "..." in rev_range:
        raise RetrievalError(
            "Symmetric difference operator '...' is not supported. "
            "Use '..' instead (e.g., 'HEAD~5..HEAD')",
            reference=rev_range,
        )
    if ".." not in rev_range:
        raise RetrievalError(
            f"Invalid range format: {rev_range}. "
            "Use formats like 'HEAD~5..HEAD' or 'abc123..'",
            reference=rev_range,
        )
    start, _, end = rev_range.partition("..")
    end = end or "HEAD"
    return [f"{start}..{end}"] if start else [end]


__all__ = [
    "CommitSource",
    "EmptyHistoryError",
    "GitRepository",
    "HistoryExhaustedError",
    "RetrievalError",
]
