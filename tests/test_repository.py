import os
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest

from replay_engine.animation import CommitSelector, SelectionMode, compile_file_change
from replay_engine.git import (
    EmptyHistoryError,
    ExclusionPolicy,
    FileStatus,
    GitRepository,
    RetrievalError,
)
from replay_engine.git.filters import BINARY_REASON, GENERATED_REASON, MAX_BLOB_SIZE

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

GIT_ENV: Dict[str, str] = {
    "GIT_AUTHOR_NAME": "Test Dev",
    "GIT_AUTHOR_EMAIL": "dev@example.com",
    "GIT_COMMITTER_NAME": "Test Dev",
    "GIT_COMMITTER_EMAIL": "dev@example.com",
    "GIT_AUTHOR_DATE": "1704164645 +0000",
    "GIT_COMMITTER_DATE": "1704164645 +0000",
    "GIT_CONFIG_NOSYSTEM": "1",
}


def git(repo: Path, *args: str) -> str:
    env = {**os.environ, **GIT_ENV, "HOME": str(repo)}
    result = subprocess.run(
        ["git", "-C", str(repo), *args],
        check=True,
        capture_output=True,
        text=True,
        env=env,
    )
    return result.stdout.strip()


def write(repo: Path, relative: str, content: str | bytes) -> None:
    path = repo / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content)


def commit_all(repo: Path, message: str) -> str:
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    git(root, "init", "-q")
    return root


@pytest.fixture
def history(repo: Path) -> Dict[str, str]:
    write(repo, "src/app.py", "a\nb\nc\n")
    write(repo, "README.md", "# Project\n")
    first = commit_all(repo, "Initial commit")

    write(repo, "src/app.py", "a\nx\ny\nc\n")
    (repo / "README.md").unlink()
    write(repo, "yarn.lock", "lock: 1\n")
    write(repo, "image.bin", b"\x89PNG\x00\x00data")
    second = commit_all(repo, "Second commit\n\nWith a body")
    return {"first": first, "second": second}


def test_open_rejects_non_repository(tmp_path: Path) -> None:
    with pytest.raises(RetrievalError, match="Not a Git repository"):
        GitRepository.open(tmp_path)


def test_open_rejects_missing_path(tmp_path: Path) -> None:
    with pytest.raises(RetrievalError, match="does not exist"):
        GitRepository.open(tmp_path / "missing")


def test_open_from_subdirectory_finds_toplevel(repo: Path, history: Dict[str, str]) -> None:
    repository = GitRepository.open(repo / "src")

    assert repository.root.resolve() == repo.resolve()


def test_empty_repository_has_no_history(repo: Path) -> None:
    repository = GitRepository.open(repo)
    selector = CommitSelector(repository, mode=SelectionMode.RANDOM)

    assert repository.list_commit_identifiers() == []
    with pytest.raises(EmptyHistoryError):
        selector.next()


def test_history_is_newest_first(repo: Path, history: Dict[str, str]) -> None:
    repository = GitRepository.open(repo)

    assert repository.list_commit_identifiers() == [history["second"], history["first"]]


def test_merge_commits_are_excluded(repo: Path, history: Dict[str, str]) -> None:
    git(repo, "checkout", "-q", "-b", "feature")
    write(repo, "feature.txt", "feature\n")
    feature = commit_all(repo, "Feature work")
    git(repo, "checkout", "-q", "-")
    write(repo, "main.txt", "main\n")
    main = commit_all(repo, "Main work")
    git(repo, "merge", "-q", "--no-ff", "-m", "Merge feature", "feature")

    identifiers = GitRepository.open(repo).list_commit_identifiers()

    merge = git(repo, "rev-parse", "HEAD")
    assert merge not in identifiers
    assert set(identifiers) == {history["first"], history["second"], feature, main}


def test_resolve_identifier(repo: Path, history: Dict[str, str]) -> None:
    repository = GitRepository.open(repo)

    assert repository.resolve_identifier(history["first"][:8]) == history["first"]
    assert repository.resolve_identifier("HEAD") == history["second"]
    with pytest.raises(RetrievalError, match="not found"):
        repository.resolve_identifier("no-such-ref")


def test_root_commit_lists_added_files(repo: Path, history: Dict[str, str]) -> None:
    commit = GitRepository.open(repo).resolve_commit(history["first"])

    assert [(change.path, change.status) for change in commit.changes] == [
        ("README.md", FileStatus.ADDED),
        ("src/app.py", FileStatus.ADDED),
    ]
    assert commit.changes[1].old_content == ""
    assert commit.changes[1].new_content == "a\nb\nc\n"


def test_resolve_commit_metadata_and_changes(repo: Path, history: Dict[str, str]) -> None:
    commit = GitRepository.open(repo).resolve_commit(history["second"])

    assert commit.hash == history["second"]
    assert commit.author == "Test Dev"
    assert commit.date == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert commit.message == "Second commit\n\nWith a body"
    assert commit.subject == "Second commit"

    by_path = {change.path: change for change in commit.changes}
    assert [change.path for change in commit.changes] == [
        "README.md",
        "image.bin",
        "yarn.lock",
        "src/app.py",
    ]

    readme = by_path["README.md"]
    assert readme.status is FileStatus.DELETED
    assert readme.new_content == ""
    assert readme.deletions == 1

    assert by_path["image.bin"].exclusion_reason == BINARY_REASON
    assert by_path["image.bin"].old_content == by_path["image.bin"].new_content == ""
    assert by_path["yarn.lock"].exclusion_reason == GENERATED_REASON

    app = by_path["src/app.py"]
    assert app.status is FileStatus.MODIFIED
    assert app.exclusion_reason is None
    (hunk,) = app.hunks
    assert (hunk.old_start, hunk.removed_count, hunk.added_count) == (2, 1, 2)


class RecordingRepository(GitRepository):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.commands: List[Tuple[str, ...]] = []

    def _run_bytes(self, *args: str) -> bytes:
        self.commands.append(args)
        return super()._run_bytes(*args)


def test_oversized_blob_is_never_loaded(repo: Path, history: Dict[str, str]) -> None:
    write(repo, "data/huge.txt", "x" * (MAX_BLOB_SIZE + 1))
    large = commit_all(repo, "Add huge file")
    repository = RecordingRepository.open(repo)

    commit = repository.resolve_commit(large)

    (change,) = commit.changes
    assert change.exclusion_reason == BINARY_REASON
    assert change.new_content == ""
    assert ("cat-file", "-s", f"{large}:data/huge.txt") in repository.commands
    assert ("cat-file", "blob", f"{large}:data/huge.txt") not in repository.commands


def test_retrieved_changes_compile(repo: Path, history: Dict[str, str]) -> None:
    commit = GitRepository.open(repo).resolve_commit(history["second"])

    for change in commit.changes:
        if not change.is_excluded:
            assert compile_file_change(change) is not None


def test_user_ignore_patterns(repo: Path, history: Dict[str, str]) -> None:
    repository = GitRepository.open(repo, policy=ExclusionPolicy(["src/*"]))

    commit = repository.resolve_commit(history["second"])
    app = next(change for change in commit.changes if change.path == "src/app.py")

    assert app.exclusion_reason == GENERATED_REASON


def test_rename_is_detected(repo: Path, history: Dict[str, str]) -> None:
    git(repo, "mv", "src/app.py", "src/main.py")
    renamed = commit_all(repo, "Rename app")

    commit = GitRepository.open(repo).resolve_commit(renamed)

    (change,) = commit.changes
    assert change.status is FileStatus.RENAMED
    assert change.old_path == "src/app.py"
    assert change.path == "src/main.py"
    assert change.hunks == ()


def test_range_lists_oldest_first(repo: Path, history: Dict[str, str]) -> None:
    write(repo, "third.txt", "3\n")
    third = commit_all(repo, "Third")
    repository = GitRepository.open(repo)

    assert repository.list_commit_identifiers(f"{history['first']}..") == [
        history["second"],
        third,
    ]
    with pytest.raises(RetrievalError, match="not supported"):
        repository.list_commit_identifiers("a...b")
