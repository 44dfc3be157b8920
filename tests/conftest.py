"""Shared test fixtures — porcelain buffers, a scripted git runner, temp git repos."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import pytest

from gitsmart.git.runner import GitResult, GitRunner


def git(cwd: Path, *args: str) -> str:
    """Run a real git command for test setup and return stdout."""
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True,
    )
    return result.stdout


def porcelain(*entries: str) -> bytes:
    """Build a ``status --porcelain -z`` buffer from ``"XY path"`` strings.

    Renames and copies are written as ``"R  new -> old"``.
    """
    out = b""
    for entry in entries:
        status, rest = entry[:2], entry[3:]
        if " -> " in rest:
            new, old = rest.split(" -> ", 1)
            out += f"{status} {new}\0{old}\0".encode()
        else:
            out += f"{status} {rest}\0".encode()
    return out


class FakeRunner(GitRunner):
    """GitRunner double that answers from a script and records every argv.

    Responses are keyed by an argv prefix; the longest matching prefix wins.
    When several responses are queued for one prefix they are used in order
    and the last one repeats. Unscripted commands succeed with no output.
    """

    def __init__(self) -> None:
        super().__init__(Path("/fake/repo"))
        self.calls: List[Tuple[str, ...]] = []
        self._script: Dict[Tuple[str, ...], List[GitResult]] = {}

    def on(
        self,
        *prefix: str,
        stdout: bytes = b"",
        stderr: bytes = b"",
        exit_code: int = 0,
    ) -> "FakeRunner":
        result = GitResult(args=prefix, stdout=stdout, stderr=stderr, exit_code=exit_code)
        self._script.setdefault(tuple(prefix), []).append(result)
        return self

    def run(self, args: Sequence[str], timeout=None, capture: bool = True) -> GitResult:
        argv = tuple(args)
        self.calls.append(argv)
        matches = [key for key in self._script if argv[: len(key)] == key]
        if not matches:
            return GitResult(args=argv, stdout=b"", stderr=b"", exit_code=0)
        queue = self._script[max(matches, key=len)]
        scripted = queue.pop(0) if len(queue) > 1 else queue[0]
        return GitResult(
            args=argv,
            stdout=scripted.stdout,
            stderr=scripted.stderr,
            exit_code=scripted.exit_code,
        )

    def called(self, *prefix: str) -> int:
        """How many recorded calls start with *prefix*."""
        return sum(1 for call in self.calls if call[: len(prefix)] == prefix)

    def index_of(self, *prefix: str) -> int:
        for i, call in enumerate(self.calls):
            if call[: len(prefix)] == prefix:
                return i
        raise AssertionError(f"git {' '.join(prefix)} was never called")


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


def _init_repo(path: Path) -> Path:
    subprocess.run(["git", "init", str(path)], capture_output=True, check=True)
    git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    git(path, "config", "user.email", "test@test.com")
    git(path, "config", "user.name", "Test")
    git(path, "config", "commit.gpgsign", "false")
    return path


@pytest.fixture
def empty_git_repo(tmp_path: Path) -> Path:
    """A git repository on an unborn ``main`` branch."""
    return _init_repo(tmp_path / "empty")


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one commit on ``main``."""
    repo = _init_repo(tmp_path / "repo")
    (repo / "README.md").write_text("# Test\n")
    git(repo, "add", ".")
    git(repo, "commit", "-m", "init")
    return repo


@pytest.fixture
def tracked_repo(tmp_git_repo: Path, tmp_path: Path) -> Tuple[Path, Path]:
    """``tmp_git_repo`` tracking a bare ``origin``, plus a second clone of it.

    Returns ``(repo, other)``; pushing from *other* puts *repo* behind.
    """
    origin = tmp_path / "origin.git"
    git(tmp_path, "clone", "--bare", str(tmp_git_repo), str(origin))
    git(tmp_git_repo, "remote", "add", "origin", str(origin))
    git(tmp_git_repo, "fetch", "origin")
    git(tmp_git_repo, "branch", "--set-upstream-to=origin/main", "main")

    other = tmp_path / "other"
    git(tmp_path, "clone", str(origin), str(other))
    git(other, "config", "user.email", "other@test.com")
    git(other, "config", "user.name", "Other")
    git(other, "config", "commit.gpgsign", "false")
    return tmp_git_repo, other


def push_commit(clone: Path, name: str, content: str = "x\n") -> None:
    """Commit a new file in *clone* and push it to origin."""
    (clone / name).write_text(content)
    git(clone, "add", name)
    git(clone, "commit", "-m", f"add {name}")
    git(clone, "push", "origin", "HEAD:main")
