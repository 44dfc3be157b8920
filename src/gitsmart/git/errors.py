"""Git error taxonomy and the stderr translation used by the ref resolver."""

from __future__ import annotations

from typing import Optional, Sequence


class GitError(Exception):
    """Base class for every failure raised while driving git."""


class ProcessUnavailable(GitError):
    """git could not be launched at all (not installed, not executable)."""


class GitCommandFailed(GitError):
    """git ran but exited with a non-zero status."""

    def __init__(self, args: Sequence[str], exit_code: int, stderr: bytes = b"") -> None:
        self.args_list = list(args)
        self.exit_code = exit_code
        self.stderr = stderr
        detail = stderr.decode("utf-8", errors="replace").strip()
        msg = f"git {' '.join(self.args_list)} exited with status {exit_code}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class AbnormalTermination(GitError):
    """git was killed by a signal or otherwise did not exit normally."""


class CommandTimedOut(GitError):
    """git did not finish within the timeout given by the caller."""


class OutputTooLarge(GitError):
    """git produced more output than the runner is willing to hold."""


class BadStatusFormat(GitError):
    """The porcelain status report did not match the expected layout."""


class MalformedCountOutput(GitError):
    """``rev-list --left-right --count`` printed something unparseable."""


class NotARepository(GitError):
    """The target directory is not inside a git work tree."""


class DetachedOrMissingHead(GitError):
    """HEAD does not name a branch (detached, or the branch is unborn)."""


class NoUpstreamConfigured(GitError):
    """The current branch has no upstream configured."""


# git only reports these conditions through its human-readable stderr.
# A gone upstream ("ambiguous argument '@{u}'") stays untranslated.
_STDERR_MARKERS: tuple[tuple[str, type[GitError]], ...] = (
    ("no upstream configured", NoUpstreamConfigured),
    ("no upstream", NoUpstreamConfigured),
    ("does not point to a branch", DetachedOrMissingHead),
    ("ambiguous argument 'head'", DetachedOrMissingHead),
    ("not a git repository", NotARepository),
)


def translate_stderr(stderr: bytes) -> Optional[type[GitError]]:
    """Map git's stderr text to a semantic error class, if one applies."""
    text = stderr.decode("utf-8", errors="replace").lower()
    for marker, exc_type in _STDERR_MARKERS:
        if marker in text:
            return exc_type
    return None
