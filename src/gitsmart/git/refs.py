"""Head and upstream resolution."""

from __future__ import annotations

import logging

from gitsmart.git.errors import (
    DetachedOrMissingHead,
    GitError,
    NoUpstreamConfigured,
    NotARepository,
    translate_stderr,
)
from gitsmart.git.runner import GitResult, GitRunner

logger = logging.getLogger(__name__)

UPSTREAM = "@{u}"


def _raise_translated(result: GitResult, *expected: type[GitError]) -> None:
    """Raise the semantic error git reported on stderr, if the caller expects it."""
    exc_type = translate_stderr(result.stderr)
    if exc_type is not None and exc_type in expected:
        detail = result.stderr.decode("utf-8", errors="replace").strip()
        raise exc_type(detail)
    result.require_success()


def ensure_work_tree(runner: GitRunner) -> None:
    """Raise NotARepository unless the runner's directory is inside a work tree."""
    result = runner.run(["rev-parse", "--is-inside-work-tree"])
    if not result.ok or result.stdout.strip() != b"true":
        raise NotARepository(f"Not a git work tree: {runner.repo}")


def get_head(runner: GitRunner) -> str:
    """Return the short name of the checked-out branch."""
    result = runner.run(["rev-parse", "--abbrev-ref", "HEAD"])
    if not result.ok:
        _raise_translated(result, DetachedOrMissingHead)
    name = result.stdout.decode("utf-8", errors="replace").rstrip("\r\n")
    # --abbrev-ref prints a bare "HEAD" when detached
    if not name or name == "HEAD":
        raise DetachedOrMissingHead("HEAD is detached")
    return name


def get_upstream_or_default(runner: GitRunner) -> str:
    """Return the upstream ref of the current branch, e.g. ``origin/main``.

    Raises :class:`NoUpstreamConfigured` when the branch tracks nothing and
    :class:`DetachedOrMissingHead` when HEAD is not on a branch. An upstream
    whose tracking ref was pruned fails as a plain :class:`GitCommandFailed`.
    """
    result = runner.run(["rev-parse", "--abbrev-ref", "--symbolic-full-name", UPSTREAM])
    if not result.ok:
        _raise_translated(result, NoUpstreamConfigured, DetachedOrMissingHead)
    upstream = result.stdout.decode("utf-8", errors="replace").rstrip("\r\n")
    if not upstream:
        raise NoUpstreamConfigured("git printed an empty upstream name")
    return upstream


def upstream_remote(runner: GitRunner, default: str = "origin") -> str:
    """Best-effort: the remote part of the upstream ref, else *default*."""
    try:
        upstream = get_upstream_or_default(runner)
    except GitError as exc:
        logger.debug("upstream remote detection failed (%s); using %s", exc, default)
        return default
    remote, sep, _ = upstream.partition("/")
    if not sep or not remote:
        return default
    return remote
