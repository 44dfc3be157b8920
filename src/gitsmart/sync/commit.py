"""Commit and reconcile the current branch with its upstream.

The workflow is a small state machine::

    validate ──conflicts──> CONFLICTS
        │ ──clean──> ahead/behind ──behind only──> ff-merge ──> SYNCED
        │                        └──otherwise────> NOTHING_TO_COMMIT
        └─ready─> head ─> upstream ──none──> commit ──> COMMITTED_NO_UPSTREAM
                              └─> commit ─> ahead/behind ─> decision table

Ahead/behind is always recomputed, never cached, and always after the
commit has been made.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from gitsmart.config.schema import SyncConfig
from gitsmart.git.errors import (
    DetachedOrMissingHead,
    GitError,
    MalformedCountOutput,
    NoUpstreamConfigured,
)
from gitsmart.git.models import AheadBehind, StageValidation
from gitsmart.git.refs import UPSTREAM, get_head, get_upstream_or_default, upstream_remote
from gitsmart.git.runner import GitRunner
from gitsmart.staging.classifier import refresh_index

logger = logging.getLogger(__name__)


class CommitOutcome(str, Enum):
    CONFLICTS = "conflicts"
    NOTHING_TO_COMMIT = "nothing_to_commit"
    SYNCED = "synced"
    COMMITTED_NO_UPSTREAM = "committed_no_upstream"
    UP_TO_DATE = "up_to_date"
    AHEAD = "ahead"
    FAST_FORWARDED = "fast_forwarded"
    STILL_BEHIND = "still_behind"
    DIVERGED = "diverged"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    CommitOutcome.CONFLICTS: "Resolve conflicts in the index before committing.",
    CommitOutcome.NOTHING_TO_COMMIT: "Nothing staged to commit.",
    CommitOutcome.SYNCED: "Fast-forwarded to upstream; working tree still clean.",
    CommitOutcome.COMMITTED_NO_UPSTREAM: "Committed; no upstream branch configured.",
    CommitOutcome.UP_TO_DATE: "Committed on top of up-to-date upstream.",
    CommitOutcome.AHEAD: "Committed; branch is ahead of upstream.",
    CommitOutcome.FAST_FORWARDED: "Fast-forwarded to upstream; you are up to date.",
    CommitOutcome.STILL_BEHIND: (
        "Still behind upstream; someone pushed while you were syncing. Retry or resolve."
    ),
    CommitOutcome.DIVERGED: (
        "Committed; branch has diverged from upstream. Merge or rebase to reconcile."
    ),
}


@dataclass(frozen=True)
class CommitReport:
    """Where the commit workflow ended up."""

    outcome: CommitOutcome
    head: Optional[str] = None
    upstream: Optional[str] = None
    ahead_behind: Optional[AheadBehind] = None

    @property
    def committed(self) -> bool:
        return self.outcome not in (
            CommitOutcome.CONFLICTS,
            CommitOutcome.NOTHING_TO_COMMIT,
            CommitOutcome.SYNCED,
        )


# --- staging area -------------------------------------------------------------


def _has_output(runner: GitRunner, args: list[str]) -> bool:
    return bool(runner.check(args).strip())


def validate_staged(runner: GitRunner) -> StageValidation:
    """Inspect the index before committing."""
    refresh_index(runner)
    if _has_output(runner, ["diff", "--cached", "--name-only", "--diff-filter=U"]):
        return StageValidation.HAS_CONFLICTS
    if not _has_output(
        runner, ["diff", "--cached", "--name-only", "--ignore-submodules", "--"]
    ):
        return StageValidation.CLEAN
    return StageValidation.READY_TO_COMMIT


def make_commit(runner: GitRunner, message: Optional[str] = None) -> None:
    """``git commit -m <message>``, or a bare ``git commit`` to open the editor."""
    if message is not None:
        runner.check_quiet(["commit", "-m", message])
    else:
        # the editor needs the terminal, so stdout is not captured
        runner.check_interactive(["commit"])


def fast_forward(runner: GitRunner) -> None:
    runner.check_quiet(["merge", "--ff-only", UPSTREAM])


# --- upstream position ----------------------------------------------------------


def parse_left_right_count(output: bytes) -> AheadBehind:
    """Parse ``rev-list --left-right --count @{u}...HEAD`` (``<behind>\\t<ahead>``)."""
    fields = output.decode("utf-8", errors="replace").split()
    if len(fields) != 2:
        raise MalformedCountOutput(f"expected two counts, got {output!r}")
    try:
        behind, ahead = (int(f) for f in fields)
    except ValueError as exc:
        raise MalformedCountOutput(f"non-numeric counts in {output!r}") from exc
    if behind < 0 or ahead < 0:
        raise MalformedCountOutput(f"negative counts in {output!r}")
    return AheadBehind(ahead=ahead, behind=behind)


def refresh_remote(runner: GitRunner, settings: SyncConfig) -> None:
    """Best-effort fetch of the upstream's remote; failures only get logged."""
    if not settings.fetch:
        logger.debug("fetch disabled; using local remote-tracking refs")
        return
    remote = upstream_remote(runner, settings.default_remote)
    try:
        runner.check_quiet(
            ["fetch", "--quiet", "--tags", "--prune", "--no-recurse-submodules", remote],
            timeout=settings.fetch_timeout,
        )
    except GitError as exc:
        logger.info("fetch from %s failed, continuing offline: %s", remote, exc)


def ahead_behind(runner: GitRunner, settings: Optional[SyncConfig] = None) -> AheadBehind:
    """Fetch (best effort), then count commits on each side of ``@{u}...HEAD``."""
    settings = settings or SyncConfig()
    refresh_remote(runner, settings)
    out = runner.check(["rev-list", "--left-right", "--count", f"{UPSTREAM}...HEAD"])
    ab = parse_left_right_count(out)
    logger.info("ahead=%d behind=%d", ab.ahead, ab.behind)
    return ab


# --- workflow ----------------------------------------------------------------------


def _sync_clean_tree(runner: GitRunner, settings: SyncConfig) -> CommitReport:
    try:
        upstream = get_upstream_or_default(runner)
    except (NoUpstreamConfigured, DetachedOrMissingHead):
        return CommitReport(CommitOutcome.NOTHING_TO_COMMIT)

    ab = ahead_behind(runner, settings)
    if ab.behind > 0 and ab.ahead == 0:
        fast_forward(runner)
        return CommitReport(CommitOutcome.SYNCED, upstream=upstream, ahead_behind=ab)
    return CommitReport(CommitOutcome.NOTHING_TO_COMMIT, upstream=upstream, ahead_behind=ab)


def decide(
    runner: GitRunner,
    ab: AheadBehind,
    settings: SyncConfig,
    head: Optional[str] = None,
    upstream: Optional[str] = None,
) -> CommitReport:
    """Apply the post-commit decision table to *ab*."""
    if ab.ahead == 0 and ab.behind == 0:
        outcome = CommitOutcome.UP_TO_DATE
    elif ab.behind == 0:
        outcome = CommitOutcome.AHEAD
    elif ab.ahead == 0:
        fast_forward(runner)
        ab = ahead_behind(runner, settings)
        outcome = CommitOutcome.FAST_FORWARDED if ab.behind == 0 else CommitOutcome.STILL_BEHIND
    else:
        outcome = CommitOutcome.DIVERGED
    return CommitReport(outcome, head=head, upstream=upstream, ahead_behind=ab)


def commit(
    runner: GitRunner,
    message: Optional[str] = None,
    settings: Optional[SyncConfig] = None,
) -> CommitReport:
    """Commit the index and reconcile the branch with its upstream."""
    settings = settings or SyncConfig()

    validation = validate_staged(runner)
    logger.info("staging area: %s", validation.value)
    if validation is StageValidation.HAS_CONFLICTS:
        return CommitReport(CommitOutcome.CONFLICTS)
    if validation is StageValidation.CLEAN:
        return _sync_clean_tree(runner, settings)

    try:
        head: Optional[str] = get_head(runner)
    except DetachedOrMissingHead as exc:
        # unborn or detached: there is nothing upstream to compare against
        logger.info("no branch to reconcile (%s); committing only", exc)
        make_commit(runner, message)
        return CommitReport(CommitOutcome.COMMITTED_NO_UPSTREAM)

    try:
        upstream = get_upstream_or_default(runner)
    except NoUpstreamConfigured:
        make_commit(runner, message)
        return CommitReport(CommitOutcome.COMMITTED_NO_UPSTREAM, head=head)

    make_commit(runner, message)
    ab = ahead_behind(runner, settings)
    return decide(runner, ab, settings, head=head, upstream=upstream)
