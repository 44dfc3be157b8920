"""Tests for the commit / upstream reconciliation state machine."""

import pytest

from gitsmart.config.schema import SyncConfig
from gitsmart.git.errors import GitCommandFailed, MalformedCountOutput
from gitsmart.git.models import AheadBehind, StageValidation
from gitsmart.sync.commit import (
    CommitOutcome,
    ahead_behind,
    commit,
    parse_left_right_count,
    validate_staged,
)

CONFLICTS = ("diff", "--cached", "--name-only", "--diff-filter=U")
STAGED = ("diff", "--cached", "--name-only", "--ignore-submodules")
HEAD = ("rev-parse", "--abbrev-ref", "HEAD")
UPSTREAM = ("rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}")
COUNT = ("rev-list", "--left-right", "--count")
MERGE = ("merge", "--ff-only", "@{u}")
NO_UPSTREAM = b"fatal: no upstream configured for branch 'main'\n"
GONE_UPSTREAM = b"fatal: ambiguous argument '@{u}': unknown revision or path not in the working tree.\n"


def ready(runner, *counts: bytes, upstream: bytes = b"origin/main\n"):
    """Script a repository with staged changes on main tracking origin/main."""
    runner.on(*STAGED, stdout=b"a.txt\n")
    runner.on(*HEAD, stdout=b"main\n")
    runner.on(*UPSTREAM, stdout=upstream)
    for c in counts:
        runner.on(*COUNT, stdout=c)
    return runner


def clean(runner, *counts: bytes):
    runner.on(*UPSTREAM, stdout=b"origin/main\n")
    for c in counts:
        runner.on(*COUNT, stdout=c)
    return runner


class TestValidateStaged:
    def test_ready(self, fake_runner):
        fake_runner.on(*STAGED, stdout=b"a.txt\n")
        assert validate_staged(fake_runner) is StageValidation.READY_TO_COMMIT

    def test_clean(self, fake_runner):
        assert validate_staged(fake_runner) is StageValidation.CLEAN

    def test_conflicts(self, fake_runner):
        fake_runner.on(*CONFLICTS, stdout=b"a.txt\n")
        fake_runner.on(*STAGED, stdout=b"a.txt\n")
        assert validate_staged(fake_runner) is StageValidation.HAS_CONFLICTS

    def test_refresh_failure_does_not_abort(self, fake_runner):
        fake_runner.on("update-index", exit_code=1)
        fake_runner.on(*STAGED, stdout=b"a.txt\n")
        assert validate_staged(fake_runner) is StageValidation.READY_TO_COMMIT


class TestParseCount:
    def test_tab_separated(self):
        assert parse_left_right_count(b"3\t1\n") == AheadBehind(ahead=1, behind=3)

    @pytest.mark.parametrize("raw", [b"", b"3\n", b"a\tb\n", b"1\t2\t3\n", b"-1\t0\n"])
    def test_malformed(self, raw):
        with pytest.raises(MalformedCountOutput):
            parse_left_right_count(raw)


class TestAheadBehind:
    def test_fetches_upstream_remote(self, fake_runner):
        fake_runner.on(*UPSTREAM, stdout=b"upstream/dev\n")
        fake_runner.on(*COUNT, stdout=b"0\t4\n")
        assert ahead_behind(fake_runner) == AheadBehind(ahead=4, behind=0)
        fetch = fake_runner.calls[fake_runner.index_of("fetch")]
        assert fetch[-1] == "upstream"
        assert fake_runner.index_of("fetch") < fake_runner.index_of(*COUNT)

    def test_default_remote_when_detection_fails(self, fake_runner):
        fake_runner.on(*UPSTREAM, exit_code=128, stderr=NO_UPSTREAM)
        fake_runner.on(*COUNT, stdout=b"0\t0\n")
        ahead_behind(fake_runner, SyncConfig(default_remote="mirror"))
        assert fake_runner.calls[fake_runner.index_of("fetch")][-1] == "mirror"

    def test_fetch_failure_swallowed(self, fake_runner):
        fake_runner.on(*UPSTREAM, stdout=b"origin/main\n")
        fake_runner.on("fetch", exit_code=128, stderr=b"fatal: unable to access remote\n")
        fake_runner.on(*COUNT, stdout=b"1\t0\n")
        assert ahead_behind(fake_runner) == AheadBehind(ahead=0, behind=1)

    def test_fetch_disabled(self, fake_runner):
        fake_runner.on(*COUNT, stdout=b"0\t0\n")
        ahead_behind(fake_runner, SyncConfig(fetch=False))
        assert fake_runner.called("fetch") == 0

    def test_count_failure_is_fatal(self, fake_runner):
        fake_runner.on(*COUNT, exit_code=128, stderr=b"fatal: bad revision\n")
        with pytest.raises(GitCommandFailed):
            ahead_behind(fake_runner)

    def test_malformed_count_is_fatal(self, fake_runner):
        fake_runner.on(*COUNT, stdout=b"garbage\n")
        with pytest.raises(MalformedCountOutput):
            ahead_behind(fake_runner)


class TestConflicts:
    def test_never_commits(self, fake_runner):
        fake_runner.on(*CONFLICTS, stdout=b"a.txt\n")
        report = commit(fake_runner, "msg")
        assert report.outcome is CommitOutcome.CONFLICTS
        assert fake_runner.called("commit") == 0
        assert fake_runner.called("merge") == 0
        assert not report.committed


class TestCleanIndex:
    def test_nothing_to_commit(self, fake_runner):
        report = commit(clean(fake_runner, b"0\t0\n"), "msg")
        assert report.outcome is CommitOutcome.NOTHING_TO_COMMIT
        assert fake_runner.called("commit") == 0

    def test_behind_fast_forwards(self, fake_runner):
        report = commit(clean(fake_runner, b"2\t0\n"), "msg")
        assert report.outcome is CommitOutcome.SYNCED
        assert fake_runner.called(*MERGE) == 1
        assert fake_runner.called("commit") == 0

    def test_diverged_clean_tree_is_left_alone(self, fake_runner):
        report = commit(clean(fake_runner, b"2\t1\n"), "msg")
        assert report.outcome is CommitOutcome.NOTHING_TO_COMMIT
        assert fake_runner.called("merge") == 0

    def test_no_upstream(self, fake_runner):
        fake_runner.on(*UPSTREAM, exit_code=128, stderr=NO_UPSTREAM)
        report = commit(fake_runner, "msg")
        assert report.outcome is CommitOutcome.NOTHING_TO_COMMIT
        assert fake_runner.called(*COUNT) == 0

    def test_gone_upstream_is_reported(self, fake_runner):
        fake_runner.on(*UPSTREAM, exit_code=128, stderr=GONE_UPSTREAM)
        with pytest.raises(GitCommandFailed):
            commit(fake_runner, "msg")
        assert fake_runner.called(*COUNT) == 0


class TestDecisionTable:
    def test_up_to_date(self, fake_runner):
        report = commit(ready(fake_runner, b"0\t0\n"), "msg")
        assert report.outcome is CommitOutcome.UP_TO_DATE
        assert report.ahead_behind == AheadBehind(ahead=0, behind=0)
        assert report.head == "main"
        assert report.upstream == "origin/main"

    def test_ahead(self, fake_runner):
        report = commit(ready(fake_runner, b"0\t2\n"), "msg")
        assert report.outcome is CommitOutcome.AHEAD
        assert fake_runner.called("merge") == 0

    def test_behind_fast_forwards(self, fake_runner):
        report = commit(ready(fake_runner, b"3\t0\n", b"0\t0\n"), "msg")
        assert report.outcome is CommitOutcome.FAST_FORWARDED
        assert fake_runner.called(*MERGE) == 1
        assert fake_runner.called(*COUNT) == 2

    def test_still_behind_after_fast_forward(self, fake_runner):
        report = commit(ready(fake_runner, b"3\t0\n", b"1\t0\n"), "msg")
        assert report.outcome is CommitOutcome.STILL_BEHIND
        assert report.ahead_behind == AheadBehind(ahead=0, behind=1)

    def test_diverged(self, fake_runner):
        report = commit(ready(fake_runner, b"1\t1\n"), "msg")
        assert report.outcome is CommitOutcome.DIVERGED
        assert fake_runner.called("merge") == 0

    def test_counts_after_commit(self, fake_runner):
        commit(ready(fake_runner, b"0\t1\n"), "msg")
        assert fake_runner.index_of("commit") < fake_runner.index_of(*COUNT)

    def test_message_passed_through(self, fake_runner):
        commit(ready(fake_runner, b"0\t1\n"), "fix: typo")
        assert ("commit", "-m", "fix: typo") in fake_runner.calls

    def test_editor_commit_without_message(self, fake_runner):
        commit(ready(fake_runner, b"0\t1\n"))
        assert ("commit",) in fake_runner.calls

    def test_fast_forward_failure_propagates(self, fake_runner):
        ready(fake_runner, b"3\t0\n")
        fake_runner.on(*MERGE, exit_code=128, stderr=b"fatal: Not possible to fast-forward\n")
        with pytest.raises(GitCommandFailed):
            commit(fake_runner, "msg")


class TestNoUpstream:
    def test_commits_without_counting(self, fake_runner):
        fake_runner.on(*STAGED, stdout=b"a.txt\n")
        fake_runner.on(*HEAD, stdout=b"main\n")
        fake_runner.on(*UPSTREAM, exit_code=128, stderr=NO_UPSTREAM)
        report = commit(fake_runner, "msg")
        assert report.outcome is CommitOutcome.COMMITTED_NO_UPSTREAM
        assert report.head == "main"
        assert fake_runner.called("commit") == 1
        assert fake_runner.called(*COUNT) == 0
        assert fake_runner.called("fetch") == 0

    def test_detached_head_commits_only(self, fake_runner):
        fake_runner.on(*STAGED, stdout=b"a.txt\n")
        fake_runner.on(*HEAD, stdout=b"HEAD\n")
        report = commit(fake_runner, "msg")
        assert report.outcome is CommitOutcome.COMMITTED_NO_UPSTREAM
        assert report.head is None
        assert fake_runner.called("commit") == 1

    def test_other_upstream_failure_is_fatal(self, fake_runner):
        fake_runner.on(*STAGED, stdout=b"a.txt\n")
        fake_runner.on(*HEAD, stdout=b"main\n")
        fake_runner.on(*UPSTREAM, exit_code=128, stderr=b"fatal: something else broke\n")
        with pytest.raises(GitCommandFailed):
            commit(fake_runner, "msg")
        assert fake_runner.called("commit") == 0

    def test_commit_failure_propagates(self, fake_runner):
        ready(fake_runner, b"0\t0\n")
        fake_runner.on("commit", exit_code=1, stderr=b"hook rejected\n")
        with pytest.raises(GitCommandFailed):
            commit(fake_runner, "msg")
