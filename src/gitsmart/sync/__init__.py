"""Commit workflow and upstream reconciliation."""

from gitsmart.sync.commit import (
    CommitOutcome,
    CommitReport,
    ahead_behind,
    commit,
    decide,
    parse_left_right_count,
    validate_staged,
)

__all__ = [
    "CommitOutcome",
    "CommitReport",
    "ahead_behind",
    "commit",
    "decide",
    "parse_left_right_count",
    "validate_staged",
]
