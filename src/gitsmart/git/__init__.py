"""Git interface layer — runner, status parsing, ref resolution, models."""

from gitsmart.git.errors import (
    AbnormalTermination,
    BadStatusFormat,
    CommandTimedOut,
    DetachedOrMissingHead,
    GitCommandFailed,
    GitError,
    MalformedCountOutput,
    NoUpstreamConfigured,
    NotARepository,
    OutputTooLarge,
    ProcessUnavailable,
)
from gitsmart.git.models import AheadBehind, ChangeRecord, StageCounts, StageValidation
from gitsmart.git.refs import ensure_work_tree, get_head, get_upstream_or_default, upstream_remote
from gitsmart.git.runner import GitResult, GitRunner
from gitsmart.git.status_parser import parse_porcelain_z

__all__ = [
    "AbnormalTermination",
    "AheadBehind",
    "BadStatusFormat",
    "ChangeRecord",
    "CommandTimedOut",
    "DetachedOrMissingHead",
    "GitCommandFailed",
    "GitError",
    "GitResult",
    "GitRunner",
    "MalformedCountOutput",
    "NoUpstreamConfigured",
    "NotARepository",
    "OutputTooLarge",
    "ProcessUnavailable",
    "StageCounts",
    "StageValidation",
    "ensure_work_tree",
    "get_head",
    "get_upstream_or_default",
    "parse_porcelain_z",
    "upstream_remote",
]
