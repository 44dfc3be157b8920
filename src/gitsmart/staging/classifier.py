"""Staging decisions — classify status records, filter dotfiles, stage.

Classification is first-match-wins over the two porcelain status columns:

==========  ==========  =====================================
X           Y           action
==========  ==========  =====================================
``?``       ``?``       add (untracked)
any         ``M``       add (modified in the work tree)
``A``       any         add
any         ``D``       ``git rm --cached`` (work tree untouched)
``R``/``C`` any         add the new path
==========  ==========  =====================================

Everything else is left alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Iterable, List

from gitsmart.git.models import ChangeRecord, StageCounts
from gitsmart.git.refs import ensure_work_tree
from gitsmart.git.runner import GitRunner
from gitsmart.git.status_parser import parse_porcelain_z
from gitsmart.staging.prompt import Confirm

logger = logging.getLogger(__name__)

DOTFILE_PROMPT = "Dotfiles detected (e.g. .env, .vscode). Include them?"

_VCS_DIR = ".git"


@dataclass
class StagePlan:
    """Paths selected for ``git add`` and for ``git rm --cached``."""

    to_add: List[str] = field(default_factory=list)
    to_remove: List[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.to_add and not self.to_remove

    def candidates(self) -> Iterable[str]:
        yield from self.to_add
        yield from self.to_remove


def classify(records: Iterable[ChangeRecord]) -> StagePlan:
    """Sort status records into add / remove buckets."""
    plan = StagePlan()
    for rec in records:
        x, y = rec.status_x, rec.status_y
        if x == "?" and y == "?":
            plan.to_add.append(rec.path)
        elif y == "M":
            plan.to_add.append(rec.path)
        elif x == "A":
            plan.to_add.append(rec.path)
        elif y == "D":
            plan.to_remove.append(rec.path)
        elif rec.is_rename_or_copy:
            # only the new name is staged; the old one is left to git
            plan.to_add.append(rec.path)
        else:
            logger.debug("ignoring %s%s %s", x, y, rec.path)
    return plan


def is_dot_entry(path: str) -> bool:
    """True if the last path component is hidden, never for .git itself."""
    parts = PurePosixPath(path).parts
    if not parts or _VCS_DIR in parts:
        return False
    return parts[-1].startswith(".")


def apply_dotfile_policy(plan: StagePlan, confirm: Confirm) -> StagePlan:
    """Ask once whether dot entries should be staged; drop them if not.

    The prompt is skipped entirely when no candidate is a dot entry.
    """
    dot_entries = [p for p in plan.candidates() if is_dot_entry(p)]
    if not dot_entries:
        return plan

    logger.info("dot entries among candidates: %s", ", ".join(dot_entries))
    if confirm(DOTFILE_PROMPT):
        return plan

    return StagePlan(
        to_add=[p for p in plan.to_add if not is_dot_entry(p)],
        to_remove=[p for p in plan.to_remove if not is_dot_entry(p)],
    )


def stage_changes(
    runner: GitRunner,
    records: Iterable[ChangeRecord],
    confirm: Confirm,
) -> StageCounts:
    """Classify, filter and stage *records*.

    Issues at most one ``git add`` and one ``git rm --cached``. There is no
    rollback: a failing ``rm`` leaves the earlier ``add`` in place and the
    error propagates.
    """
    plan = apply_dotfile_policy(classify(records), confirm)

    added = removed = 0
    if plan.to_add:
        runner.check_quiet(["add", "--", *plan.to_add])
        added = len(plan.to_add)
    if plan.to_remove:
        runner.check_quiet(["rm", "--cached", "--quiet", "--", *plan.to_remove])
        removed = len(plan.to_remove)

    logger.info("staged: add=%d rm=%d", added, removed)
    return StageCounts(added=added, removed=removed)


def smart_add(runner: GitRunner, confirm: Confirm) -> StageCounts:
    """Stage everything the working tree says changed, minus declined dotfiles."""
    ensure_work_tree(runner)
    refresh_index(runner)
    raw = runner.check(["status", "--porcelain", "-z"])
    records = parse_porcelain_z(raw)
    logger.debug("status report: %d bytes, %d records", len(raw), len(records))
    return stage_changes(runner, records, confirm)


def refresh_index(runner: GitRunner) -> None:
    """Best-effort ``update-index --refresh``; a non-zero exit is only logged."""
    result = runner.run(["update-index", "-q", "--refresh"])
    if not result.ok:
        logger.debug("update-index --refresh exited %d; continuing", result.exit_code)
