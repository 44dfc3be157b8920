"""Data models for status records, staging results and upstream position."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

RENAME_OR_COPY = frozenset({"R", "C"})


@dataclass(frozen=True, slots=True)
class ChangeRecord:
    """One entry of ``git status --porcelain -z``."""

    status_x: str
    status_y: str
    path: str
    old_path: Optional[str] = None  # set on renames/copies

    @property
    def is_rename_or_copy(self) -> bool:
        return self.status_x in RENAME_OR_COPY


@dataclass(frozen=True)
class StageCounts:
    """How many paths a staging pass added and removed."""

    added: int = 0
    removed: int = 0

    @property
    def total(self) -> int:
        return self.added + self.removed


class StageValidation(str, Enum):
    CLEAN = "clean"
    HAS_CONFLICTS = "has_conflicts"
    READY_TO_COMMIT = "ready_to_commit"


@dataclass(frozen=True)
class AheadBehind:
    """Commits only on the local branch (ahead) vs. only upstream (behind)."""

    ahead: int
    behind: int

    def __post_init__(self) -> None:
        if self.ahead < 0 or self.behind < 0:
            raise ValueError(f"ahead/behind must be non-negative: {self.ahead}/{self.behind}")
