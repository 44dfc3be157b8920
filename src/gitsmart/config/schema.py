"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

DotfilePolicy = Literal["ask", "include", "exclude"]

DOTFILE_POLICIES: tuple[str, ...] = ("ask", "include", "exclude")


@dataclass
class GitConfig:
    executable: str = "git"
    max_output_kb: int = 1024  # per stream, per git invocation

    @property
    def max_output_bytes(self) -> int:
        return self.max_output_kb * 1024


@dataclass
class AddConfig:
    dotfiles: DotfilePolicy = "ask"
    show_status: bool = True  # print `git status --short` after staging


@dataclass
class SyncConfig:
    fetch: bool = True  # refresh remote-tracking refs before counting
    default_remote: str = "origin"
    fetch_timeout: int = 30  # seconds; only the fetch is bounded


@dataclass
class GitSmartConfig:
    version: str = "1.0"
    git: GitConfig = field(default_factory=GitConfig)
    add: AddConfig = field(default_factory=AddConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
