"""Load and merge configuration from .gitsmart.toml, CLI flags, and env vars."""

from __future__ import annotations

import dataclasses
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from gitsmart.config.schema import (
    DOTFILE_POLICIES,
    AddConfig,
    GitConfig,
    GitSmartConfig,
    SyncConfig,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".gitsmart.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _merge_env_overrides(cfg: GitSmartConfig) -> None:
    """Apply GITSMART_* environment variable overrides."""
    if val := os.environ.get("GITSMART_GIT"):
        cfg.git.executable = val
    if val := os.environ.get("GITSMART_DOTFILES"):
        if val in DOTFILE_POLICIES:
            cfg.add.dotfiles = val  # type: ignore[assignment]
    if os.environ.get("GITSMART_NO_FETCH") == "1":
        cfg.sync.fetch = False
    if val := os.environ.get("GITSMART_REMOTE"):
        cfg.sync.default_remote = val
    if val := os.environ.get("GITSMART_FETCH_TIMEOUT"):
        try:
            cfg.sync.fetch_timeout = int(val)
        except ValueError:
            logger.debug("ignoring GITSMART_FETCH_TIMEOUT=%r: not an integer", val)


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: GitSmartConfig) -> None:
    if cfg.add.dotfiles not in DOTFILE_POLICIES:
        raise ConfigError(
            f"Invalid add.dotfiles value {cfg.add.dotfiles!r}; "
            f"expected one of {', '.join(DOTFILE_POLICIES)}"
        )
    if cfg.git.max_output_kb <= 0:
        raise ConfigError("git.max_output_kb must be positive")
    if cfg.sync.fetch_timeout <= 0:
        raise ConfigError("sync.fetch_timeout must be positive")


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> GitSmartConfig:
    """Load, validate, and return a GitSmartConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = GitSmartConfig()
    else:
        raw = _parse_toml(config_path)
        cfg = GitSmartConfig(
            version=raw.get("version", "1.0"),
            git=_build_section(raw, GitConfig, "git"),
            add=_build_section(raw, AddConfig, "add"),
            sync=_build_section(raw, SyncConfig, "sync"),
        )

    _merge_env_overrides(cfg)
    _validate(cfg)
    return cfg
