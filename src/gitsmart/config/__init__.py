"""Configuration loading, schema, and defaults."""

from gitsmart.config.loader import ConfigError, load_config
from gitsmart.config.schema import DOTFILE_POLICIES, DotfilePolicy, GitSmartConfig

__all__ = [
    "ConfigError",
    "DOTFILE_POLICIES",
    "DotfilePolicy",
    "GitSmartConfig",
    "load_config",
]
