"""gitsmart — stage, commit and sync a git working tree in one step."""

__version__ = "0.1.0"
