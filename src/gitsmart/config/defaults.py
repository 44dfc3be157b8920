"""Starter .gitsmart.toml template."""

DEFAULT_TOML = """\
# gitsmart configuration
version = "1.0"

[git]
executable = "git"
max_output_kb = 1024      # cap on captured stdout/stderr per git call

[add]
dotfiles = "ask"          # ask | include | exclude
show_status = true        # print `git status --short` after staging

[sync]
fetch = true              # refresh remote-tracking refs before ahead/behind
default_remote = "origin" # used when the upstream's remote cannot be detected
fetch_timeout = 30        # seconds
"""
