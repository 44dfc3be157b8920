"""Status classification, dotfile policy, and bulk staging."""

from gitsmart.staging.classifier import (
    DOTFILE_PROMPT,
    StagePlan,
    apply_dotfile_policy,
    classify,
    is_dot_entry,
    smart_add,
    stage_changes,
)
from gitsmart.staging.prompt import Confirm, always, ask_yes_no, is_affirmative

__all__ = [
    "Confirm",
    "DOTFILE_PROMPT",
    "StagePlan",
    "always",
    "apply_dotfile_policy",
    "ask_yes_no",
    "classify",
    "is_affirmative",
    "is_dot_entry",
    "smart_add",
    "stage_changes",
]
