"""Yes/no confirmation used by the dotfile policy."""

from __future__ import annotations

from typing import Callable, Optional

from rich.console import Console

Confirm = Callable[[str], bool]


def is_affirmative(answer: Optional[str]) -> bool:
    """Only an answer starting with ``y`` or ``Y`` counts as yes."""
    if not answer:
        return False
    return answer[:1].lower() == "y"


def ask_yes_no(prompt: str, console: Optional[Console] = None) -> bool:
    """Write ``<prompt> [y/N]: `` to stdout and read one line; default no."""
    console = console or Console()
    try:
        answer = console.input(f"{prompt} [y/N]: ", markup=False)
    except EOFError:
        return False
    return is_affirmative(answer)


def always(answer: bool) -> Confirm:
    """A Confirm that never prompts and always returns *answer*."""

    def _confirm(prompt: str) -> bool:
        return answer

    return _confirm
