"""Rich terminal reporter — staging counts and commit outcomes."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from gitsmart.git.models import StageCounts
from gitsmart.sync.commit import CommitOutcome, CommitReport

_OUTCOME_STYLE = {
    CommitOutcome.CONFLICTS: ("bold red", "✗"),
    CommitOutcome.NOTHING_TO_COMMIT: ("dim", "·"),
    CommitOutcome.SYNCED: ("green", "✓"),
    CommitOutcome.COMMITTED_NO_UPSTREAM: ("green", "✓"),
    CommitOutcome.UP_TO_DATE: ("green", "✓"),
    CommitOutcome.AHEAD: ("green", "✓"),
    CommitOutcome.FAST_FORWARDED: ("green", "✓"),
    CommitOutcome.STILL_BEHIND: ("yellow", "⚠"),
    CommitOutcome.DIVERGED: ("yellow", "⚠"),
}


def render_stage_counts(counts: StageCounts, console: Console) -> None:
    if counts.total == 0:
        console.print("[dim]Nothing to stage.[/dim]")
        return
    console.print(
        f"[green]✓[/green] Staged: [bold]{counts.added}[/bold] added, "
        f"[bold]{counts.removed}[/bold] removed from index"
    )


def render_short_status(status: str, console: Console) -> None:
    """Print ``git status --short`` output verbatim."""
    if not status.strip():
        console.print("[dim]Working tree clean.[/dim]")
        return
    console.print("[bold]Status after staging:[/bold]")
    console.print(escape(status.rstrip("\n")), highlight=False)


def render_commit_report(report: CommitReport, console: Console) -> None:
    style, icon = _OUTCOME_STYLE.get(report.outcome, ("", ""))
    console.print(f"[{style}]{icon} {escape(report.outcome.message)}[/{style}]")

    context = []
    if report.head:
        context.append(f"branch {escape(report.head)}")
    if report.upstream:
        context.append(f"upstream {escape(report.upstream)}")
    if report.ahead_behind is not None:
        ab = report.ahead_behind
        context.append(f"ahead {ab.ahead}, behind {ab.behind}")
    if context:
        console.print(f"[dim]{' · '.join(context)}[/dim]")
