"""gitsmart CLI — Typer application with add, commit, graph, and init commands."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Tuple

import typer
from rich.console import Console
from rich.markup import escape

from gitsmart import __version__
from gitsmart.config.schema import GitSmartConfig
from gitsmart.git.runner import GitRunner

app = typer.Typer(
    name="gitsmart",
    help="Stage, commit and sync a git working tree in one step.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)
out = Console()

_REPO_ARG = typer.Argument(None, help="Repository path (defaults to the current directory)")
_CONFIG_OPT = typer.Option(None, "--config", "-c", help="Path to .gitsmart.toml")
_VERBOSE_OPT = typer.Option(False, "--verbose", "-v", help="Verbose output")
_DEBUG_OPT = typer.Option(False, "--debug", help="Log every git invocation")


def _fail(label: str, exc: Exception) -> typer.Exit:
    console.print(f"[bold red]{label}:[/bold red] {escape(str(exc))}")
    return typer.Exit(code=2)


def _resolve_repo_root(repo: Optional[Path]) -> Path:
    """Return the work tree root containing *repo* (default: cwd). Exit 2 if there is none."""
    from gitsmart.git.errors import GitError
    from gitsmart.git.refs import ensure_work_tree

    target = (repo or Path.cwd()).resolve()
    bootstrap = GitRunner(target, executable=os.environ.get("GITSMART_GIT", "git"))
    try:
        ensure_work_tree(bootstrap)
        return Path(bootstrap.check_text(["rev-parse", "--show-toplevel"]))
    except GitError as exc:
        raise _fail("Error", exc) from exc


def _open_repo(repo: Optional[Path], config: Optional[str]) -> Tuple[GitRunner, GitSmartConfig]:
    """Find the work tree root, load its config, and build the runner. Exit 2 on failure."""
    from gitsmart.config.loader import ConfigError, load_config

    root = _resolve_repo_root(repo)
    try:
        cfg = load_config(root, config)
    except ConfigError as exc:
        raise _fail("Config error", exc) from exc

    runner = GitRunner(
        root,
        executable=cfg.git.executable,
        max_output_bytes=cfg.git.max_output_bytes,
    )
    return runner, cfg


def _confirm_for(policy: str):
    from gitsmart.staging.prompt import always, ask_yes_no

    if policy == "include":
        return always(True)
    if policy == "exclude":
        return always(False)
    return lambda prompt: ask_yes_no(prompt, console=out)


def _run_add(runner: GitRunner, cfg: GitSmartConfig, verbose: bool) -> None:
    from gitsmart.output.terminal import render_short_status, render_stage_counts
    from gitsmart.staging.classifier import smart_add

    counts = smart_add(runner, _confirm_for(cfg.add.dotfiles))
    render_stage_counts(counts, out)
    if cfg.add.show_status or verbose:
        status = runner.check(["status", "--short"]).decode("utf-8", errors="replace")
        render_short_status(status, out)


# ── add ───────────────────────────────────────────────────────────────────────


@app.command()
def add(
    repo: Optional[Path] = _REPO_ARG,
    config: Optional[str] = _CONFIG_OPT,
    dotfiles: Optional[str] = typer.Option(
        None, "--dotfiles", help="Dotfile policy: ask | include | exclude"
    ),
    verbose: bool = _VERBOSE_OPT,
    debug: bool = _DEBUG_OPT,
) -> None:
    """Stage every change in the working tree (asks before staging dotfiles)."""
    from gitsmart.config.schema import DOTFILE_POLICIES
    from gitsmart.git.errors import GitError
    from gitsmart.logging_setup import configure_logging

    configure_logging(verbose=verbose, debug=debug)

    if dotfiles is not None and dotfiles not in DOTFILE_POLICIES:
        console.print(f"[bold red]Invalid dotfile policy:[/bold red] {escape(dotfiles)}")
        raise typer.Exit(code=2)

    runner, cfg = _open_repo(repo, config)
    if dotfiles:
        cfg.add.dotfiles = dotfiles  # type: ignore[assignment]

    try:
        _run_add(runner, cfg, verbose)
    except GitError as exc:
        raise _fail("Git error", exc) from exc


# ── commit ────────────────────────────────────────────────────────────────────


@app.command()
def commit(
    repo: Optional[Path] = _REPO_ARG,
    message: Optional[str] = typer.Option(
        None, "--message", "-m", help="Commit message (opens the editor when omitted)"
    ),
    stage: bool = typer.Option(False, "--add", "-a", help="Stage all changes first"),
    no_fetch: bool = typer.Option(False, "--no-fetch", help="Do not fetch before comparing with upstream"),
    config: Optional[str] = _CONFIG_OPT,
    verbose: bool = _VERBOSE_OPT,
    debug: bool = _DEBUG_OPT,
) -> None:
    """Commit the index, then fast-forward or report where the branch stands."""
    from gitsmart.git.errors import GitError
    from gitsmart.logging_setup import configure_logging
    from gitsmart.output.terminal import render_commit_report
    from gitsmart.sync.commit import CommitOutcome, commit as run_commit

    configure_logging(verbose=verbose, debug=debug)
    runner, cfg = _open_repo(repo, config)
    if no_fetch:
        cfg.sync.fetch = False

    try:
        if stage:
            _run_add(runner, cfg, verbose)
        report = run_commit(runner, message, cfg.sync)
    except GitError as exc:
        raise _fail("Git error", exc) from exc

    render_commit_report(report, out)
    if report.outcome is CommitOutcome.CONFLICTS:
        raise typer.Exit(code=1)


# ── graph ─────────────────────────────────────────────────────────────────────


@app.command()
def graph(
    repo: Optional[Path] = _REPO_ARG,
    max_count: int = typer.Option(20, "--max-count", "-n", help="Number of commits to show"),
    config: Optional[str] = _CONFIG_OPT,
) -> None:
    """Show the commit graph of the current branch."""
    from gitsmart.git.errors import GitError

    runner, _ = _open_repo(repo, config)
    try:
        text = runner.check_text(
            ["log", "--graph", "--decorate", "--oneline", f"--max-count={max_count}"]
        )
    except GitError as exc:
        raise _fail("Git error", exc) from exc
    out.print(escape(text), highlight=False)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(repo: Optional[Path] = _REPO_ARG) -> None:
    """Generate a starter .gitsmart.toml in the repo root."""
    from gitsmart.config.defaults import DEFAULT_TOML
    from gitsmart.config.loader import CONFIG_FILENAME

    config_path = _resolve_repo_root(repo) / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"gitsmart {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """gitsmart — stage, commit and sync a git working tree in one step."""
