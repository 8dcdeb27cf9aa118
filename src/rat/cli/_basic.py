"""Basic commands: init, commit, checkout, log."""

from __future__ import annotations

import json

import click

from ..exceptions import EmptyCommitMessageError
from ..nest import DEFAULT_BRANCH, Nest
from ._editor import edit_message
from ._helpers import (
    main,
    _errors,
    _log_entry_dict,
    _nest_path,
    _open_nest,
    _status,
)


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@main.command()
@click.option("--branch", "-b", default=DEFAULT_BRANCH,
              help=f"Initial branch name (default: {DEFAULT_BRANCH}).")
@click.pass_context
def init(ctx, branch):
    """Create a new nest in the work tree."""
    nest_path = _nest_path(ctx)
    with _errors():
        Nest.init(ctx.obj["work_tree"], nest=nest_path, branch=branch)
    _status(ctx, f"HEAD -> refs/heads/{branch}")
    click.echo("Initialized new rat nest.")


# ---------------------------------------------------------------------------
# commit
# ---------------------------------------------------------------------------

@main.command()
@click.option("-m", "--message", default=None,
              help="Commit message (opens $EDITOR / $VISUAL when omitted).")
@click.pass_context
def commit(ctx, message):
    """Snapshot the work tree as a new commit."""
    nest = _open_nest(ctx)
    with _errors():
        if message is None:
            message = edit_message(nest)
        if not message.strip():
            raise EmptyCommitMessageError("Cancelled commit.")
        parent = nest.head_commit()
        commit_hash = nest.commit(message)
    _status(ctx, f"parent {parent or '(root)'}")
    click.echo(f"Created commit {commit_hash}.")


# ---------------------------------------------------------------------------
# checkout
# ---------------------------------------------------------------------------

@main.command()
@click.argument("target")
@click.pass_context
def checkout(ctx, target):
    """Restore TARGET (a commit hash or branch name) onto the work tree.

    Checking out a branch attaches HEAD to it; checking out a hash
    detaches HEAD.
    """
    nest = _open_nest(ctx)
    with _errors():
        commit_hash = nest.checkout(target)
        head = nest.head
    _status(ctx, f"HEAD is now {head}")
    click.echo(f"Checked out commit {commit_hash}.")


# ---------------------------------------------------------------------------
# log
# ---------------------------------------------------------------------------

def _format_entry(entry) -> str:
    """Render one log entry with ANSI emphasis."""
    header = click.style(f"commit {entry.hash}", fg="yellow", bold=True)
    if entry.branches:
        names = ", ".join(click.style(name, fg="green", bold=True) for name in entry.branches)
        header += click.style(" (", fg="yellow") + names + click.style(")", fg="yellow")
    lines = [header]
    lines.extend(" " * 4 + line for line in entry.message.splitlines())
    return "\n".join(lines)


@main.command()
@click.argument("target", required=False)
@click.option("--format", "fmt", type=click.Choice(["text", "json", "jsonl"]), default="text",
              show_default=True, help="Output format.")
@click.option("--color/--no-color", default=None,
              help="Force or suppress ANSI colors (default: only on a terminal).")
@click.pass_context
def log(ctx, target, fmt, color):
    """Show commit history newest-first, starting at TARGET or HEAD."""
    nest = _open_nest(ctx)
    with _errors():
        entries = nest.log(target)

    if fmt == "json":
        click.echo(json.dumps([_log_entry_dict(e) for e in entries], indent=2))
    elif fmt == "jsonl":
        for entry in entries:
            click.echo(json.dumps(_log_entry_dict(entry)))
    elif entries:
        click.echo("\n\n".join(_format_entry(e) for e in entries), color=color)
    _status(ctx, f"{len(entries)} commit(s)")
