"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path

import click

from ..exceptions import RatError
from ..nest import NEST_DIRNAME, Nest


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


@contextmanager
def _errors():
    """Turn library errors into one-line click errors (exit code 1)."""
    try:
        yield
    except (RatError, ValueError) as exc:
        raise click.ClickException(str(exc))


def _nest_path(ctx) -> Path:
    nest = ctx.obj.get("nest_path")
    if nest:
        return Path(nest)
    return Path(ctx.obj["work_tree"]) / NEST_DIRNAME


def _open_nest(ctx) -> Nest:
    with _errors():
        return Nest.open(ctx.obj["work_tree"], nest=_nest_path(ctx))


def _log_entry_dict(entry) -> dict:
    return {
        "hash": entry.hash,
        "parent": entry.parent,
        "message": entry.message,
        "branches": list(entry.branches),
    }


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group(invoke_without_command=True)
@click.option("-C", "--work-tree", "work_tree", type=click.Path(file_okay=False), default=".",
              envvar="RAT_WORK_TREE", show_default=True,
              help="Directory to snapshot (or set RAT_WORK_TREE).")
@click.option("--nest", "nest_path", type=click.Path(file_okay=False), default=None,
              envvar="RAT_NEST",
              help=f"Nest location (default: <work-tree>/{NEST_DIRNAME}, or set RAT_NEST).")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.pass_context
def main(ctx, work_tree, nest_path, verbose):
    """rat: a minimal content-addressed snapshot store.

    Records full snapshots of a working directory as commits, chained by
    parent hashes, with branches and a movable HEAD.

    \b
    Quick start:
      rat init
      rat commit -m "first"
      rat log
      rat branch feature <hash>
      rat checkout feature
    """
    ctx.ensure_object(dict)
    ctx.obj["work_tree"] = work_tree
    ctx.obj["nest_path"] = nest_path
    ctx.obj["verbose"] = verbose
    if ctx.invoked_subcommand is None:
        raise click.UsageError("Missing command.", ctx=ctx)
