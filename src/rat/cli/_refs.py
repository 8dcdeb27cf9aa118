"""Branch command."""

from __future__ import annotations

import click

from ._helpers import main, _errors, _open_nest, _status


@main.command()
@click.argument("name", required=False)
@click.argument("commit_hash", metavar="HASH", required=False)
@click.pass_context
def branch(ctx, name, commit_hash):
    """Create branch NAME at HASH (default: HEAD), or list branches.

    Existing branches are never overwritten.
    """
    nest = _open_nest(ctx)
    if name is None:
        if commit_hash is not None:
            raise click.UsageError("HASH given without NAME")
        with _errors():
            refs = nest.branches()
            current = nest.current_branch
        for ref_name, target in refs.items():
            marker = "*" if ref_name == current else " "
            click.echo(f"{marker} {ref_name}  {target}")
        return

    with _errors():
        target = nest.create_branch(name, commit_hash)
    _status(ctx, f"{name} -> {target}")
    click.echo(f"Created branch {name}.")
