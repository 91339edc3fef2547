"""flowedit revert -- restore an old version as a new one."""

from __future__ import annotations

import click

from flowedit.cli.formatting import format_save


@click.command()
@click.argument("workflow_id")
@click.argument("version", type=int)
@click.option("--author", default="cli", show_default=True, help="Recorded as the version's author.")
@click.pass_context
def revert(ctx: click.Context, workflow_id: str, version: int, author: str) -> None:
    """Save VERSION of WORKFLOW_ID as its newest version.

    Versions after VERSION stay in the history.
    """
    from flowedit.cli import _store_session

    with _store_session(ctx) as (store, console):
        saved = store.revert(workflow_id, version, created_by=author)
        console.print(f"Reverted to version {version}.")
        format_save(saved, console)
