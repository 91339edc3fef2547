"""flowedit history / workflows -- list versions and workflows."""

from __future__ import annotations

import click

from flowedit.cli.formatting import format_history, format_workflows


@click.command()
@click.argument("workflow_id")
@click.option("-n", "--limit", default=20, type=int, help="Maximum number of versions to show.")
@click.option("--offset", default=0, type=int, help="Number of newest versions to skip.")
@click.pass_context
def history(ctx: click.Context, workflow_id: str, limit: int, offset: int) -> None:
    """Show the version history of WORKFLOW_ID, newest first."""
    from flowedit.cli import _store_session

    with _store_session(ctx) as (store, console):
        format_history(store.history(workflow_id, limit=limit, offset=offset), console)


@click.command()
@click.pass_context
def workflows(ctx: click.Context) -> None:
    """List stored workflows, most recently modified first."""
    from flowedit.cli import _store_session

    with _store_session(ctx) as (store, console):
        format_workflows(store.list_workflows(), console)
