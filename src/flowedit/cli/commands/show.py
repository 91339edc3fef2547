"""flowedit show -- print a stored document."""

from __future__ import annotations

import json

import click


@click.command()
@click.argument("workflow_id")
@click.option("--version", "version", default=None, type=int, help="Version to show (default: current).")
@click.pass_context
def show(ctx: click.Context, workflow_id: str, version: int | None) -> None:
    """Print WORKFLOW_ID as JSON."""
    from flowedit.cli import _store_session

    with _store_session(ctx) as (store, console):
        if version is None:
            document = store.load_current(workflow_id)
        else:
            document = store.load_version(workflow_id, version)
        console.print_json(json.dumps(document))
