"""flowedit import -- store a document as a new workflow or version."""

from __future__ import annotations

import click

from flowedit.cli.formatting import format_save


@click.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--id", "workflow_id", default=None, help="Workflow id (defaults to the document's id).")
@click.option("--author", default="cli", show_default=True, help="Recorded as the version's author.")
@click.pass_context
def import_document(ctx: click.Context, file: str, workflow_id: str | None, author: str) -> None:
    """Validate FILE and save it.

    A new workflow starts at version 1; an existing one gets the next
    version unless the content is unchanged.
    """
    from flowedit.cli import _read_document, _store_session
    from flowedit.editor import WorkflowEditor

    with _store_session(ctx) as (store, console):
        document = _read_document(file)
        editor = WorkflowEditor(store)
        saved = editor.import_document(document, workflow_id=workflow_id, created_by=author)
        format_save(saved, console)
