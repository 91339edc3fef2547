"""flowedit summary -- show the document summary the agent sends the model."""

from __future__ import annotations

import click

from flowedit.cli.formatting import format_error, get_console


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def summary(file: str) -> None:
    """Print the model-facing summary of the document in FILE."""
    from flowedit.agent.context import build_workflow_summary
    from flowedit.cli import _read_document

    console = get_console()
    try:
        text = build_workflow_summary(_read_document(file))
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
    console.print(text, markup=False, highlight=False)
