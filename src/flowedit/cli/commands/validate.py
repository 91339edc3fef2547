"""flowedit validate -- check a workflow document against the schema."""

from __future__ import annotations

import click

from flowedit.cli.formatting import format_error, format_validation, get_console


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def validate(file: str) -> None:
    """Validate the workflow document in FILE.

    Prints every error and warning. Exits with status 1 when the document
    has errors; warnings alone do not fail.
    """
    from flowedit.cli import _read_document
    from flowedit.validation import validate_document

    console = get_console()
    try:
        result = validate_document(_read_document(file))
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    format_validation(result, console)
    if not result.is_valid:
        raise SystemExit(1)
