"""flowedit CLI -- validate, version, and edit workflow documents from a terminal.

This module is never imported from flowedit/__init__.py.
It is only loaded via the ``flowedit`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import TYPE_CHECKING

import click

from flowedit.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from flowedit.storage.versions import WorkflowVersionStore


@click.group()
@click.option(
    "--db",
    default=".flowedit.db",
    envvar="FLOWEDIT_DB",
    help="Path to the workflow version database.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log agent and store activity to stderr.")
@click.pass_context
def cli(ctx: click.Context, db: str, verbose: bool) -> None:
    """flowedit: validate, version, and edit workflow documents."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db
    if verbose:
        import logging

        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


def _open_store(ctx: click.Context) -> WorkflowVersionStore:
    from flowedit.models.versions import StoreConfig
    from flowedit.storage.versions import WorkflowVersionStore

    return WorkflowVersionStore.open(StoreConfig(db_path=ctx.obj["db_path"]))


@contextmanager
def _store_session(ctx: click.Context) -> Iterator[tuple[WorkflowVersionStore, Console]]:
    """Open the store, yield (store, console), and handle cleanup.

    Exceptions raised inside the block are printed as CLI errors and
    exit with status 1.
    """
    console = get_console()
    try:
        store = _open_store(ctx)
        try:
            yield store, console
        finally:
            store.close()
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


def _read_document(path: str) -> dict:
    """Load a JSON workflow document from *path*."""
    with open(path, encoding="utf-8") as fh:
        try:
            document = json.load(fh)
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise click.ClickException(f"{path} must contain a JSON object")
    return document


# Register subcommands after cli group is defined
from flowedit.cli.commands.validate import validate  # noqa: E402
from flowedit.cli.commands.summary import summary  # noqa: E402
from flowedit.cli.commands.importing import import_document  # noqa: E402
from flowedit.cli.commands.edit import edit  # noqa: E402
from flowedit.cli.commands.history import history, workflows  # noqa: E402
from flowedit.cli.commands.show import show  # noqa: E402
from flowedit.cli.commands.revert import revert  # noqa: E402

cli.add_command(validate)
cli.add_command(summary)
cli.add_command(import_document)
cli.add_command(edit)
cli.add_command(history)
cli.add_command(workflows)
cli.add_command(show)
cli.add_command(revert)
