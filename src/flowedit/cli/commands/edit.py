"""flowedit edit -- apply a natural-language edit with the model."""

from __future__ import annotations

import click

from flowedit.cli.formatting import format_edit_outcome


@click.command()
@click.argument("workflow_id")
@click.argument("message")
@click.option("--model", default=None, help="Chat model (default: $FLOWEDIT_OPENAI_MODEL or gpt-4o-mini).")
@click.option("--base-url", default=None, help="OpenAI-compatible API base URL.")
@click.option("--retries", default=2, show_default=True, type=int, help="Retries after a failed attempt.")
@click.option("--user", "user_id", default=None, help="Recorded as the edit's author.")
@click.pass_context
def edit(
    ctx: click.Context,
    workflow_id: str,
    message: str,
    model: str | None,
    base_url: str | None,
    retries: int,
    user_id: str | None,
) -> None:
    """Edit WORKFLOW_ID as described by MESSAGE and save the result.

    The API key is read from FLOWEDIT_OPENAI_API_KEY. Exits with status 1
    if the edit fails; nothing is saved in that case.
    """
    from flowedit.agent import AgentConfig, WorkflowEditingAgent
    from flowedit.cli import _store_session
    from flowedit.editor import WorkflowEditor
    from flowedit.llm import ChatModelInvoker, ModelSettings

    with _store_session(ctx) as (store, console):
        settings = ModelSettings.from_env(model=model, base_url=base_url)
        with ChatModelInvoker(settings) as invoker:
            agent = WorkflowEditingAgent(
                invoker,
                AgentConfig(max_retries=retries),
            )
            outcome = WorkflowEditor(store, agent).edit(workflow_id, message, user_id=user_id)
        format_edit_outcome(outcome, console)
        if not outcome.success:
            raise SystemExit(1)
