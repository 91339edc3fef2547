"""Model context assembly for the editing agent.

The document summary only carries names, counts, ids, and metadata;
every free-text value taken from the document is redacted the same way
as the user's request.
"""

from __future__ import annotations

from typing import Any

from flowedit.agent.sanitize import redact_text
from flowedit.models.workflow import ElementType
from flowedit.prompts.editing import (
    GOAL_LINE_TEMPLATE,
    WORKFLOW_SUMMARY_TEMPLATE,
    build_system_prompt,
)
from flowedit.toolkit import ToolDefinition


def _count(goal: dict, collection: str) -> int:
    children = goal.get(collection)
    return len(children) if isinstance(children, list) else 0


def _text(value: Any, default: str = "Unknown") -> str:
    if value is None or value == "":
        return default
    return redact_text(str(value))


def build_workflow_summary(document: dict) -> str:
    """Human-readable summary of a document for the model context."""
    goals = [g for g in document.get("goals") or [] if isinstance(g, dict)]
    metadata = document.get("metadata") if isinstance(document.get("metadata"), dict) else {}

    lines = []
    for position, goal in enumerate(goals, start=1):
        lines.append(
            GOAL_LINE_TEMPLATE.format(
                position=position,
                name=_text(goal.get("name"), ""),
                goal_id=_text(goal.get("id"), ""),
                **{t.collection: _count(goal, t.collection) for t in ElementType},
            )
        )
    element_count = sum(_count(g, t.collection) for g in goals for t in ElementType)

    tags = metadata.get("tags")
    tag_text = ", ".join(redact_text(str(t)) for t in tags) if isinstance(tags, list) else ""

    return WORKFLOW_SUMMARY_TEMPLATE.format(
        name=_text(document.get("name")),
        version=_text(document.get("version")),
        goal_count=len(goals),
        element_count=element_count,
        goals_breakdown="\n".join(lines) if lines else "  (no goals)",
        author=_text(metadata.get("author")),
        last_modified=_text(metadata.get("last_modified")),
        tags=tag_text or "None",
    )


def build_system_context(definitions: list[ToolDefinition]) -> str:
    """Capability description with every tool's name and full schema."""
    return build_system_prompt(
        [d.name.value for d in definitions],
        [d.to_schema() for d in definitions],
    )
