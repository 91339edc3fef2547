"""Toolkit data models for workflow editing tools.

ToolName is the closed set of tools the model may propose. Definitions,
calls, and results are frozen dataclasses.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class ToolName(str, enum.Enum):
    """Wire names of every editing tool, as the model sees them."""

    ADD_GOAL = "addGoal"
    UPDATE_GOAL = "updateGoal"
    DELETE_GOAL = "deleteGoal"
    REORDER_GOALS = "reorderGoals"
    DUPLICATE_GOAL = "duplicateGoal"
    ADD_TASK = "addTask"
    UPDATE_TASK = "updateTask"
    DELETE_TASK = "deleteTask"
    ADD_CONSTRAINT = "addConstraint"
    UPDATE_CONSTRAINT = "updateConstraint"
    DELETE_CONSTRAINT = "deleteConstraint"
    ADD_POLICY = "addPolicy"
    UPDATE_POLICY = "updatePolicy"
    DELETE_POLICY = "deletePolicy"
    ADD_FORM = "addForm"
    UPDATE_FORM = "updateForm"
    DELETE_FORM = "deleteForm"
    MOVE_ELEMENT_BETWEEN_GOALS = "moveElementBetweenGoals"
    UPDATE_WORKFLOW_METADATA = "updateWorkflowMetadata"
    UPDATE_GLOBAL_SETTINGS = "updateGlobalSettings"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> ToolName | None:
        """Return the member for a wire name, or None if unknown."""
        try:
            return cls(name)
        except ValueError:
            return None


@dataclass(frozen=True)
class ToolDefinition:
    """A single tool definition for LLM consumption.

    Attributes:
        name: Tool name.
        description: When and why the model should use this tool.
        parameters: JSON Schema dict describing tool parameters.
        handler: Callable taking the document first, then the whitelisted
            parameters as keyword arguments, returning the new document.
    """

    name: ToolName
    description: str
    parameters: dict
    handler: Callable[..., dict] = field(repr=False)

    @property
    def required(self) -> list[str]:
        return list(self.parameters.get("required", []))

    @property
    def properties(self) -> dict:
        return self.parameters.get("properties", {})

    def to_schema(self) -> dict:
        """Plain ``{name, description, parameters}`` dict for prompts."""
        return {
            "name": self.name.value,
            "description": self.description,
            "parameters": self.parameters,
        }

    def to_openai(self) -> dict:
        """Convert to OpenAI function-calling format."""
        return {"type": "function", "function": self.to_schema()}


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation proposed by the model.

    ``tool`` is kept as the raw string so unknown names survive until the
    executor rejects them.
    """

    tool: str
    params: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"tool": self.tool, "params": self.params}


@dataclass(frozen=True)
class ToolResult:
    """Structured result from executing one tool call.

    Attributes:
        tool_name: Name of the tool that was executed (raw, may be unknown).
        success: Whether execution succeeded.
        document: The new document on success, else None.
        error: Error message on failure.
        exception: The exception behind a failure, for classification.
    """

    tool_name: str
    success: bool
    document: dict | None = None
    error: str = ""
    exception: Exception | None = field(default=None, compare=False, repr=False)
