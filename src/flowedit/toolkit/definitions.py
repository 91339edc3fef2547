"""Hand-crafted tool definitions for every workflow editing operation.

Each definition pairs a JSON Schema the model sees with a handler that
maps the camelCase wire parameters onto a mutation operation. The
executor only forwards parameters declared in the schema, so a
hallucinated argument never reaches an operation.
"""

from __future__ import annotations

import logging

from flowedit import operations as ops
from flowedit.models.workflow import (
    AssigneeType,
    ConstraintType,
    ElementType,
    EnforcementLevel,
    FormType,
    enum_values,
)
from flowedit.toolkit.models import ToolDefinition, ToolName

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared schema fragments
# ---------------------------------------------------------------------------

def _id(description: str) -> dict:
    return {"type": "string", "description": description}


_ASSIGNEE = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": enum_values(AssigneeType)},
        "model": {"type": "string", "description": "AI model name (for ai_agent)"},
        "role": {"type": "string", "description": "Human role (for human assignee)"},
        "capabilities": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["type"],
}

_TASK_PROPERTIES = {
    "id": _id("Unique identifier (optional, generated when omitted)"),
    "description": {"type": "string", "description": "Task description"},
    "assignee": _ASSIGNEE,
    "timeout_minutes": {"type": "number", "description": "Task timeout in minutes"},
    "depends_on": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Ids of existing tasks this task waits for",
    },
}

_CONSTRAINT_PROPERTIES = {
    "id": _id("Unique identifier (optional, generated when omitted)"),
    "description": {"type": "string", "description": "Constraint description"},
    "type": {"type": "string", "enum": enum_values(ConstraintType)},
    "enforcement": {"type": "string", "enum": enum_values(EnforcementLevel)},
    "value": {"description": "Constraint value"},
    "condition": {"type": "string", "description": "Constraint condition"},
}

_CONDITION = {
    "type": "object",
    "description": (
        "Either {field, operator, value}, {all_of: [...]}, {any_of: [...]}, "
        "or {condition: '<expression>'}"
    ),
    "properties": {
        "condition": {"type": "string", "description": "Condition expression"},
        "field": {"type": "string", "description": "Field to check"},
        "operator": {"type": "string", "description": "Comparison operator"},
        "value": {"description": "Value to compare against"},
        "all_of": {"type": "array", "items": {"type": "object"}},
        "any_of": {"type": "array", "items": {"type": "object"}},
    },
}

_POLICY_PROPERTIES = {
    "id": _id("Unique identifier (optional, generated when omitted)"),
    "name": {"type": "string", "description": "Policy name"},
    "if": _CONDITION,
    "then": {
        "type": "object",
        "properties": {
            "action": {"type": "string", "description": "Action to take"},
            "params": {"type": "object", "description": "Action parameters"},
        },
        "required": ["action", "params"],
    },
}

_FORM_PROPERTIES = {
    "id": _id("Unique identifier (optional, generated when omitted)"),
    "name": {"type": "string", "description": "Form name"},
    "description": {"type": "string", "description": "Form description"},
    "type": {"type": "string", "enum": enum_values(FormType), "description": "Form type"},
    "schema": {"type": "object", "description": "Form schema (structured forms)"},
    "agent": {"type": "string", "description": "Agent for conversational forms"},
    "template": {"type": "string", "description": "Template for automated forms"},
}

_GOAL_PROPERTIES = {
    "id": _id("Unique identifier for the goal (optional, generated when omitted)"),
    "name": {"type": "string", "description": "Goal name"},
    "description": {"type": "string", "description": "Goal description"},
    "timeout_minutes": {"type": "number", "description": "Optional timeout in minutes"},
    "constraints": {"type": "array", "description": "Array of constraints (optional)"},
    "policies": {"type": "array", "description": "Array of policies (optional)"},
    "tasks": {"type": "array", "description": "Array of tasks (optional)"},
    "forms": {"type": "array", "description": "Array of forms (optional)"},
}


def _without_id(properties: dict) -> dict:
    return {k: v for k, v in properties.items() if k != "id"}


def _params(properties: dict, required: list[str]) -> dict:
    return {"type": "object", "properties": properties, "required": required}


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

def _element_tools(
    element_type: ElementType,
    element_properties: dict,
    element_required: list[str],
) -> list[ToolDefinition]:
    """Add/update/delete definitions for one element kind."""
    noun = element_type.value
    title = noun.capitalize()
    id_param = f"{noun}Id"
    add, update, delete = {
        ElementType.TASK: (ops.add_task, ops.update_task, ops.delete_task),
        ElementType.CONSTRAINT: (ops.add_constraint, ops.update_constraint, ops.delete_constraint),
        ElementType.POLICY: (ops.add_policy, ops.update_policy, ops.delete_policy),
        ElementType.FORM: (ops.add_form, ops.update_form, ops.delete_form),
    }[element_type]
    delete_description = (
        "Delete a task and remove it from every other task's depends_on"
        if element_type is ElementType.TASK
        else f"Delete a {noun}"
    )

    return [
        ToolDefinition(
            name=ToolName(f"add{title}"),
            description=f"Add a {noun} to a specific goal",
            parameters=_params(
                {
                    "goalId": _id(f"ID of the goal to add the {noun} to"),
                    noun: {
                        "type": "object",
                        "properties": element_properties,
                        "required": element_required,
                    },
                },
                ["goalId", noun],
            ),
            handler=lambda document, goalId, **params: add(document, goalId, params[noun]),
        ),
        ToolDefinition(
            name=ToolName(f"update{title}"),
            description=f"Update properties of an existing {noun}. Its id never changes.",
            parameters=_params(
                {
                    id_param: _id(f"ID of the {noun} to update"),
                    "updates": {
                        "type": "object",
                        "properties": _without_id(element_properties),
                    },
                },
                [id_param, "updates"],
            ),
            handler=lambda document, updates, **params: update(
                document, params[id_param], updates
            ),
        ),
        ToolDefinition(
            name=ToolName(f"delete{title}"),
            description=delete_description,
            parameters=_params({id_param: _id(f"ID of the {noun} to delete")}, [id_param]),
            handler=lambda document, **params: delete(document, params[id_param]),
        ),
    ]


def get_all_tools() -> list[ToolDefinition]:
    """Build definitions for all editing tools, in ToolName order."""
    tools = [
        ToolDefinition(
            name=ToolName.ADD_GOAL,
            description=(
                "Add a new goal to the end of the workflow. Child collections "
                "default to empty and ids are generated when omitted."
            ),
            parameters=_params(
                {
                    "goal": {
                        "type": "object",
                        "properties": _GOAL_PROPERTIES,
                        "required": ["name", "description"],
                    }
                },
                ["goal"],
            ),
            handler=lambda document, goal: ops.add_goal(document, goal),
        ),
        ToolDefinition(
            name=ToolName.UPDATE_GOAL,
            description="Update properties of an existing goal. Its id and order never change.",
            parameters=_params(
                {
                    "goalId": _id("ID of the goal to update"),
                    "updates": {"type": "object", "properties": _without_id(_GOAL_PROPERTIES)},
                },
                ["goalId", "updates"],
            ),
            handler=lambda document, goalId, updates: ops.update_goal(document, goalId, updates),
        ),
        ToolDefinition(
            name=ToolName.DELETE_GOAL,
            description="Delete a goal and all its elements; remaining goals are renumbered",
            parameters=_params({"goalId": _id("ID of the goal to delete")}, ["goalId"]),
            handler=lambda document, goalId: ops.delete_goal(document, goalId),
        ),
        ToolDefinition(
            name=ToolName.REORDER_GOALS,
            description="Reorder goals. goalIds must list every existing goal id exactly once.",
            parameters=_params(
                {
                    "goalIds": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Array of goal IDs in new order",
                    }
                },
                ["goalIds"],
            ),
            handler=lambda document, goalIds: ops.reorder_goals(document, goalIds),
        ),
        ToolDefinition(
            name=ToolName.DUPLICATE_GOAL,
            description=(
                "Duplicate an existing goal with fresh ids. The copy is named "
                "newName, or '<name> (Copy)' when newName is omitted."
            ),
            parameters=_params(
                {
                    "goalId": _id("ID of the goal to duplicate"),
                    "newName": {"type": "string", "description": "Name for the duplicated goal"},
                },
                ["goalId"],
            ),
            handler=lambda document, goalId, newName=None: ops.duplicate_goal(
                document, goalId, newName
            ),
        ),
    ]
    tools += _element_tools(ElementType.TASK, _TASK_PROPERTIES, ["description", "assignee"])
    tools += _element_tools(
        ElementType.CONSTRAINT, _CONSTRAINT_PROPERTIES, ["description", "type", "enforcement"]
    )
    tools += _element_tools(ElementType.POLICY, _POLICY_PROPERTIES, ["name", "if", "then"])
    tools += _element_tools(ElementType.FORM, _FORM_PROPERTIES, ["name", "type"])
    tools += [
        ToolDefinition(
            name=ToolName.MOVE_ELEMENT_BETWEEN_GOALS,
            description="Move an element (task, constraint, policy, or form) between goals",
            parameters=_params(
                {
                    "elementType": {
                        "type": "string",
                        "enum": enum_values(ElementType),
                        "description": "Type of element to move",
                    },
                    "elementId": _id("ID of the element to move"),
                    "fromGoalId": _id("ID of the source goal"),
                    "toGoalId": _id("ID of the destination goal"),
                },
                ["elementType", "elementId", "fromGoalId", "toGoalId"],
            ),
            handler=lambda document, elementType, elementId, fromGoalId, toGoalId: (
                ops.move_element_between_goals(
                    document, elementType, elementId, fromGoalId, toGoalId
                )
            ),
        ),
        ToolDefinition(
            name=ToolName.UPDATE_WORKFLOW_METADATA,
            description="Update workflow metadata such as author and tags",
            parameters=_params(
                {
                    "updates": {
                        "type": "object",
                        "properties": {
                            "author": {"type": "string", "description": "Workflow author"},
                            "tags": {
                                "type": "array",
                                "items": {"type": "string"},
                                "description": "Workflow tags",
                            },
                        },
                    }
                },
                ["updates"],
            ),
            handler=lambda document, updates: ops.update_workflow_metadata(document, updates),
        ),
        ToolDefinition(
            name=ToolName.UPDATE_GLOBAL_SETTINGS,
            description="Update global workflow settings",
            parameters=_params(
                {
                    "settings": {
                        "type": "object",
                        "properties": {
                            "max_execution_time_hours": {
                                "type": "number",
                                "description": "Maximum execution time",
                            },
                            "data_retention_days": {
                                "type": "number",
                                "description": "Data retention period",
                            },
                            "default_timezone": {
                                "type": "string",
                                "description": "Default timezone",
                            },
                            "notification_channels": {
                                "type": "object",
                                "description": "Channel lists keyed urgent/normal/reports",
                            },
                            "integrations": {
                                "type": "object",
                                "description": "Integration settings",
                            },
                        },
                    }
                },
                ["settings"],
            ),
            handler=lambda document, settings: ops.update_global_settings(document, settings),
        ),
    ]
    order = list(ToolName)
    return sorted(tools, key=lambda t: order.index(t.name))


TOOL_DEFINITIONS: dict[ToolName, ToolDefinition] = {t.name: t for t in get_all_tools()}

_missing = [name.value for name in ToolName if name not in TOOL_DEFINITIONS]
if _missing:
    raise RuntimeError(f"Tools without a handler: {', '.join(_missing)}")
