"""Pure, validated mutation operations on workflow documents.

Every operation deep-copies its input, applies one change, strictly
validates the touched entity and then the whole document, stamps
``metadata.last_modified``, and returns the new document.
"""

from flowedit.operations._common import generate_id
from flowedit.operations.bulk import duplicate_goal, move_element_between_goals
from flowedit.operations.elements import (
    add_constraint,
    add_form,
    add_policy,
    add_task,
    delete_constraint,
    delete_form,
    delete_policy,
    delete_task,
    update_constraint,
    update_form,
    update_policy,
    update_task,
)
from flowedit.operations.goals import add_goal, delete_goal, reorder_goals, update_goal
from flowedit.operations.settings import (
    default_global_settings,
    update_global_settings,
    update_workflow_metadata,
)

__all__ = [
    "add_goal",
    "update_goal",
    "delete_goal",
    "reorder_goals",
    "duplicate_goal",
    "add_task",
    "update_task",
    "delete_task",
    "add_constraint",
    "update_constraint",
    "delete_constraint",
    "add_policy",
    "update_policy",
    "delete_policy",
    "add_form",
    "update_form",
    "delete_form",
    "move_element_between_goals",
    "update_workflow_metadata",
    "update_global_settings",
    "default_global_settings",
    "generate_id",
]
