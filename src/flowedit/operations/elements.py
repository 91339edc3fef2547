"""Add, update, and delete operations for goal-owned elements.

Tasks, constraints, policies, and forms share one implementation keyed
on ElementType; the public functions are thin wrappers so each element
kind has a named operation with its own parameter names.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable

from flowedit.models.workflow import ElementType
from flowedit.operations._common import (
    assert_dependencies_resolve,
    assert_unique_ids,
    clone,
    collect_ids,
    finalize,
    find_element,
    find_goal,
    generate_id,
    require_mapping,
    strip_dependencies,
)
from flowedit.validation import (
    validate_constraint_strict,
    validate_form_strict,
    validate_policy_strict,
    validate_task_strict,
)

logger = logging.getLogger(__name__)

_STRICT_VALIDATORS: dict[ElementType, Callable[[Any], None]] = {
    ElementType.CONSTRAINT: validate_constraint_strict,
    ElementType.POLICY: validate_policy_strict,
    ElementType.TASK: validate_task_strict,
    ElementType.FORM: validate_form_strict,
}


def _add(document: dict, element_type: ElementType, goal_id: str, element: dict) -> dict:
    new_element = copy.deepcopy(require_mapping(element, element_type.value))
    result = clone(document)
    _, goal = find_goal(result, goal_id)
    collection = element_type.collection

    if not new_element.get("id"):
        taken = set(collect_ids(result, collection))
        new_element["id"] = generate_id(element_type.id_prefix, taken)

    _STRICT_VALIDATORS[element_type](new_element)

    goal[collection] = [*(goal.get(collection) or []), new_element]
    assert_unique_ids(result, (collection,))
    if element_type is ElementType.TASK:
        assert_dependencies_resolve(result, [new_element])

    logger.debug("Added %s %s to goal %s", element_type.value, new_element["id"], goal_id)
    return finalize(result)


def _update(
    document: dict, element_type: ElementType, element_id: str, updates: dict
) -> dict:
    changes = copy.deepcopy(require_mapping(updates, "updates"))
    result = clone(document)
    goal_index, element_index, existing = find_element(result, element_type, element_id)

    merged = {**existing, **changes, "id": existing["id"]}
    _STRICT_VALIDATORS[element_type](merged)

    result["goals"][goal_index][element_type.collection][element_index] = merged
    if element_type is ElementType.TASK:
        assert_dependencies_resolve(result, [merged])

    return finalize(result)


def _delete(document: dict, element_type: ElementType, element_id: str) -> dict:
    result = clone(document)
    goal_index, element_index, _ = find_element(result, element_type, element_id)
    del result["goals"][goal_index][element_type.collection][element_index]

    if element_type is ElementType.TASK:
        stripped = strip_dependencies(result, {element_id})
        if stripped:
            logger.debug("Removed %d dependencies on task %s", stripped, element_id)

    return finalize(result)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def add_task(document: dict, goal_id: str, task: dict) -> dict:
    """Append a task to a goal, generating an id when none is given.

    Raises:
        NotFoundError: If the goal does not exist.
        DocumentValidationError: If the task or document is invalid.
        InvariantError: If the id is taken or ``depends_on`` dangles.
    """
    return _add(document, ElementType.TASK, goal_id, task)


def update_task(document: dict, task_id: str, updates: dict) -> dict:
    """Shallow-merge ``updates`` into a task found in any goal. The id never changes."""
    return _update(document, ElementType.TASK, task_id, updates)


def delete_task(document: dict, task_id: str) -> dict:
    """Remove a task and every ``depends_on`` reference to it."""
    return _delete(document, ElementType.TASK, task_id)


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------


def add_constraint(document: dict, goal_id: str, constraint: dict) -> dict:
    return _add(document, ElementType.CONSTRAINT, goal_id, constraint)


def update_constraint(document: dict, constraint_id: str, updates: dict) -> dict:
    return _update(document, ElementType.CONSTRAINT, constraint_id, updates)


def delete_constraint(document: dict, constraint_id: str) -> dict:
    return _delete(document, ElementType.CONSTRAINT, constraint_id)


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


def add_policy(document: dict, goal_id: str, policy: dict) -> dict:
    return _add(document, ElementType.POLICY, goal_id, policy)


def update_policy(document: dict, policy_id: str, updates: dict) -> dict:
    return _update(document, ElementType.POLICY, policy_id, updates)


def delete_policy(document: dict, policy_id: str) -> dict:
    return _delete(document, ElementType.POLICY, policy_id)


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


def add_form(document: dict, goal_id: str, form: dict) -> dict:
    return _add(document, ElementType.FORM, goal_id, form)


def update_form(document: dict, form_id: str, updates: dict) -> dict:
    return _update(document, ElementType.FORM, form_id, updates)


def delete_form(document: dict, form_id: str) -> dict:
    return _delete(document, ElementType.FORM, form_id)
