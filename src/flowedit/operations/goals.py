"""Goal-level operations: add, update, delete, reorder.

Each function takes a document and returns a new one. The input is never
modified; on any error nothing is returned.
"""

from __future__ import annotations

import copy
import logging

from flowedit.exceptions import InvariantError
from flowedit.models.workflow import GOAL_ID_PREFIX
from flowedit.operations._common import (
    GOAL_COLLECTIONS,
    assert_dependencies_resolve,
    assert_unique_ids,
    clone,
    collect_ids,
    fill_missing_child_ids,
    finalize,
    find_goal,
    generate_id,
    goal_ids,
    max_goal_order,
    renumber_goals,
    require_mapping,
    strip_dependencies,
)
from flowedit.validation import validate_goal_strict

logger = logging.getLogger(__name__)


def add_goal(document: dict, goal: dict) -> dict:
    """Append a goal with ``order`` one past the current maximum.

    A missing id is generated, missing or null child collections become empty
    lists, and children without ids get fresh ones.

    Raises:
        DocumentValidationError: If the goal or resulting document is invalid.
        InvariantError: If an explicit id collides or a dependency dangles.
    """
    new_goal = copy.deepcopy(require_mapping(goal, "goal"))
    result = clone(document)

    if not new_goal.get("id"):
        new_goal["id"] = generate_id(GOAL_ID_PREFIX, set(goal_ids(result)))
    new_goal["order"] = max_goal_order(result) + 1
    for collection in GOAL_COLLECTIONS:
        if new_goal.get(collection) is None:
            new_goal[collection] = []
    fill_missing_child_ids(new_goal, result)

    validate_goal_strict(new_goal)

    result.setdefault("goals", []).append(new_goal)
    assert_unique_ids(result, ("goals", *GOAL_COLLECTIONS))
    assert_dependencies_resolve(result, new_goal["tasks"])

    logger.debug("Added goal %s at order %d", new_goal["id"], new_goal["order"])
    return finalize(result)


def update_goal(document: dict, goal_id: str, updates: dict) -> dict:
    """Shallow-merge ``updates`` into a goal.

    ``id`` and ``order`` always keep their stored values. A child
    collection set to ``None`` is left as it was. Replacing ``tasks``
    strips dependencies on tasks that are no longer present.

    Raises:
        NotFoundError: If ``goal_id`` does not exist.
        DocumentValidationError: If the merged goal or document is invalid.
        InvariantError: If the update introduces duplicate ids or dangling
            dependencies.
    """
    changes = copy.deepcopy(require_mapping(updates, "updates"))
    result = clone(document)
    index, existing = find_goal(result, goal_id)

    old_task_ids = {t.get("id") for t in existing.get("tasks") or []}
    merged = {**existing, **changes}
    merged["id"] = existing["id"]
    if "order" in existing:
        merged["order"] = existing["order"]
    else:
        merged.pop("order", None)
    for collection in GOAL_COLLECTIONS:
        if collection in changes and changes[collection] is None:
            if collection in existing:
                merged[collection] = existing[collection]
            else:
                merged.pop(collection)
    fill_missing_child_ids(merged, result)

    validate_goal_strict(merged)

    result["goals"][index] = merged
    touched = [c for c in GOAL_COLLECTIONS if c in changes]
    assert_unique_ids(result, touched)
    if "tasks" in touched:
        removed = old_task_ids - {t.get("id") for t in merged.get("tasks") or []}
        stripped = strip_dependencies(result, removed)
        if stripped:
            logger.debug("Stripped %d dependencies on removed tasks", stripped)
        assert_dependencies_resolve(result, merged.get("tasks") or [])

    return finalize(result)


def delete_goal(document: dict, goal_id: str) -> dict:
    """Remove a goal and renumber the rest densely from 1.

    Dependencies on the deleted goal's tasks are stripped from tasks in
    the remaining goals.

    Raises:
        NotFoundError: If ``goal_id`` does not exist.
    """
    result = clone(document)
    index, goal = find_goal(result, goal_id)
    del result["goals"][index]

    removed = {t.get("id") for t in goal.get("tasks") or []}
    strip_dependencies(result, removed)
    renumber_goals(result)

    logger.debug("Deleted goal %s (%d goals remain)", goal_id, len(result["goals"]))
    return finalize(result)


def reorder_goals(document: dict, goal_ids_in_order: list[str]) -> dict:
    """Reorder goals to match a permutation of the existing goal ids.

    Orders are reassigned 1..N in the given sequence.

    Raises:
        InvariantError: If the list has duplicates, or is not exactly the
            set of existing goal ids. Unknown ids are reported here too,
            not as NotFoundError.
    """
    if not isinstance(goal_ids_in_order, list) or not all(
        isinstance(g, str) for g in goal_ids_in_order
    ):
        raise TypeError("goal_ids must be a list of strings")
    result = clone(document)
    current = collect_ids(result, "goals")

    if len(set(goal_ids_in_order)) != len(goal_ids_in_order):
        raise InvariantError("Goal ids must not contain duplicates")
    if set(goal_ids_in_order) != set(current) or len(goal_ids_in_order) != len(current):
        missing = [g for g in current if g not in goal_ids_in_order]
        unknown = [g for g in goal_ids_in_order if g not in current]
        detail = []
        if missing:
            detail.append(f"missing: {', '.join(missing)}")
        if unknown:
            detail.append(f"unknown: {', '.join(map(str, unknown))}")
        raise InvariantError(
            "Goal ids must be a permutation of the existing goal ids"
            + (f" ({'; '.join(detail)})" if detail else "")
        )

    by_id = {g["id"]: g for g in result["goals"]}
    result["goals"] = [by_id[goal_id] for goal_id in goal_ids_in_order]
    renumber_goals(result)
    return finalize(result)
