"""Shared helpers for workflow mutation operations.

Lookup, id generation, invariant guards, and the finalize step every
operation ends with. Nothing here mutates a document the caller still
holds: operations clone first and only ever pass the clone in.
"""

from __future__ import annotations

import copy
import secrets
import string
import time
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Iterable

from flowedit.exceptions import InvariantError, NotFoundError
from flowedit.models.workflow import ElementType
from flowedit.validation import validate_document_strict

_ID_ALPHABET = string.ascii_lowercase + string.digits

GOAL_COLLECTIONS: tuple[str, ...] = tuple(t.collection for t in ElementType)


def generate_id(prefix: str, taken: set[str] | None = None) -> str:
    """Generate ``{prefix}_{epoch_ms}_{random9}``.

    Uniqueness comes from the random suffix, not the timestamp. When
    ``taken`` is given, the id is regenerated until it is not in it.
    """
    while True:
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
        candidate = f"{prefix}_{int(time.time() * 1000)}_{suffix}"
        if taken is None or candidate not in taken:
            return candidate


def now_iso() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def clone(document: dict) -> dict:
    """Deep copy a document so the result shares no mutable state."""
    return copy.deepcopy(document)


def require_mapping(value: Any, name: str) -> dict:
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be a dict, got {type(value).__name__}")
    return value


def goal_ids(document: dict) -> list[str]:
    return [g.get("id") for g in document.get("goals") or []]


def find_goal(document: dict, goal_id: str) -> tuple[int, dict]:
    """Return ``(index, goal)`` for a goal id.

    Raises:
        NotFoundError: Listing the goal ids that do exist.
    """
    for index, goal in enumerate(document.get("goals") or []):
        if goal.get("id") == goal_id:
            return index, goal
    raise NotFoundError("goal", goal_id, valid_ids=goal_ids(document))


def find_element(
    document: dict, element_type: ElementType, element_id: str
) -> tuple[int, int, dict]:
    """Scan every goal for an element.

    Returns:
        ``(goal_index, element_index, element)``.

    Raises:
        NotFoundError: If no goal holds an element with that id.
    """
    collection = element_type.collection
    for goal_index, goal in enumerate(document.get("goals") or []):
        for element_index, element in enumerate(goal.get(collection) or []):
            if element.get("id") == element_id:
                return goal_index, element_index, element
    raise NotFoundError(element_type.value, element_id, scope="any goal")


def collect_ids(document: dict, collection: str) -> list[str]:
    """All ids in one collection type across the document.

    ``collection`` is ``"goals"`` or a goal child collection name.
    """
    goals = document.get("goals") or []
    if collection == "goals":
        return [g.get("id") for g in goals]
    return [
        element.get("id")
        for goal in goals
        for element in goal.get(collection) or []
    ]


def fill_missing_child_ids(goal: dict, document: dict) -> None:
    """Assign generated ids to goal children created without one."""
    for element_type in ElementType:
        children = goal.get(element_type.collection)
        if not isinstance(children, list):
            continue
        taken = set(collect_ids(document, element_type.collection))
        for child in children:
            if isinstance(child, dict) and not child.get("id"):
                child["id"] = generate_id(element_type.id_prefix, taken)
                taken.add(child["id"])


def assert_unique_ids(document: dict, collections: Iterable[str]) -> None:
    """Raise InvariantError if any id repeats within a collection type."""
    for collection in collections:
        counts = Counter(collect_ids(document, collection))
        duplicates = sorted(i for i, n in counts.items() if n > 1 and i is not None)
        if duplicates:
            kind = collection[:-1] if collection != "policies" else "policy"
            raise InvariantError(
                f"Duplicate {kind} id(s) {', '.join(duplicates)}: "
                f"{kind} ids must be unique across the workflow"
            )


def assert_dependencies_resolve(document: dict, tasks: Iterable[Any]) -> None:
    """Raise InvariantError if a task depends on itself or a missing task."""
    known = set(collect_ids(document, "tasks"))
    for task in tasks:
        if not isinstance(task, dict):
            continue
        depends_on = task.get("depends_on")
        if not isinstance(depends_on, list):
            continue
        for dependency in depends_on:
            if dependency == task.get("id"):
                raise InvariantError(f'Task "{dependency}" cannot depend on itself')
            if dependency not in known:
                raise InvariantError(
                    f'Task "{task.get("id")}" depends on unknown task "{dependency}"'
                )


def strip_dependencies(document: dict, removed_task_ids: set[str]) -> int:
    """Remove ids from every task's ``depends_on`` list.

    Returns:
        Number of dependency references removed.
    """
    if not removed_task_ids:
        return 0
    removed = 0
    for goal in document.get("goals") or []:
        for task in goal.get("tasks") or []:
            depends_on = task.get("depends_on")
            if isinstance(depends_on, list):
                kept = [d for d in depends_on if d not in removed_task_ids]
                removed += len(depends_on) - len(kept)
                task["depends_on"] = kept
    return removed


def max_goal_order(document: dict) -> int:
    orders = [
        g.get("order")
        for g in document.get("goals") or []
        if isinstance(g.get("order"), (int, float)) and not isinstance(g.get("order"), bool)
    ]
    return int(max(orders, default=0))


def renumber_goals(document: dict) -> None:
    """Assign a dense 1..N order in current list order."""
    for position, goal in enumerate(document.get("goals") or [], start=1):
        goal["order"] = position


def finalize(document: dict) -> dict:
    """Stamp ``metadata.last_modified`` and strictly validate the whole document.

    Raises:
        DocumentValidationError: If the document fails strict validation.
    """
    metadata = document.get("metadata")
    if isinstance(metadata, dict):
        metadata["last_modified"] = now_iso()
    validate_document_strict(document)
    return document
