"""Operations that touch more than one goal at a time."""

from __future__ import annotations

import copy
import logging

from flowedit.exceptions import InvariantError, NotFoundError
from flowedit.models.workflow import GOAL_ID_PREFIX, ElementType
from flowedit.operations._common import (
    clone,
    collect_ids,
    finalize,
    find_goal,
    generate_id,
    max_goal_order,
)
from flowedit.validation import validate_goal_strict

logger = logging.getLogger(__name__)


def duplicate_goal(document: dict, goal_id: str, new_name: str | None = None) -> dict:
    """Append a deep copy of a goal with fresh ids throughout.

    The copy is named ``new_name`` or ``"<name> (Copy)"``, gets the next
    order, and every copied task has its ``depends_on`` cleared so the
    copy never points back into the original goal.

    Raises:
        NotFoundError: If ``goal_id`` does not exist.
    """
    result = clone(document)
    _, source = find_goal(result, goal_id)
    copied = copy.deepcopy(source)

    copied["id"] = generate_id(GOAL_ID_PREFIX, set(collect_ids(result, "goals")))
    copied["name"] = new_name or f"{source.get('name')} (Copy)"
    copied["order"] = max_goal_order(result) + 1
    for element_type in ElementType:
        collection = element_type.collection
        taken = set(collect_ids(result, collection))
        children = copied.get(collection) or []
        for child in children:
            child["id"] = generate_id(element_type.id_prefix, taken)
            taken.add(child["id"])
            if element_type is ElementType.TASK:
                child["depends_on"] = []
        copied[collection] = children

    validate_goal_strict(copied)
    result["goals"].append(copied)

    logger.debug("Duplicated goal %s as %s", goal_id, copied["id"])
    return finalize(result)


def move_element_between_goals(
    document: dict,
    element_type: ElementType | str,
    element_id: str,
    from_goal_id: str,
    to_goal_id: str,
) -> dict:
    """Move an element from one goal to the end of another, unchanged.

    Raises:
        InvariantError: If ``element_type`` is not a known element kind.
        NotFoundError: If either goal is missing, or the element is not in
            the source goal.
    """
    try:
        kind = ElementType(element_type)
    except ValueError:
        valid = ", ".join(t.value for t in ElementType)
        raise InvariantError(
            f'Unknown element type "{element_type}". Must be one of: {valid}'
        ) from None

    result = clone(document)
    _, source = find_goal(result, from_goal_id)
    _, destination = find_goal(result, to_goal_id)
    collection = kind.collection

    elements = source.get(collection) or []
    for index, element in enumerate(elements):
        if element.get("id") == element_id:
            break
    else:
        raise NotFoundError(kind.value, element_id, scope=f'goal "{from_goal_id}"')

    moved = elements.pop(index)
    source[collection] = elements
    # Same goal: destination is the same dict, so this re-appends at the end.
    destination.setdefault(collection, []).append(moved)

    logger.debug(
        "Moved %s %s from goal %s to goal %s",
        kind.value, element_id, from_goal_id, to_goal_id,
    )
    return finalize(result)

