"""Schema validation for workflow documents and their entities."""

from flowedit.validation.schema import (
    is_valid_document,
    validate_constraint,
    validate_constraint_strict,
    validate_document,
    validate_document_strict,
    validate_form,
    validate_form_strict,
    validate_goal,
    validate_goal_strict,
    validate_policy,
    validate_policy_strict,
    validate_task,
    validate_task_strict,
)

__all__ = [
    "validate_document",
    "validate_goal",
    "validate_constraint",
    "validate_policy",
    "validate_task",
    "validate_form",
    "validate_document_strict",
    "validate_goal_strict",
    "validate_constraint_strict",
    "validate_policy_strict",
    "validate_task_strict",
    "validate_form_strict",
    "is_valid_document",
]
