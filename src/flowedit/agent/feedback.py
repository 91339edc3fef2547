"""Retry feedback for the editing loop.

Validation failures get a targeted hint chosen from structured issue
codes; the message patterns below are only consulted when a failure
carries no structured issues. Every other failure gets the generic
correction prompt.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from flowedit.agent.models import AttemptFailure, FailureKind
from flowedit.models.validation import IssueCode, ValidationIssue
from flowedit.models.workflow import ConstraintType, EnforcementLevel, FormType, enum_values
from flowedit.prompts.editing import (
    VALIDATION_FALLBACK_PROMPT,
    VALIDATION_GUIDANCE_PROMPT,
    build_error_correction_prompt,
)

ASSIGNEE_HINT = (
    "Task assignee must have 'type' field set to either 'ai_agent' or 'human'. "
    "AI agents should specify 'model', humans should specify 'role'."
)
NAME_HINT = (
    "All required fields must be present. Goals need name and description. "
    "Tasks need description and assignee. Check the schema for required fields."
)
ID_HINT = (
    "Ensure all elements have unique 'id' fields and every required field is "
    "present. Use descriptive naming like 'goal_user_registration' or "
    "'task_email_validation'."
)
ENFORCEMENT_HINT = (
    "Constraint enforcement must be one of: "
    + ", ".join(enum_values(EnforcementLevel))
    + "."
)
ENUM_HINT = (
    "Check that constraint types are one of: "
    + ", ".join(enum_values(ConstraintType))
    + ". Form types must be one of: "
    + ", ".join(enum_values(FormType))
    + "."
)


@dataclass(frozen=True)
class _Guidance:
    matches: Callable[[ValidationIssue], bool]
    hint: str


# First match wins.
GUIDANCE_TABLE: tuple[_Guidance, ...] = (
    _Guidance(lambda i: "assignee" in i.path, ASSIGNEE_HINT),
    _Guidance(
        lambda i: i.code is IssueCode.MISSING_REQUIRED_FIELD and i.field == "name",
        NAME_HINT,
    ),
    _Guidance(lambda i: i.code is IssueCode.MISSING_REQUIRED_FIELD, ID_HINT),
    _Guidance(
        lambda i: i.code is IssueCode.INVALID_ENUM_VALUE and i.field == "enforcement",
        ENFORCEMENT_HINT,
    ),
    _Guidance(lambda i: i.code is IssueCode.INVALID_ENUM_VALUE, ENUM_HINT),
)

# Fallback for failures that arrive as text only.
MESSAGE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"name.*required|required.*name|Required field 'name'", re.I), NAME_HINT),
    (re.compile(r"id.*required|required.*id|field.*missing", re.I), ID_HINT),
    (re.compile(r"invalid.*assignee|assignee.*invalid", re.I), ASSIGNEE_HINT),
    (re.compile(r"invalid.*enforcement", re.I), ENFORCEMENT_HINT),
    (re.compile(r"invalid.*type", re.I), ENUM_HINT),
)


def select_hint(issues: list[ValidationIssue], error: str) -> str | None:
    """Pick the guidance hint for a validation failure, or None."""
    for entry in GUIDANCE_TABLE:
        if any(entry.matches(issue) for issue in issues):
            return entry.hint
    if not issues:
        for pattern, hint in MESSAGE_PATTERNS:
            if pattern.search(error):
                return hint
    return None


def validation_guidance(error: str, issues: list[ValidationIssue]) -> str:
    hint = select_hint(issues, error)
    if hint is None:
        return VALIDATION_FALLBACK_PROMPT.format(error=error)
    return VALIDATION_GUIDANCE_PROMPT.format(guidance=hint, error=error)


def build_feedback(failure: AttemptFailure, attempt: int, max_attempts: int) -> str:
    """Feedback appended to the next attempt's user context.

    Args:
        failure: The failure of the attempt that just ran.
        attempt: 1-based number of that attempt.
        max_attempts: Total attempts allowed.
    """
    if failure.kind is FailureKind.VALIDATION_FAILED:
        return validation_guidance(failure.error, failure.validation_errors)
    return build_error_correction_prompt(failure.error, attempt, max_attempts)
