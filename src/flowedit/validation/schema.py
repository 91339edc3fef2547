"""Runtime schema validation for workflow documents.

Recursive descent over plain JSON-shaped values. Structural problems
(missing fields, wrong JSON types, values outside a closed set) are
errors; sanity and recommendation checks are warnings. The strict
variants raise DocumentValidationError on any error and never on
warnings.

Error messages are fed back to the model verbatim on retries, so each
one names the field and, for closed sets, lists every allowed value.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Callable

from flowedit.exceptions import DocumentValidationError
from flowedit.models.validation import IssueCode, ValidationIssue, ValidationResult
from flowedit.models.workflow import (
    DOCUMENT_VERSION,
    AssigneeType,
    ConstraintType,
    EnforcementLevel,
    FormType,
    TriggerType,
    enum_values,
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

# Condition nesting deeper than this is reported instead of recursed into.
_MAX_CONDITION_DEPTH = 32


class _Issues:
    """Accumulates errors and warnings during one validation pass."""

    def __init__(self) -> None:
        self.errors: list[ValidationIssue] = []
        self.warnings: list[ValidationIssue] = []

    def error(self, path: str, message: str, code: IssueCode) -> None:
        self.errors.append(ValidationIssue(path=path, message=message, code=code))

    def warn(self, path: str, message: str, code: IssueCode) -> None:
        self.warnings.append(ValidationIssue(path=path, message=message, code=code))

    def result(self) -> ValidationResult:
        return ValidationResult(
            is_valid=not self.errors,
            errors=self.errors,
            warnings=self.warnings,
        )


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _json_type(value: Any) -> str:
    """Name a Python value by its JSON type."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _require(
    obj: dict, field: str, expected: str, path: str, out: _Issues
) -> bool:
    """Check a required field's presence and JSON type.

    Returns True when the field is present with the expected type.
    """
    if obj.get(field) is None:
        out.error(
            f"{path}.{field}",
            f"Required field '{field}' is missing",
            IssueCode.MISSING_REQUIRED_FIELD,
        )
        return False
    actual = _json_type(obj[field])
    if actual != expected:
        out.error(
            f"{path}.{field}",
            f"Field '{field}' must be of type {expected}, got {actual}",
            IssueCode.INVALID_TYPE,
        )
        return False
    return True


def _optional(
    obj: dict, field: str, expected: str, path: str, out: _Issues
) -> bool:
    """Check an optional field's JSON type if it is set.

    Returns True when the field is present with the expected type.
    """
    if obj.get(field) is None:
        return False
    actual = _json_type(obj[field])
    if actual != expected:
        out.error(
            f"{path}.{field}",
            f"Field '{field}' must be of type {expected}, got {actual}",
            IssueCode.INVALID_TYPE,
        )
        return False
    return True


def _check_enum(
    obj: dict,
    field: str,
    allowed: type[enum.Enum],
    label: str,
    path: str,
    out: _Issues,
) -> None:
    value = obj.get(field)
    values = enum_values(allowed)
    if isinstance(value, str) and value not in values:
        out.error(
            f"{path}.{field}",
            f"Invalid {label}. Must be one of: {', '.join(values)}",
            IssueCode.INVALID_ENUM_VALUE,
        )


def _is_iso_datetime(text: str) -> bool:
    if "T" not in text:
        return False
    candidate = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        datetime.fromisoformat(candidate)
    except ValueError:
        return False
    return True


def _not_object(value: Any, path: str, label: str, out: _Issues) -> bool:
    if isinstance(value, dict):
        return False
    out.error(path, f"{label} must be an object", IssueCode.INVALID_TYPE)
    return True


# ---------------------------------------------------------------------------
# Recursive descent
# ---------------------------------------------------------------------------


def _validate_document(document: Any, out: _Issues) -> None:
    if _not_object(document, "root", "Workflow", out):
        return

    for field in ("id", "name", "version", "objective"):
        _require(document, field, "string", "root", out)
    has_goals = _require(document, "goals", "array", "root", out)

    if document.get("version") != DOCUMENT_VERSION:
        out.warn(
            "version",
            f"Expected version '{DOCUMENT_VERSION}' for V2 workflow",
            IssueCode.VERSION_MISMATCH,
        )

    if document.get("metadata") is not None:
        _validate_metadata(document["metadata"], "metadata", out)
    if document.get("global_settings") is not None:
        _validate_global_settings(document["global_settings"], "global_settings", out)
    if document.get("triggers") is not None:
        _validate_triggers(document["triggers"], "triggers", out)

    if has_goals:
        for index, goal in enumerate(document["goals"]):
            _validate_goal(goal, f"goals[{index}]", out)


def _validate_metadata(metadata: Any, path: str, out: _Issues) -> None:
    if _not_object(metadata, path, "Metadata", out):
        return

    _require(metadata, "author", "string", path, out)
    _require(metadata, "created_at", "string", path, out)
    _require(metadata, "last_modified", "string", path, out)
    _require(metadata, "tags", "array", path, out)

    labels = {"created_at": "Created date", "last_modified": "Last modified date"}
    for field, label in labels.items():
        value = metadata.get(field)
        if isinstance(value, str) and not _is_iso_datetime(value):
            out.warn(
                f"{path}.{field}",
                f"{label} should be in ISO format",
                IssueCode.INVALID_DATE_FORMAT,
            )


def _validate_global_settings(settings: Any, path: str, out: _Issues) -> None:
    if _not_object(settings, path, "Global settings", out):
        return

    if _optional(settings, "max_execution_time_hours", "number", path, out):
        if settings["max_execution_time_hours"] <= 0:
            out.warn(
                f"{path}.max_execution_time_hours",
                "Execution time should be positive",
                IssueCode.INVALID_VALUE,
            )
    _optional(settings, "data_retention_days", "number", path, out)
    _optional(settings, "default_timezone", "string", path, out)
    _optional(settings, "notification_channels", "object", path, out)
    _optional(settings, "integrations", "object", path, out)


def _validate_triggers(triggers: Any, path: str, out: _Issues) -> None:
    if not isinstance(triggers, list):
        out.error(path, "Triggers must be an array", IssueCode.INVALID_TYPE)
        return

    for index, trigger in enumerate(triggers):
        trigger_path = f"{path}[{index}]"
        if _not_object(trigger, trigger_path, "Trigger", out):
            continue
        _require(trigger, "type", "string", trigger_path, out)
        _check_enum(trigger, "type", TriggerType, "trigger type", trigger_path, out)


def _validate_goal(goal: Any, path: str, out: _Issues) -> None:
    if _not_object(goal, path, "Goal", out):
        return

    _require(goal, "id", "string", path, out)
    _require(goal, "name", "string", path, out)
    _require(goal, "description", "string", path, out)
    if _require(goal, "order", "number", path, out) and goal["order"] < 1:
        out.warn(
            f"{path}.order",
            "Goal order should be 1 or greater",
            IssueCode.INVALID_VALUE,
        )

    for collection, validate_child in _GOAL_CHILDREN:
        if _require(goal, collection, "array", path, out):
            for index, child in enumerate(goal[collection]):
                validate_child(child, f"{path}.{collection}[{index}]", out)


def _validate_constraint(constraint: Any, path: str, out: _Issues) -> None:
    if _not_object(constraint, path, "Constraint", out):
        return

    _require(constraint, "id", "string", path, out)
    _require(constraint, "description", "string", path, out)
    _require(constraint, "type", "string", path, out)
    _require(constraint, "enforcement", "string", path, out)

    _check_enum(constraint, "type", ConstraintType, "constraint type", path, out)
    _check_enum(
        constraint, "enforcement", EnforcementLevel, "enforcement level", path, out
    )


def _validate_policy(policy: Any, path: str, out: _Issues) -> None:
    if _not_object(policy, path, "Policy", out):
        return

    _require(policy, "id", "string", path, out)
    _require(policy, "name", "string", path, out)
    if _require(policy, "if", "object", path, out):
        _validate_condition(policy["if"], f"{path}.if", out, depth=0)
    if _require(policy, "then", "object", path, out):
        then_path = f"{path}.then"
        _require(policy["then"], "action", "string", then_path, out)
        _require(policy["then"], "params", "object", then_path, out)


def _validate_condition(condition: Any, path: str, out: _Issues, *, depth: int) -> None:
    """Validate the Condition tagged union.

    simple ``{field, operator, value}``, compound ``{all_of: [...]}`` /
    ``{any_of: [...]}``, or free-form ``{condition: "..."}``.
    """
    if _not_object(condition, path, "Condition", out):
        return
    if depth >= _MAX_CONDITION_DEPTH:
        out.error(
            path,
            f"Condition nesting exceeds {_MAX_CONDITION_DEPTH} levels",
            IssueCode.INVALID_VALUE,
        )
        return

    compound = [key for key in ("all_of", "any_of") if key in condition]
    if compound:
        for key in compound:
            if _require(condition, key, "array", path, out):
                for index, member in enumerate(condition[key]):
                    _validate_condition(
                        member, f"{path}.{key}[{index}]", out, depth=depth + 1
                    )
    elif "field" in condition:
        _require(condition, "field", "string", path, out)
        _require(condition, "operator", "string", path, out)
    elif "condition" in condition:
        _require(condition, "condition", "string", path, out)
    else:
        out.warn(
            path,
            "Condition should define field/operator/value, all_of, any_of, or condition",
            IssueCode.UNRECOGNIZED_CONDITION,
        )


def _validate_task(task: Any, path: str, out: _Issues) -> None:
    if _not_object(task, path, "Task", out):
        return

    _require(task, "id", "string", path, out)
    _require(task, "description", "string", path, out)

    if _require(task, "assignee", "object", path, out):
        assignee = task["assignee"]
        assignee_path = f"{path}.assignee"
        _require(assignee, "type", "string", assignee_path, out)
        _check_enum(assignee, "type", AssigneeType, "assignee type", assignee_path, out)
        if assignee.get("type") == AssigneeType.AI_AGENT.value:
            capabilities = assignee.get("capabilities")
            if not assignee.get("model") and not isinstance(capabilities, list):
                out.warn(
                    assignee_path,
                    "AI agents should have a model or capabilities defined",
                    IssueCode.MISSING_RECOMMENDED_FIELD,
                )

    if _optional(task, "depends_on", "array", path, out):
        for index, dependency in enumerate(task["depends_on"]):
            if not isinstance(dependency, str):
                out.error(
                    f"{path}.depends_on[{index}]",
                    f"Dependency ids must be of type string, got {_json_type(dependency)}",
                    IssueCode.INVALID_TYPE,
                )

    if _optional(task, "timeout_minutes", "number", path, out):
        if task["timeout_minutes"] <= 0:
            out.warn(
                f"{path}.timeout_minutes",
                "Timeout should be positive",
                IssueCode.INVALID_VALUE,
            )


def _validate_form(form: Any, path: str, out: _Issues) -> None:
    if _not_object(form, path, "Form", out):
        return

    _require(form, "id", "string", path, out)
    _require(form, "name", "string", path, out)
    _require(form, "type", "string", path, out)
    _check_enum(form, "type", FormType, "form type", path, out)

    form_type = form.get("type")
    if form_type == FormType.STRUCTURED.value:
        if not (form.get("schema") or form.get("fields") or form.get("sections")):
            out.warn(
                path,
                "Structured forms should have schema, fields, or sections defined",
                IssueCode.MISSING_RECOMMENDED_FIELD,
            )
    elif form_type == FormType.CONVERSATIONAL.value:
        if not form.get("initial_prompt"):
            out.warn(
                path,
                "Conversational forms should have an initial_prompt",
                IssueCode.MISSING_RECOMMENDED_FIELD,
            )
    elif form_type == FormType.AUTOMATED.value:
        if not (form.get("data_sources") or form.get("generation")):
            out.warn(
                path,
                "Automated forms should have data_sources or generation config",
                IssueCode.MISSING_RECOMMENDED_FIELD,
            )


_GOAL_CHILDREN = (
    ("constraints", _validate_constraint),
    ("policies", _validate_policy),
    ("tasks", _validate_task),
    ("forms", _validate_form),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _run(validate: Callable[[Any, str, _Issues], None], value: Any, path: str) -> ValidationResult:
    out = _Issues()
    validate(value, path, out)
    return out.result()


def validate_document(document: Any) -> ValidationResult:
    """Validate a complete workflow document."""
    out = _Issues()
    _validate_document(document, out)
    return out.result()


def validate_goal(goal: Any, path: str = "goal") -> ValidationResult:
    """Validate a single goal, including its nested elements."""
    return _run(_validate_goal, goal, path)


def validate_constraint(constraint: Any, path: str = "constraint") -> ValidationResult:
    return _run(_validate_constraint, constraint, path)


def validate_policy(policy: Any, path: str = "policy") -> ValidationResult:
    return _run(_validate_policy, policy, path)


def validate_task(task: Any, path: str = "task") -> ValidationResult:
    return _run(_validate_task, task, path)


def validate_form(form: Any, path: str = "form") -> ValidationResult:
    return _run(_validate_form, form, path)


def is_valid_document(document: Any) -> bool:
    """Quick boolean check for runtime guards."""
    return validate_document(document).is_valid


def _raise_on_errors(kind: str, result: ValidationResult) -> None:
    if result.errors:
        raise DocumentValidationError(kind, result.errors)


def validate_document_strict(document: Any) -> None:
    """Raise DocumentValidationError if the document has any error.

    The message has the form
    ``"Workflow validation failed: path: msg; path: msg"``.
    """
    _raise_on_errors("Workflow", validate_document(document))


def validate_goal_strict(goal: Any) -> None:
    _raise_on_errors("Goal", validate_goal(goal))


def validate_constraint_strict(constraint: Any) -> None:
    _raise_on_errors("Constraint", validate_constraint(constraint))


def validate_policy_strict(policy: Any) -> None:
    _raise_on_errors("Policy", validate_policy(policy))


def validate_task_strict(task: Any) -> None:
    _raise_on_errors("Task", validate_task(task))


def validate_form_strict(form: Any) -> None:
    _raise_on_errors("Form", validate_form(form))
