"""Closed value sets for workflow documents.

Documents themselves are plain JSON-shaped dicts; these enums name the
fields whose values come from a fixed set, in the order they are listed
back to the model in validation messages.
"""

from __future__ import annotations

import enum


class ConstraintType(str, enum.Enum):
    """Allowed values for ``constraint.type``."""

    TIME_LIMIT = "time_limit"
    DATA_VALIDATION = "data_validation"
    BUSINESS_RULE = "business_rule"
    RATE_LIMIT = "rate_limit"
    ACCESS_CONTROL = "access_control"
    TIMING = "timing"
    CHANGE_MANAGEMENT = "change_management"
    DATA_PROTECTION = "data_protection"
    PRIVACY = "privacy"
    CONTENT_VALIDATION = "content_validation"


class EnforcementLevel(str, enum.Enum):
    """Allowed values for ``constraint.enforcement``."""

    HARD_STOP = "hard_stop"
    BLOCK_PROGRESSION = "block_progression"
    REQUIRE_APPROVAL = "require_approval"
    WARN = "warn"
    SKIP_WORKFLOW = "skip_workflow"
    DELAY_UNTIL_ALLOWED = "delay_until_allowed"
    FILTER_RECIPIENTS = "filter_recipients"
    CONTENT_REVIEW = "content_review"
    BLOCK_UNTIL_MET = "block_until_met"
    BLOCK_DUPLICATE = "block_duplicate"


class FormType(str, enum.Enum):
    """Allowed values for ``form.type``."""

    STRUCTURED = "structured"
    CONVERSATIONAL = "conversational"
    AUTOMATED = "automated"


class AssigneeType(str, enum.Enum):
    """Allowed values for ``task.assignee.type``."""

    AI_AGENT = "ai_agent"
    HUMAN = "human"


class TriggerType(str, enum.Enum):
    """Allowed values for ``trigger.type``."""

    WEBHOOK = "webhook"
    SCHEDULE = "schedule"
    MANUAL = "manual"
    EVENT = "event"


class ElementType(str, enum.Enum):
    """Goal-owned element kinds, keyed by the collection that holds them."""

    CONSTRAINT = "constraint"
    POLICY = "policy"
    TASK = "task"
    FORM = "form"

    @property
    def collection(self) -> str:
        """Name of the goal field holding elements of this kind."""
        return _COLLECTIONS[self]

    @property
    def id_prefix(self) -> str:
        """Prefix used when generating ids for this kind."""
        return _ID_PREFIXES[self]


_COLLECTIONS: dict[ElementType, str] = {
    ElementType.CONSTRAINT: "constraints",
    ElementType.POLICY: "policies",
    ElementType.TASK: "tasks",
    ElementType.FORM: "forms",
}

_ID_PREFIXES: dict[ElementType, str] = {
    ElementType.CONSTRAINT: "const",
    ElementType.POLICY: "pol",
    ElementType.TASK: "task",
    ElementType.FORM: "form",
}

GOAL_ID_PREFIX = "goal"

# Version string the validator expects on current documents.
DOCUMENT_VERSION = "2.0"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Return the string values of an enum in declaration order."""
    return [member.value for member in enum_cls]
