"""Validation result models.

ValidationIssue is one error or warning at a document path.
ValidationResult aggregates them for a validated document or entity.
IssueCode is shared between the validator and the agent's feedback
table so retry guidance never depends on message wording.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field


class IssueCode(str, enum.Enum):
    """Machine-readable validation issue codes."""

    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_ENUM_VALUE = "INVALID_ENUM_VALUE"
    INVALID_VALUE = "INVALID_VALUE"
    MISSING_RECOMMENDED_FIELD = "MISSING_RECOMMENDED_FIELD"
    VERSION_MISMATCH = "VERSION_MISMATCH"
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    UNRECOGNIZED_CONDITION = "UNRECOGNIZED_CONDITION"

    def __str__(self) -> str:
        return self.value


class ValidationIssue(BaseModel):
    """A single validation error or warning."""

    path: str
    message: str
    code: IssueCode

    @property
    def field(self) -> str:
        """Last segment of the path (``goals[0].name`` -> ``name``)."""
        tail = self.path.rsplit(".", 1)[-1]
        return tail.split("[", 1)[0]


class ValidationResult(BaseModel):
    """Outcome of validating a document or a single entity."""

    is_valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
