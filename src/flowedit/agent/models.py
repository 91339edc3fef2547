"""Agent request, result, and audit models.

Provides EditRequest, EditResult, ToolCallRecord, AuditEntry, AuditLog,
AttemptFailure, and the FailureKind taxonomy for the editing loop.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone

from flowedit.models.validation import ValidationIssue


class FailureKind(str, enum.Enum):
    """Why an attempt or a whole request failed."""

    REQUEST_REJECTED = "request_rejected"
    MODEL_UNAVAILABLE = "model_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
    NO_OPERATIONS = "no_operations"
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_PARAMETERS = "invalid_parameters"
    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    INVARIANT_VIOLATED = "invariant_violated"
    INTERNAL = "internal"

    @property
    def retryable(self) -> bool:
        return self not in (FailureKind.REQUEST_REJECTED, FailureKind.NO_OPERATIONS)


class ToolCallStatus(str, enum.Enum):
    """Outcome of one proposed tool call within an attempt."""

    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class EditRequest:
    """One natural-language edit against a document."""

    workflow_id: str
    document: dict
    message: str
    user_id: str | None = None
    session_id: str | None = None


@dataclass(frozen=True)
class ToolCallRecord:
    """A proposed tool call annotated with what happened to it.

    Frozen: records are immutable once the attempt has run.
    """

    tool: str
    params: dict
    status: ToolCallStatus
    attempt: int
    error: str = ""

    def to_dict(self) -> dict:
        data = {"tool": self.tool, "params": self.params, "result": self.status.value}
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class AuditEntry:
    """One attempted tool call as recorded in the audit log."""

    workflow_id: str
    tool: str
    params: dict
    status: ToolCallStatus
    attempt: int
    error: str = ""
    user_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditLog:
    """Append-only, in-memory record of attempted tool calls.

    Each agent owns one unless a shared log is injected. ``entries()``
    returns a copy, so callers can never mutate the log in place.
    """

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    def append(self, entry: AuditEntry) -> None:
        self._entries.append(entry)

    def entries(self) -> list[AuditEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AuditEntry]:
        return iter(list(self._entries))


@dataclass(frozen=True)
class AttemptFailure:
    """Why one attempt failed, carried into the next attempt's feedback."""

    kind: FailureKind
    error: str
    validation_errors: list[ValidationIssue] = field(default_factory=list)


@dataclass(frozen=True)
class EditResult:
    """Terminal outcome of an edit request.

    On failure ``document`` is None; ``message`` is safe to show a user
    while ``error_details`` and ``validation_errors`` carry the internal
    detail.
    """

    success: bool
    message: str
    document: dict | None = None
    reasoning: str = ""
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    error_details: str | None = None
    validation_errors: list[ValidationIssue] = field(default_factory=list)
    failure_kind: FailureKind | None = None
    attempts: int = 0
    audit: list[AuditEntry] = field(default_factory=list)
