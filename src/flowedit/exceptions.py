"""flowedit exception hierarchy.

All flowedit-specific exceptions inherit from FlowEditError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flowedit.models.validation import ValidationIssue


class FlowEditError(Exception):
    """Base exception for all flowedit errors."""


class NotFoundError(FlowEditError):
    """Raised when a goal or element id cannot be resolved.

    Attributes:
        kind: Entity kind that was looked up ("goal", "task", ...).
        entity_id: The id that was not found.
        valid_ids: For goal-scoped lookups, the ids that do exist.
    """

    def __init__(
        self,
        kind: str,
        entity_id: str,
        *,
        valid_ids: list[str] | None = None,
        scope: str | None = None,
    ) -> None:
        self.kind = kind
        self.entity_id = entity_id
        self.valid_ids = valid_ids
        if scope is not None:
            msg = f'{kind.capitalize()} with id "{entity_id}" not found in {scope}'
        else:
            msg = f'{kind.capitalize()} with id "{entity_id}" not found'
        if valid_ids is not None:
            listed = ", ".join(valid_ids) if valid_ids else "(none)"
            msg += f". Valid {kind} ids: {listed}"
        super().__init__(msg)


class DocumentValidationError(FlowEditError):
    """Raised when strict schema validation fails.

    Named DocumentValidationError (not ValidationError) to avoid
    collision with pydantic.ValidationError.

    Attributes:
        kind: What was validated ("Workflow", "Goal", "Task", ...).
        errors: The structured issues behind the message.
    """

    def __init__(self, kind: str, errors: list[ValidationIssue]) -> None:
        self.kind = kind
        self.errors = list(errors)
        detail = "; ".join(f"{e.path}: {e.message}" for e in self.errors)
        super().__init__(f"{kind} validation failed: {detail}")


class InvariantError(FlowEditError):
    """Raised when an operation would break a document invariant.

    Examples: a goal reorder that is not a permutation of the existing
    goal ids, a duplicate entity id, or a dangling task dependency.
    """


class UnknownToolError(FlowEditError):
    """Raised when a proposed tool name is not in the dispatch table."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class ToolParameterError(FlowEditError):
    """Raised when tool parameters are missing or have the wrong JSON type."""

    def __init__(self, tool_name: str, problems: list[str]) -> None:
        self.tool_name = tool_name
        self.problems = list(problems)
        super().__init__(
            f"Invalid parameters for {tool_name}: {'; '.join(self.problems)}"
        )


class RequestRejectedError(FlowEditError):
    """Raised when a user request fails sanitization."""

    def __init__(self, issues: list[str]) -> None:
        self.issues = list(issues)
        super().__init__(f"Invalid request: {', '.join(self.issues)}")


class ModelUnavailableError(FlowEditError):
    """Raised when the model collaborator call itself fails.

    Attributes:
        status_code: HTTP status of the failed call, if one came back.
        retry_after: Seconds the server asked to wait (429 Retry-After).
        retryable: Whether repeating the identical call may succeed.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retry_after: float | None = None,
        retryable: bool = False,
    ) -> None:
        self.status_code = status_code
        self.retry_after = retry_after
        self.retryable = retryable
        super().__init__(message)


class MalformedModelResponseError(FlowEditError):
    """Raised when the model reply is not JSON or lacks a toolCalls array."""


class StorageError(FlowEditError):
    """Base exception for version store errors."""


class WorkflowNotFoundError(StorageError):
    """Raised when a workflow id has no stored versions."""

    def __init__(self, workflow_id: str) -> None:
        self.workflow_id = workflow_id
        super().__init__(f"Workflow not found: {workflow_id}")


class VersionNotFoundError(StorageError):
    """Raised when a specific version of a workflow does not exist."""

    def __init__(self, workflow_id: str, version: int) -> None:
        self.workflow_id = workflow_id
        self.version = version
        super().__init__(f"Version {version} of workflow {workflow_id} not found")


class VersionConflictError(StorageError):
    """Raised when a save is based on a version that is no longer current."""

    def __init__(self, workflow_id: str, expected: int, actual: int) -> None:
        self.workflow_id = workflow_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Workflow {workflow_id} is at version {actual}, "
            f"expected {expected}. Reload and retry the edit."
        )


class VersionIntegrityError(StorageError):
    """Raised when stored content does not match its recorded checksum."""

    def __init__(self, workflow_id: str, version: int) -> None:
        self.workflow_id = workflow_id
        self.version = version
        super().__init__(
            f"Checksum mismatch for workflow {workflow_id} version {version}"
        )
