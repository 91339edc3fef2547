"""Bounded, self-correcting editing loop.

WorkflowEditingAgent turns one natural-language request into a new
document: sanitize the request, ask the model for tool calls, apply
them to the original document, and either commit the result or retry
with feedback about what went wrong.

The loop is an explicit state machine. Each step method handles one
AgentState and returns the next; everything a later step needs is
carried on a per-request ``_Run`` rather than on the agent.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from flowedit.agent.config import AgentConfig, AgentState
from flowedit.agent.context import build_system_context, build_workflow_summary
from flowedit.agent.feedback import build_feedback
from flowedit.agent.models import (
    AttemptFailure,
    AuditEntry,
    AuditLog,
    EditRequest,
    EditResult,
    FailureKind,
    ToolCallRecord,
    ToolCallStatus,
)
from flowedit.agent.response import ModelPlan, parse_model_response
from flowedit.agent.sanitize import check_user_request, sanitize_user_input
from flowedit.exceptions import (
    DocumentValidationError,
    InvariantError,
    MalformedModelResponseError,
    NotFoundError,
    RequestRejectedError,
    ToolParameterError,
    UnknownToolError,
)
from flowedit.prompts.editing import build_user_prompt
from flowedit.toolkit import ToolCall, ToolExecutor

if TYPE_CHECKING:
    from flowedit.llm.protocols import ModelInvoker

logger = logging.getLogger(__name__)

NO_OPERATIONS_MESSAGE = (
    "I could not determine how to make the requested changes. "
    "Please provide more specific instructions."
)
EXHAUSTED_MESSAGE = (
    "I was unable to make the requested changes after multiple attempts. "
    "Please check your request and try again."
)
MODEL_ERROR_MESSAGE = (
    "An error occurred while processing your request. "
    "Please try rephrasing your request."
)

_TERMINAL = (AgentState.SUCCEEDED, AgentState.FAILED)

# Exception type -> failure kind, checked in order.
_FAILURE_KINDS: tuple[tuple[type[Exception], FailureKind], ...] = (
    (UnknownToolError, FailureKind.UNKNOWN_TOOL),
    (ToolParameterError, FailureKind.INVALID_PARAMETERS),
    (NotFoundError, FailureKind.NOT_FOUND),
    (DocumentValidationError, FailureKind.VALIDATION_FAILED),
    (InvariantError, FailureKind.INVARIANT_VIOLATED),
)

_VERBS: tuple[tuple[str, str], ...] = (
    ("add", "added"),
    ("update", "updated"),
    ("delete", "deleted"),
    ("move", "moved"),
    ("duplicate", "duplicated"),
)


def classify_failure(exc: Exception | None) -> FailureKind:
    for exc_type, kind in _FAILURE_KINDS:
        if isinstance(exc, exc_type):
            return kind
    return FailureKind.INTERNAL


def summarize_changes(tool_calls: list[ToolCall] | list[ToolCallRecord]) -> str:
    """Count tool calls by verb, e.g. ``"added 2 elements, deleted 1 element"``."""
    counts: dict[str, int] = {}
    for call in tool_calls:
        verb = next(
            (past for prefix, past in _VERBS if call.tool.startswith(prefix)),
            "modified",
        )
        counts[verb] = counts.get(verb, 0) + 1
    return ", ".join(
        f"{verb} {n} element" if n == 1 else f"{verb} {n} elements"
        for verb, n in counts.items()
    )


@dataclass
class _Run:
    """Mutable state of one request as it moves through the loop."""

    request: EditRequest
    sanitized: str = ""
    summary: str = ""
    attempt: int = 0
    plan: ModelPlan | None = None
    feedback: str | None = None
    failure: AttemptFailure | None = None
    records: list[ToolCallRecord] = field(default_factory=list)
    audit: list[AuditEntry] = field(default_factory=list)
    result: EditResult | None = None


class WorkflowEditingAgent:
    """Runs the sanitize, invoke, execute, retry loop for edit requests.

    Each agent owns an AuditLog unless one is injected; the entries for a
    single request are also returned on its EditResult.

    Usage::

        agent = WorkflowEditingAgent(ChatModelInvoker())
        result = agent.process_edit_request(
            EditRequest(workflow_id="wf1", document=doc, message="Add a review task")
        )
        if result.success:
            doc = result.document
    """

    def __init__(
        self,
        invoker: ModelInvoker,
        config: AgentConfig | None = None,
        *,
        executor: ToolExecutor | None = None,
        audit_log: AuditLog | None = None,
    ) -> None:
        self._invoker = invoker
        self._config = config or AgentConfig()
        self._executor = executor or ToolExecutor()
        self._audit_log = audit_log if audit_log is not None else AuditLog()
        self._state = AgentState.IDLE
        self._steps: dict[AgentState, Callable[[_Run], AgentState]] = {
            AgentState.SANITIZING: self._sanitize,
            AgentState.INVOKING: self._invoke,
            AgentState.EXECUTING: self._execute,
            AgentState.RETRYING: self._retry,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> AgentState:
        """Current state; SUCCEEDED or FAILED after a request completes."""
        return self._state

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def audit_log(self) -> AuditLog:
        return self._audit_log

    def get_audit_log(self) -> list[AuditEntry]:
        return self._audit_log.entries()

    def clear_audit_log(self) -> None:
        self._audit_log.clear()

    def system_context(self) -> str:
        """The system context sent with every model call."""
        if self._config.system_prompt is not None:
            return self._config.system_prompt
        return build_system_context(self._executor.definitions())

    def process_edit_request(self, request: EditRequest) -> EditResult:
        """Run one request to a terminal state.

        Never raises for request, model, or tool failures; those come
        back as an unsuccessful EditResult with a ``failure_kind``.
        """
        logger.info("Processing edit request for workflow %s", request.workflow_id)
        run = _Run(request=request)
        state = AgentState.SANITIZING
        while state not in _TERMINAL:
            self._state = state
            state = self._steps[state](run)
        self._state = state
        assert run.result is not None
        return run.result

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    def _sanitize(self, run: _Run) -> AgentState:
        issues = check_user_request(
            run.request.message,
            min_length=self._config.min_request_length,
            max_length=self._config.max_request_length,
        )
        if issues:
            logger.info("Rejected request for workflow %s: %s", run.request.workflow_id, issues)
            run.failure = AttemptFailure(FailureKind.REQUEST_REJECTED, "Request validation failed")
            run.result = self._failed(run, str(RequestRejectedError(issues)))
            return AgentState.FAILED

        run.sanitized = sanitize_user_input(
            run.request.message, max_length=self._config.sanitized_max_length
        )
        run.summary = build_workflow_summary(run.request.document)
        return AgentState.INVOKING

    def _invoke(self, run: _Run) -> AgentState:
        run.attempt += 1
        run.plan = None
        run.records = []
        user_context = build_user_prompt(run.summary, run.sanitized, run.feedback)

        try:
            reply = self._invoker.invoke(self.system_context(), user_context)
            run.plan = parse_model_response(reply)
        except MalformedModelResponseError as exc:
            logger.warning("Attempt %d: %s", run.attempt, exc)
            run.failure = AttemptFailure(FailureKind.MALFORMED_RESPONSE, str(exc))
            return AgentState.RETRYING
        except Exception as exc:
            logger.warning("Attempt %d: model call failed: %s", run.attempt, exc)
            run.failure = AttemptFailure(
                FailureKind.MODEL_UNAVAILABLE, f"{type(exc).__name__}: {exc}"
            )
            return AgentState.RETRYING

        if not run.plan.tool_calls:
            logger.info("Attempt %d: model proposed no operations", run.attempt)
            run.failure = AttemptFailure(FailureKind.NO_OPERATIONS, "No valid tool calls generated")
            run.result = self._failed(run, NO_OPERATIONS_MESSAGE)
            return AgentState.FAILED

        return AgentState.EXECUTING

    def _execute(self, run: _Run) -> AgentState:
        assert run.plan is not None
        document = run.request.document
        calls = run.plan.tool_calls

        for index, call in enumerate(calls):
            logger.debug("Attempt %d: executing %s %s", run.attempt, call.tool, call.params)
            result = self._executor.execute(document, call)
            status = ToolCallStatus.SUCCESS if result.success else ToolCallStatus.ERROR
            self._record(run, call, status, result.error)

            if not result.success:
                for skipped in calls[index + 1:]:
                    run.records.append(
                        ToolCallRecord(
                            tool=skipped.tool,
                            params=copy.deepcopy(skipped.params),
                            status=ToolCallStatus.SKIPPED,
                            attempt=run.attempt,
                        )
                    )
                kind = classify_failure(result.exception)
                issues = (
                    list(result.exception.errors)
                    if isinstance(result.exception, DocumentValidationError)
                    else []
                )
                logger.warning(
                    "Attempt %d failed at %s (%s): %s",
                    run.attempt, call.tool, kind.value, result.error,
                )
                run.failure = AttemptFailure(kind, result.error, issues)
                return AgentState.RETRYING

            document = result.document

        reasoning = run.plan.reasoning
        message = f"Successfully {summarize_changes(calls)}. {reasoning}".strip()
        logger.info(
            "Edit for workflow %s succeeded on attempt %d with %d tool call(s)",
            run.request.workflow_id, run.attempt, len(calls),
        )
        run.result = EditResult(
            success=True,
            message=message,
            document=document,
            reasoning=reasoning,
            tool_calls=list(run.records),
            attempts=run.attempt,
            audit=list(run.audit),
        )
        return AgentState.SUCCEEDED

    def _retry(self, run: _Run) -> AgentState:
        assert run.failure is not None
        if run.failure.kind.retryable and run.attempt < self._config.max_attempts:
            logger.warning(
                "Retrying workflow %s (attempt %d of %d failed: %s)",
                run.request.workflow_id, run.attempt, self._config.max_attempts,
                run.failure.kind.value,
            )
            run.feedback = build_feedback(run.failure, run.attempt, self._config.max_attempts)
            return AgentState.INVOKING

        if run.failure.kind in (FailureKind.MODEL_UNAVAILABLE, FailureKind.MALFORMED_RESPONSE):
            message = MODEL_ERROR_MESSAGE
        else:
            message = EXHAUSTED_MESSAGE
        run.result = self._failed(run, message)
        return AgentState.FAILED

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record(self, run: _Run, call: ToolCall, status: ToolCallStatus, error: str) -> None:
        # Results and the shared audit log must not alias the model's dicts.
        record = ToolCallRecord(
            tool=call.tool,
            params=copy.deepcopy(call.params),
            status=status,
            attempt=run.attempt,
            error=error,
        )
        run.records.append(record)
        entry = AuditEntry(
            workflow_id=run.request.workflow_id,
            tool=call.tool,
            params=copy.deepcopy(call.params),
            status=status,
            attempt=run.attempt,
            error=error,
            user_id=run.request.user_id,
        )
        self._audit_log.append(entry)
        run.audit.append(entry)

        if self._config.on_tool_call is not None:
            try:
                self._config.on_tool_call(record)
            except Exception:
                logger.debug("on_tool_call callback error", exc_info=True)

    def _failed(self, run: _Run, message: str) -> EditResult:
        assert run.failure is not None
        logger.info(
            "Edit for workflow %s failed after %d attempt(s): %s",
            run.request.workflow_id, run.attempt, run.failure.kind.value,
        )
        return EditResult(
            success=False,
            message=message,
            tool_calls=list(run.records),
            error_details=run.failure.error,
            validation_errors=list(run.failure.validation_errors),
            failure_kind=run.failure.kind,
            attempts=run.attempt,
            audit=list(run.audit),
        )
