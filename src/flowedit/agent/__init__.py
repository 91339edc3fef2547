"""Workflow editing agent: request screening, model loop, and audit trail.

Provides WorkflowEditingAgent plus its configuration, request/result
models, and the sanitization helpers it applies before any model call.
"""

from flowedit.agent.config import AgentConfig, AgentState
from flowedit.agent.context import build_workflow_summary
from flowedit.agent.loop import WorkflowEditingAgent, summarize_changes
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
from flowedit.agent.sanitize import check_user_request, sanitize_user_input

__all__ = [
    "WorkflowEditingAgent",
    "AgentConfig",
    "AgentState",
    "EditRequest",
    "EditResult",
    "FailureKind",
    "ToolCallRecord",
    "ToolCallStatus",
    "AuditEntry",
    "AuditLog",
    "AttemptFailure",
    "build_workflow_summary",
    "summarize_changes",
    "check_user_request",
    "sanitize_user_input",
]
