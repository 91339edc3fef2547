"""flowedit: schema-checked, versioned, natural-language editing of workflow documents.

A workflow document is an ordered list of goals, each owning constraints,
policies, tasks and forms. flowedit validates documents, applies a closed
set of mutation operations to them, and lets a language model drive those
operations through a bounded, self-correcting tool-calling loop.
"""

from flowedit._version import __version__

# Validation
from flowedit.models.validation import IssueCode, ValidationIssue, ValidationResult
from flowedit.validation import (
    is_valid_document,
    validate_document,
    validate_document_strict,
)

# Document model
from flowedit.models.workflow import ElementType

# Mutation tools
from flowedit.toolkit import (
    TOOL_DEFINITIONS,
    ToolCall,
    ToolDefinition,
    ToolExecutor,
    ToolName,
    ToolResult,
)

# Agent
from flowedit.agent import (
    AgentConfig,
    AgentState,
    AuditEntry,
    AuditLog,
    EditRequest,
    EditResult,
    FailureKind,
    ToolCallRecord,
    ToolCallStatus,
    WorkflowEditingAgent,
)

# Model client
from flowedit.llm import ChatModelInvoker, ModelInvoker, ModelSettings

# Versioning
from flowedit.editor import EditOutcome, WorkflowEditor
from flowedit.models.versions import SaveResult, StoreConfig, VersionInfo, WorkflowInfo
from flowedit.storage.versions import WorkflowVersionStore, generate_version_summary

# Exceptions
from flowedit.exceptions import (
    DocumentValidationError,
    FlowEditError,
    InvariantError,
    MalformedModelResponseError,
    ModelUnavailableError,
    NotFoundError,
    RequestRejectedError,
    StorageError,
    ToolParameterError,
    UnknownToolError,
    VersionConflictError,
    VersionIntegrityError,
    VersionNotFoundError,
    WorkflowNotFoundError,
)

__all__ = [
    "__version__",
    # Validation
    "IssueCode",
    "ValidationIssue",
    "ValidationResult",
    "validate_document",
    "validate_document_strict",
    "is_valid_document",
    # Document model
    "ElementType",
    # Mutation tools
    "TOOL_DEFINITIONS",
    "ToolCall",
    "ToolDefinition",
    "ToolExecutor",
    "ToolName",
    "ToolResult",
    # Agent
    "AgentConfig",
    "AgentState",
    "AuditEntry",
    "AuditLog",
    "EditRequest",
    "EditResult",
    "FailureKind",
    "ToolCallRecord",
    "ToolCallStatus",
    "WorkflowEditingAgent",
    # Model client
    "ChatModelInvoker",
    "ModelInvoker",
    "ModelSettings",
    # Versioning
    "EditOutcome",
    "WorkflowEditor",
    "SaveResult",
    "StoreConfig",
    "VersionInfo",
    "WorkflowInfo",
    "WorkflowVersionStore",
    "generate_version_summary",
    # Exceptions
    "FlowEditError",
    "NotFoundError",
    "DocumentValidationError",
    "InvariantError",
    "UnknownToolError",
    "ToolParameterError",
    "RequestRejectedError",
    "ModelUnavailableError",
    "MalformedModelResponseError",
    "StorageError",
    "WorkflowNotFoundError",
    "VersionNotFoundError",
    "VersionConflictError",
    "VersionIntegrityError",
]
