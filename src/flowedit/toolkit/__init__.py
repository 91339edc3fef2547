"""Workflow editing toolkit: tool definitions and the executor behind them.

Exposes every mutation operation as a function-calling schema for the
model, plus a total dispatcher from tool name to operation.
"""

from flowedit.toolkit.definitions import TOOL_DEFINITIONS, get_all_tools
from flowedit.toolkit.executor import ToolExecutor, check_parameters
from flowedit.toolkit.models import ToolCall, ToolDefinition, ToolName, ToolResult

__all__ = [
    "ToolName",
    "ToolDefinition",
    "ToolCall",
    "ToolResult",
    "ToolExecutor",
    "TOOL_DEFINITIONS",
    "get_all_tools",
    "check_parameters",
]
