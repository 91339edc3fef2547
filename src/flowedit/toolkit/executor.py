"""ToolExecutor: dispatches proposed tool calls to mutation operations.

``execute()`` resolves the tool name, checks parameters against the
tool's schema, applies the operation, re-validates the result, and
returns a structured ``ToolResult``. It never raises for a bad call.
"""

from __future__ import annotations

import logging
from typing import Any

from flowedit.exceptions import FlowEditError, ToolParameterError, UnknownToolError
from flowedit.toolkit.definitions import TOOL_DEFINITIONS
from flowedit.toolkit.models import ToolCall, ToolDefinition, ToolName, ToolResult
from flowedit.validation import validate_document_strict

logger = logging.getLogger(__name__)

_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "object": (dict,),
    "array": (list,),
    "number": (int, float),
    "integer": (int,),
    "boolean": (bool,),
}


def _matches(value: Any, json_type: str) -> bool:
    expected = _JSON_TYPES.get(json_type)
    if expected is None:
        return True
    if isinstance(value, bool) and json_type != "boolean":
        return False
    return isinstance(value, expected)


def check_parameters(definition: ToolDefinition, params: dict) -> list[str]:
    """Return problems with ``params`` against the tool's top-level schema.

    Required parameters must be present and non-null. Declared parameters
    must have the declared JSON type; arrays with a typed ``items`` schema
    have each item checked too. Nested objects are left to the schema
    validator that runs inside each operation.
    """
    problems: list[str] = []
    for name in definition.required:
        if params.get(name) is None:
            problems.append(f"missing required parameter '{name}'")
    for name, schema in definition.properties.items():
        value = params.get(name)
        if value is None or "type" not in schema:
            continue
        if not _matches(value, schema["type"]):
            problems.append(f"parameter '{name}' must be of type {schema['type']}")
            continue
        item_type = schema.get("items", {}).get("type")
        if schema["type"] == "array" and item_type:
            if not all(_matches(item, item_type) for item in value):
                problems.append(f"parameter '{name}' must be an array of {item_type}")
        if "enum" in schema and value not in schema["enum"]:
            problems.append(
                f"parameter '{name}' must be one of: {', '.join(schema['enum'])}"
            )
    return problems


class ToolExecutor:
    """Dispatches tool calls onto operations and returns structured results.

    Usage::

        executor = ToolExecutor()
        result = executor.execute(document, ToolCall("deleteTask", {"taskId": "t1"}))
        if result.success:
            document = result.document
        else:
            print(result.error)
    """

    def __init__(self, definitions: dict[ToolName, ToolDefinition] | None = None) -> None:
        self._tools = dict(definitions if definitions is not None else TOOL_DEFINITIONS)

    def available_tools(self) -> list[str]:
        return [name.value for name in self._tools]

    def definitions(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def validate_call(self, call: ToolCall) -> list[str]:
        """Problems that would stop ``call`` before its operation runs."""
        name = ToolName.parse(call.tool)
        if name is None or name not in self._tools:
            return [f"Unknown tool: {call.tool}"]
        return check_parameters(self._tools[name], call.params)

    def execute(self, document: dict, call: ToolCall) -> ToolResult:
        """Apply one tool call to ``document``.

        Args:
            document: The current document. Never modified.
            call: The proposed call.

        Returns:
            ToolResult with the new document on success, or the error
            message and originating exception on failure.
        """
        name = ToolName.parse(call.tool)
        if name is None or name not in self._tools:
            return self._failure(call, UnknownToolError(call.tool))
        definition = self._tools[name]

        problems = check_parameters(definition, call.params)
        if problems:
            return self._failure(call, ToolParameterError(call.tool, problems))

        arguments = {k: v for k, v in call.params.items() if k in definition.properties}
        ignored = sorted(set(call.params) - set(arguments))
        if ignored:
            logger.debug("Ignoring undeclared parameters for %s: %s", call.tool, ignored)

        try:
            updated = definition.handler(document, **arguments)
            validate_document_strict(updated)
        except FlowEditError as exc:
            return self._failure(call, exc)
        except Exception as exc:
            logger.debug("Tool %s failed: %s", call.tool, exc, exc_info=True)
            return self._failure(call, exc)

        logger.debug("Tool %s succeeded", call.tool)
        return ToolResult(tool_name=call.tool, success=True, document=updated)

    @staticmethod
    def _failure(call: ToolCall, exc: Exception) -> ToolResult:
        if isinstance(exc, FlowEditError):
            error = str(exc)
        else:
            error = f"{type(exc).__name__}: {exc}"
        return ToolResult(tool_name=call.tool, success=False, error=error, exception=exc)
