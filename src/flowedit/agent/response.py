"""Parsing of the model's structured reply."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

from flowedit.exceptions import MalformedModelResponseError
from flowedit.toolkit import ToolCall

# A fence wrapping the whole reply; backticks inside JSON strings stay.
_FENCE = re.compile(r"^```[A-Za-z]*\s*(.*?)\s*```$", re.DOTALL)


@dataclass(frozen=True)
class ModelPlan:
    """Tool calls and reasoning proposed by one model reply."""

    tool_calls: list[ToolCall] = field(default_factory=list)
    reasoning: str = ""


def clean_triple_backticks(text: str) -> str:
    text = text.strip()
    match = _FENCE.match(text)
    return match.group(1) if match else text


def parse_model_response(reply: Any) -> ModelPlan:
    """Parse a ``{"response": "<json>"}`` reply into a ModelPlan.

    Raises:
        MalformedModelResponseError: If the reply is not JSON, has no
            ``toolCalls`` array, or a call lacks a string ``tool`` or an
            object ``params``.
    """
    if not isinstance(reply, dict) or not isinstance(reply.get("response"), str):
        raise MalformedModelResponseError(
            "Invalid response format: expected {'response': str}"
        )
    try:
        parsed = json.loads(clean_triple_backticks(reply["response"]))
    except json.JSONDecodeError as exc:
        raise MalformedModelResponseError(f"Invalid LLM response format: {exc}") from exc

    if not isinstance(parsed, dict) or not isinstance(parsed.get("toolCalls"), list):
        raise MalformedModelResponseError(
            "Invalid response format: missing toolCalls array"
        )

    calls: list[ToolCall] = []
    for index, raw in enumerate(parsed["toolCalls"]):
        if not isinstance(raw, dict) or not isinstance(raw.get("tool"), str):
            raise MalformedModelResponseError(
                f"Invalid response format: toolCalls[{index}] has no tool name"
            )
        params = raw.get("params", {})
        if not isinstance(params, dict):
            raise MalformedModelResponseError(
                f"Invalid response format: toolCalls[{index}].params must be an object"
            )
        calls.append(ToolCall(tool=raw["tool"], params=params))

    reasoning = parsed.get("reasoning")
    return ModelPlan(tool_calls=calls, reasoning=reasoning if isinstance(reasoning, str) else "")
