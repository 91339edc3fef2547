"""Agent configuration types.

Provides AgentState and AgentConfig for the workflow editing agent.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from flowedit.agent.sanitize import (
    MAX_REQUEST_LENGTH,
    MIN_REQUEST_LENGTH,
    SANITIZED_MAX_LENGTH,
)

if TYPE_CHECKING:
    from flowedit.agent.models import ToolCallRecord


class AgentState(str, enum.Enum):
    """States the agent moves through while handling one request."""

    IDLE = "idle"
    SANITIZING = "sanitizing"
    INVOKING = "invoking"
    EXECUTING = "executing"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class AgentConfig:
    """Configuration for the workflow editing agent.

    Mutable dataclass: callers may adjust settings between requests.

    Attributes:
        max_retries: Retries after the first attempt (total attempts is
            ``max_retries + 1``).
        min_request_length: Shortest accepted request, after trimming.
        max_request_length: Longest accepted raw request.
        sanitized_max_length: Length the redacted request is cut to
            before it is placed in the model context.
        system_prompt: Override for the generated system context.
        on_tool_call: Callback observing every attempted tool call.
            Errors raised by the callback are logged and ignored.
    """

    max_retries: int = 2
    min_request_length: int = MIN_REQUEST_LENGTH
    max_request_length: int = MAX_REQUEST_LENGTH
    sanitized_max_length: int = SANITIZED_MAX_LENGTH
    system_prompt: str | None = None
    on_tool_call: Callable[[ToolCallRecord], None] | None = None

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1
