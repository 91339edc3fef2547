"""Model collaborator for flowedit.

Provides the ModelInvoker protocol and ChatModelInvoker, its
implementation over an OpenAI-compatible chat completions API.
"""

from flowedit.llm.client import ChatModelInvoker, ModelSettings
from flowedit.llm.protocols import ModelInvoker

__all__ = [
    "ChatModelInvoker",
    "ModelInvoker",
    "ModelSettings",
]
