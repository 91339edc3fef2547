"""The model collaborator interface the editing agent depends on."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ModelInvoker(Protocol):
    """Two strings in, ``{"response": str}`` out.

    Any exception counts as a failed attempt. MalformedModelResponseError
    is reported as a malformed reply; everything else as the model being
    unavailable.
    """

    def invoke(self, system_context: str, user_context: str) -> dict:
        """Return ``{"response": <model text>}``."""
        ...
