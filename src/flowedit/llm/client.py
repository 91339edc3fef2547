"""Editing model over an OpenAI-compatible chat completions API.

ChatModelInvoker sends the agent's system and user contexts as a
two-message conversation, asks for a JSON object reply, and checks that
the reply has the ``{toolCalls, reasoning}`` shape before handing it
back. Transport failures are retried here with tenacity. A reply of the
wrong shape is left to the agent, which retries with feedback.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
import tenacity
from pydantic import BaseModel

from flowedit.agent.response import parse_model_response
from flowedit.exceptions import MalformedModelResponseError, ModelUnavailableError

logger = logging.getLogger(__name__)

API_KEY_ENV = "FLOWEDIT_OPENAI_API_KEY"
BASE_URL_ENV = "FLOWEDIT_OPENAI_BASE_URL"
MODEL_ENV = "FLOWEDIT_OPENAI_MODEL"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"

# Upper bound on a server-requested Retry-After wait.
MAX_RETRY_AFTER = 60.0

_TRANSIENT_STATUS = frozenset({429, 500, 502, 503, 504})
_BACKOFF = tenacity.wait_exponential(multiplier=1, min=1, max=30) + tenacity.wait_random(0, 2)


class ModelSettings(BaseModel):
    """Connection and sampling settings for the editing model.

    Low temperature keeps tool-call output stable across agent retries.
    ``max_attempts`` bounds transport retries of a single model call; it is
    separate from the agent's own retry budget.
    """

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = 0.1
    max_tokens: int = 1000
    timeout: float = 60.0
    max_attempts: int = 3
    json_mode: bool = True

    @classmethod
    def from_env(cls, **overrides: Any) -> ModelSettings:
        """Read key, base URL and model from the FLOWEDIT_OPENAI_* variables.

        Overrides that are not None win over the environment.
        """
        values: dict[str, Any] = {
            "api_key": os.environ.get(API_KEY_ENV, ""),
            "base_url": os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL,
            "model": os.environ.get(MODEL_ENV) or DEFAULT_MODEL,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, ModelUnavailableError) and exc.retryable


def _wait(retry_state: tenacity.RetryCallState) -> float:
    """Honor a 429's Retry-After, else back off exponentially with jitter."""
    exc = retry_state.outcome.exception() if retry_state.outcome is not None else None
    if isinstance(exc, ModelUnavailableError) and exc.retry_after is not None:
        return min(exc.retry_after, MAX_RETRY_AFTER)
    return _BACKOFF(retry_state)


def _status_error(response: httpx.Response) -> ModelUnavailableError:
    status = response.status_code
    retry_after = None
    if status == 429:
        try:
            retry_after = float(response.headers.get("Retry-After", ""))
        except ValueError:
            retry_after = None
    if status in (401, 403):
        message = f"Model API rejected the credentials: HTTP {status}"
    else:
        message = f"Model API returned HTTP {status}: {response.text[:200]}"
    return ModelUnavailableError(
        message,
        status_code=status,
        retry_after=retry_after,
        retryable=status in _TRANSIENT_STATUS,
    )


def reply_text(completion: dict) -> str:
    """Content of the first choice of a chat completion.

    Raises:
        ModelUnavailableError: If the completion carries no choice.
        MalformedModelResponseError: If the reply stopped at max_tokens,
            which leaves the toolCalls JSON unterminated.
    """
    try:
        choice = completion["choices"][0]
        content = choice["message"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise ModelUnavailableError(
            f"Model API returned no completion choice: {completion}"
        ) from exc
    if choice.get("finish_reason") == "length":
        raise MalformedModelResponseError(
            "Invalid response format: reply was cut off at max_tokens"
        )
    return content or ""


class ChatModelInvoker:
    """ModelInvoker backed by ``/chat/completions`` on an OpenAI-compatible API.

    Usage::

        with ChatModelInvoker(ModelSettings.from_env(model="gpt-4o")) as invoker:
            agent = WorkflowEditingAgent(invoker)
            result = agent.process_edit_request(request)
    """

    def __init__(
        self,
        settings: ModelSettings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the invoker.

        Args:
            settings: Connection settings; read from the environment if omitted.
            transport: Optional httpx transport (tests pass a MockTransport).

        Raises:
            ModelUnavailableError: If no API key is configured.
        """
        self._settings = settings or ModelSettings.from_env()
        if not self._settings.api_key:
            raise ModelUnavailableError(
                f"No API key provided. Pass api_key= or set {API_KEY_ENV} "
                "environment variable."
            )
        self._url = f"{self._settings.base_url.rstrip('/')}/chat/completions"
        self._http = httpx.Client(
            timeout=self._settings.timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {self._settings.api_key}"},
        )

    @property
    def settings(self) -> ModelSettings:
        return self._settings

    def invoke(self, system_context: str, user_context: str) -> dict:
        """Ask the model for tool calls and return ``{"response": <text>}``.

        Raises:
            ModelUnavailableError: The API was unreachable, refused the call,
                or answered without a completion.
            MalformedModelResponseError: The reply is not a complete
                ``{toolCalls, reasoning}`` JSON object.
        """
        retrying = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_transient),
            wait=_wait,
            stop=tenacity.stop_after_attempt(self._settings.max_attempts),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        completion = retrying(self._post, self._payload(system_context, user_context))
        reply = {"response": reply_text(completion)}
        plan = parse_model_response(reply)
        logger.debug("Model proposed %d tool call(s)", len(plan.tool_calls))
        return reply

    def _payload(self, system_context: str, user_context: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self._settings.model,
            "messages": [
                {"role": "system", "content": system_context},
                {"role": "user", "content": user_context},
            ],
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }
        if self._settings.json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def _post(self, payload: dict[str, Any]) -> dict:
        """One request, no retry."""
        try:
            response = self._http.post(self._url, json=payload)
        except httpx.TransportError as exc:
            raise ModelUnavailableError(
                f"Model API unreachable: {exc}",
                retryable=isinstance(exc, (httpx.ConnectError, httpx.TimeoutException)),
            ) from exc
        if response.is_error:
            raise _status_error(response)
        try:
            completion = response.json()
        except ValueError as exc:
            raise ModelUnavailableError(
                f"Model API response is not JSON: {response.text[:200]}"
            ) from exc
        if not isinstance(completion, dict):
            raise ModelUnavailableError(f"Model API response is not an object: {completion}")
        return completion

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> ChatModelInvoker:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
