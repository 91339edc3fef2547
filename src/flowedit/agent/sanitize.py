"""Request screening and prompt-injection redaction.

check_user_request decides whether a raw request may reach the model
at all. sanitize_user_input and redact_text clean text that is placed
in the model context, whether it came from the user or the document.
"""

from __future__ import annotations

import re

# Requests matching any of these never reach the model.
DENY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"system|prompt|instruction", re.IGNORECASE),
    re.compile(r"execute|run|eval|script", re.IGNORECASE),
    re.compile(r"delete.*all|drop.*table|truncate", re.IGNORECASE),
    re.compile(r"<script|javascript:|data:", re.IGNORECASE),
    re.compile(r"\b(admin|root|sudo)\b", re.IGNORECASE),
)

_CODE_BLOCK = re.compile(r"```.*?```", re.DOTALL)
_KEYWORDS = re.compile(r"\b(?:system|prompt|instruct|instructions?)\b", re.IGNORECASE)
_ANGLE_BRACKETS = re.compile(r"[<>]")

MIN_REQUEST_LENGTH = 5
MAX_REQUEST_LENGTH = 1000
SANITIZED_MAX_LENGTH = 500


def check_user_request(
    text: str,
    *,
    min_length: int = MIN_REQUEST_LENGTH,
    max_length: int = MAX_REQUEST_LENGTH,
) -> list[str]:
    """Return the reasons a request is rejected; empty when it is acceptable."""
    issues = [
        f"Request contains potentially unsafe content: {pattern.pattern}"
        for pattern in DENY_PATTERNS
        if pattern.search(text)
    ]
    if len(text) > max_length:
        issues.append(f"Request is too long (max {max_length} characters)")
    if len(text.strip()) < min_length:
        issues.append(f"Request is too short (min {min_length} characters)")
    return issues


def redact_text(text: str) -> str:
    """Replace code blocks and instruction keywords, drop angle brackets."""
    text = _CODE_BLOCK.sub("[code block removed]", text)
    text = _KEYWORDS.sub("[redacted]", text)
    return _ANGLE_BRACKETS.sub("", text)


def sanitize_user_input(text: str, *, max_length: int = SANITIZED_MAX_LENGTH) -> str:
    """Redact, trim, and truncate a request before it enters the model context."""
    return redact_text(text).strip()[:max_length]
