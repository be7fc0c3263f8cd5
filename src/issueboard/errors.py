"""Error types & redaction for issueboard.

Every failure travels as an exception with a human-readable message; the
runner reports the first one and stops. The subclasses only mark where the
error came from. ``redact`` scrubs credentials before a message is logged or
handed to the CI host.
"""
from __future__ import annotations

import re
from collections.abc import Iterable

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ghp_[A-Za-z0-9]{20,40}"),  # GitHub classic tokens
    re.compile(r"ghs_[A-Za-z0-9]{20,40}"),  # GitHub Actions installation tokens
    re.compile(r"github_pat_\w{20,}"),  # GitHub fine-grained tokens
]

_REDACTION_PLACEHOLDER = "<redacted>"

UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"


class IssueBoardError(RuntimeError):
    """Base class for failures raised by issueboard itself."""


class ConfigError(IssueBoardError):
    """Missing or malformed action input / event context."""


class ProjectError(IssueBoardError):
    """A named project, field, option or iteration could not be resolved."""


def redact(text: str, secrets: Iterable[str] = ()) -> str:
    """Redact token-like substrings and any explicitly supplied secrets."""
    if not text:
        return text
    redacted = text
    for secret in secrets:
        if secret:
            redacted = redacted.replace(secret, _REDACTION_PLACEHOLDER)
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def failure_message(exc: BaseException, secrets: Iterable[str] = ()) -> str:
    """Message reported for a failed run."""
    msg = str(exc).strip()
    if not msg:
        return UNKNOWN_ERROR_MESSAGE
    return redact(msg, secrets)


__all__ = [
    "ConfigError",
    "IssueBoardError",
    "ProjectError",
    "UNKNOWN_ERROR_MESSAGE",
    "failure_message",
    "redact",
]
