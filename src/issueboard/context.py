"""Triggering-event context as exposed to a GitHub Actions step."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import ActionInputs, split_repository
from .errors import ConfigError
from .github_rest import IssueRef

NO_ISSUE_MESSAGE = "No issue number provided and no issue in event context"


@dataclass
class EventContext:
    event_name: str | None = None
    repository: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EventContext:
        env = os.environ if environ is None else environ
        payload: dict[str, Any] = {}
        event_path = env.get("GITHUB_EVENT_PATH")
        if event_path and Path(event_path).exists():
            try:
                loaded = json.loads(Path(event_path).read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                raise ConfigError(f"Event payload {event_path} is not valid JSON: {exc}") from exc
            if isinstance(loaded, dict):
                payload = loaded
        return cls(
            event_name=env.get("GITHUB_EVENT_NAME"),
            repository=env.get("GITHUB_REPOSITORY") or None,
            payload=payload,
        )

    @property
    def issue_number(self) -> int | None:
        issue = self.payload.get("issue")
        if not isinstance(issue, Mapping):
            return None
        number = issue.get("number")
        return number if isinstance(number, int) and not isinstance(number, bool) else None


def resolve_issue_ref(inputs: ActionInputs, context: EventContext) -> IssueRef:
    """Explicit inputs win over the triggering event."""
    if inputs.issue_number is not None:
        number = inputs.issue_number
    elif context.issue_number is not None:
        number = context.issue_number
    else:
        raise ConfigError(NO_ISSUE_MESSAGE)

    repository = inputs.repository or context.repository
    if not repository:
        raise ConfigError("No repository provided and GITHUB_REPOSITORY is not set")
    owner, repo = split_repository(repository)
    return IssueRef(owner=owner, repo=repo, number=number)


__all__ = ["EventContext", "NO_ISSUE_MESSAGE", "resolve_issue_ref"]
