from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import requests

from . import __version__
from .errors import IssueBoardError

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"
USER_AGENT = f"issueboard/{__version__}"
HTTP_ERROR_STATUS = 400
REQUEST_TIMEOUT = 30


class GitHubAPIError(IssueBoardError):
    """Raised when the GitHub REST/GraphQL API returns an error."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text


@dataclass(frozen=True)
class IssueRef:
    owner: str
    repo: str
    number: int

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class Issue:
    node_id: str
    number: int
    title: str
    body: str
    labels: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Issue:
        node_id = payload.get("node_id")
        if not isinstance(node_id, str) or not node_id:
            raise GitHubAPIError("Issue response missing node_id")
        labels: list[str] = []
        for entry in payload.get("labels") or []:
            if isinstance(entry, Mapping):
                name = entry.get("name")
                if isinstance(name, str):
                    labels.append(name)
            elif isinstance(entry, str):
                labels.append(entry)
        return cls(
            node_id=node_id,
            number=int(payload.get("number") or 0),
            title=str(payload.get("title") or ""),
            body=str(payload.get("body") or ""),
            labels=tuple(labels),
        )


@dataclass
class GitHubRestClient:
    """Lightweight REST/GraphQL client for the calls issueboard makes.

    One request per call, no retry: any transport or API error propagates.
    """

    token: str
    base_url: str = DEFAULT_API_URL
    graphql_url: str = DEFAULT_GRAPHQL_URL
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Authorization", f"Bearer {self.token}")
        self._session.headers.setdefault("Accept", "application/vnd.github+json")
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    @classmethod
    def from_env(
        cls, token: str, environ: Mapping[str, str] | None = None
    ) -> GitHubRestClient:
        """Honour ``GITHUB_API_URL`` / ``GITHUB_GRAPHQL_URL`` as set on GHES runners."""
        env = os.environ if environ is None else environ
        return cls(
            token=token,
            base_url=env.get("GITHUB_API_URL") or DEFAULT_API_URL,
            graphql_url=env.get("GITHUB_GRAPHQL_URL") or DEFAULT_GRAPHQL_URL,
        )

    # ---- transport -----------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        url = (
            path
            if path.startswith("http")
            else f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
        )
        response = self._session.request(
            method,
            url,
            params=params,
            json=json_body,
            headers=self._session.headers,
            timeout=REQUEST_TIMEOUT,
        )
        if response.status_code >= HTTP_ERROR_STATUS:
            raise GitHubAPIError(
                f"GitHub API {method} {url} failed with {response.status_code}: {response.text}",
                status=response.status_code,
                response_text=response.text,
            )
        if response.text:
            return response.json()
        return None

    # ---- REST ----------------------------------------------------------
    def get_issue(self, ref: IssueRef) -> Issue:
        data = self._request("GET", f"/repos/{ref.owner}/{ref.repo}/issues/{ref.number}")
        if not isinstance(data, Mapping):
            raise GitHubAPIError(f"Unexpected issue payload for {ref.full_name}#{ref.number}")
        return Issue.from_payload(data)

    # ---- GraphQL -------------------------------------------------------
    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a GraphQL document and return its ``data`` object."""
        payload = {"query": query, "variables": variables or {}}
        data = self._request("POST", self.graphql_url, json_body=payload)
        if not isinstance(data, Mapping):
            raise GitHubAPIError("GraphQL response was not a JSON object")
        errors = data.get("errors")
        if errors:
            messages = [
                str(err.get("message")) if isinstance(err, Mapping) else str(err)
                for err in errors
            ] if isinstance(errors, list) else [str(errors)]
            raise GitHubAPIError(
                f"GraphQL request failed: {'; '.join(messages)}",
                response_text=str(errors),
            )
        result = data.get("data")
        return dict(result) if isinstance(result, Mapping) else {}


__all__ = [
    "GitHubAPIError",
    "GitHubRestClient",
    "Issue",
    "IssueRef",
]
