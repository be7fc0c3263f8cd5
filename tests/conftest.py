"""Pytest configuration for issueboard tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`), and provides an
in-memory stand-in for the GitHub API.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from issueboard.github_rest import GitHubAPIError, Issue, IssueRef  # noqa: E402
from issueboard.logging import configure_logging  # noqa: E402

PROJECT_FIELDS: list[dict[str, Any]] = [
    {"id": "F_TITLE", "name": "Title", "dataType": "TITLE"},
    {
        "id": "F_STATUS",
        "name": "Status",
        "dataType": "SINGLE_SELECT",
        "options": [
            {"id": "OPT_TODO", "name": "Todo"},
            {"id": "OPT_PROGRESS", "name": "In Progress"},
            {"id": "OPT_DONE", "name": "Done"},
        ],
    },
    {
        "id": "F_PRIORITY",
        "name": "Priority",
        "dataType": "SINGLE_SELECT",
        "options": [
            {"id": "OPT_HIGH", "name": "High"},
            {"id": "OPT_LOW", "name": "Low"},
        ],
    },
    {
        "id": "F_SPRINT",
        "name": "Sprint",
        "dataType": "ITERATION",
        "configuration": {
            "iterations": [
                {"id": "IT_1", "title": "Sprint 1"},
                {"id": "IT_2", "title": "Sprint 2"},
            ]
        },
    },
    {"id": "F_DUE", "name": "Due", "dataType": "DATE"},
    {"id": "F_NOTES", "name": "Notes", "dataType": "TEXT"},
    {"id": "F_ISBUG", "name": "IsBug", "dataType": "TEXT"},
]


class FakeGitHub:
    """Records every call; answers project GraphQL documents by operation name."""

    def __init__(
        self,
        *,
        issue: Issue | None = None,
        fields: list[dict[str, Any]] | None = None,
        project_exists: bool = True,
        item_id: str = "PVTI_item",
        add_item_error: str | None = None,
    ) -> None:
        self.issue = issue or Issue(node_id="I_node", number=7, title="Demo", body="")
        self.fields = PROJECT_FIELDS if fields is None else fields
        self.project_exists = project_exists
        self.item_id = item_id
        self.add_item_error = add_item_error
        self.calls: list[tuple[str, Any]] = []

    def get_issue(self, ref: IssueRef) -> Issue:
        self.calls.append(("get_issue", ref))
        return self.issue

    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        variables = variables or {}
        if "query ProjectFields" in query:
            self.calls.append(("fields", variables))
            if not self.project_exists:
                return {"node": None}
            return {"node": {"fields": {"nodes": self.fields}}}
        if "mutation AddProjectItem" in query:
            self.calls.append(("add_item", variables))
            if self.add_item_error:
                # Same shape as GitHubRestClient.graphql for an `errors` response
                raise GitHubAPIError(
                    f"GraphQL request failed: {self.add_item_error}",
                    response_text=str([{"message": self.add_item_error}]),
                )
            return {"addProjectV2ItemById": {"item": {"id": self.item_id}}}
        if "mutation UpdateProjectItemField" in query:
            self.calls.append(("update", variables))
            return {"updateProjectV2ItemFieldValue": {"projectV2Item": {"id": self.item_id}}}
        raise AssertionError(f"Unexpected GraphQL document: {query[:60]}")

    def updates(self) -> list[dict[str, Any]]:
        return [v for op, v in self.calls if op == "update"]


@pytest.fixture(autouse=True)
def _fresh_logger() -> None:
    # Bind the log handler to the stdout captured for the current test
    configure_logging(level="DEBUG")


@pytest.fixture
def fake_github() -> Callable[..., FakeGitHub]:
    return FakeGitHub
