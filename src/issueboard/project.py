"""GitHub Projects (v2) item & field operations.

The project's field schema is queried once per :class:`ProjectBoard` and turned
into one of three field kinds:

    * :class:`SingleSelectField`  - value must name one of ``options``
    * :class:`IterationField`     - value must name one of ``iterations``
    * :class:`ScalarField`        - text / number / date (anything else)

Matching of values and the shape of the update payload live in the pure
:func:`build_field_value`; :class:`ProjectBoard` only performs the GraphQL
round trips. A miss or an ambiguous match is a :class:`ProjectError` listing
what was available.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from .errors import ProjectError
from .github_rest import GitHubAPIError, GitHubRestClient, Issue, IssueRef
from .logging import get_logger

FIELDS_PAGE_SIZE = 100
DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)

PROJECT_FIELDS_QUERY = """
query ProjectFields($projectId: ID!, $first: Int!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      fields(first: $first) {
        nodes {
          ... on ProjectV2Field {
            id
            name
            dataType
          }
          ... on ProjectV2SingleSelectField {
            id
            name
            dataType
            options {
              id
              name
            }
          }
          ... on ProjectV2IterationField {
            id
            name
            dataType
            configuration {
              iterations {
                id
                title
              }
            }
          }
        }
      }
    }
  }
}
"""

ADD_ITEM_MUTATION = """
mutation AddProjectItem($projectId: ID!, $contentId: ID!) {
  addProjectV2ItemById(input: {projectId: $projectId, contentId: $contentId}) {
    item {
      id
    }
  }
}
"""

UPDATE_FIELD_MUTATION = """
mutation UpdateProjectItemField($projectId: ID!, $itemId: ID!, $fieldId: ID!, $value: ProjectV2FieldValue!) {
  updateProjectV2ItemFieldValue(
    input: {projectId: $projectId, itemId: $itemId, fieldId: $fieldId, value: $value}
  ) {
    projectV2Item {
      id
    }
  }
}
"""


@dataclass(frozen=True)
class Choice:
    """An option of a single-select field or an iteration of an iteration field."""

    id: str
    name: str


@dataclass(frozen=True)
class ScalarField:
    id: str
    name: str
    data_type: str = ""


@dataclass(frozen=True)
class SingleSelectField:
    id: str
    name: str
    options: tuple[Choice, ...] = ()


@dataclass(frozen=True)
class IterationField:
    id: str
    name: str
    iterations: tuple[Choice, ...] = ()


ProjectField = Union[ScalarField, SingleSelectField, IterationField]


def _choices(nodes: Any, label_key: str) -> tuple[Choice, ...]:
    out: list[Choice] = []
    if not isinstance(nodes, list):
        return ()
    for node in nodes:
        if not isinstance(node, Mapping):
            continue
        choice_id = node.get("id")
        label = node.get(label_key)
        if isinstance(choice_id, str) and isinstance(label, str):
            out.append(Choice(id=choice_id, name=label))
    return tuple(out)


def parse_field(payload: Mapping[str, Any]) -> ProjectField | None:
    """Classify one ``fields.nodes`` entry; ``None`` for entries with no id/name."""
    field_id = payload.get("id")
    name = payload.get("name")
    if not isinstance(field_id, str) or not isinstance(name, str):
        return None
    if isinstance(payload.get("options"), list):
        return SingleSelectField(id=field_id, name=name, options=_choices(payload["options"], "name"))
    configuration = payload.get("configuration")
    if isinstance(configuration, Mapping) and isinstance(configuration.get("iterations"), list):
        return IterationField(
            id=field_id,
            name=name,
            iterations=_choices(configuration["iterations"], "title"),
        )
    return ScalarField(id=field_id, name=name, data_type=str(payload.get("dataType") or ""))


def field_kind(field: ProjectField) -> str:
    if isinstance(field, SingleSelectField):
        return "single_select"
    if isinstance(field, IterationField):
        return "iteration"
    if isinstance(field, ScalarField):
        return "scalar"
    raise TypeError(f"Unsupported field type: {type(field).__name__}")


def stringify(value: Any) -> str:
    """Render a value the way it appears in JSON-ish text (``true``, ``a,b``)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(v) for v in value)
    return str(value)


def scalar_payload(value: Any) -> dict[str, Any]:
    """Shape a value for a text/number/date field.

    Precedence: ``YYYY-MM-DD`` string -> date, number -> number,
    bool -> boolean, anything else -> text.
    """
    if isinstance(value, str) and DATE_PATTERN.fullmatch(value):
        return {"date": value}
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return {"number": value}
    if isinstance(value, bool):
        return {"boolean": value}
    return {"text": stringify(value)}


def _names(items: Any) -> str:
    return ", ".join(item.name for item in items)


def matching_choices(choices: tuple[Choice, ...], name: str) -> list[Choice]:
    """Case-insensitive name matches, in schema order."""
    wanted = name.lower()
    return [c for c in choices if c.name.lower() == wanted]


def build_field_value(field: ProjectField, value: Any) -> dict[str, Any]:
    """Return the ``ProjectV2FieldValue`` payload for ``value`` on ``field``.

    The value must match exactly one option or iteration; none or several
    raise ``ProjectError``.
    """
    if isinstance(field, SingleSelectField):
        text = stringify(value)
        options = matching_choices(field.options, text)
        if not options:
            raise ProjectError(
                f'Value "{text}" not found in options for field "{field.name}". '
                f"Available options are: {_names(field.options)}"
            )
        if len(options) > 1:
            raise ProjectError(
                f'Value "{text}" matches more than one option for field "{field.name}": '
                f"{_names(options)}. Available options are: {_names(field.options)}"
            )
        return {"singleSelectOptionId": options[0].id}
    if isinstance(field, IterationField):
        text = stringify(value)
        iterations = matching_choices(field.iterations, text)
        if not iterations:
            raise ProjectError(f'Iteration "{text}" not found in field "{field.name}"')
        if len(iterations) > 1:
            raise ProjectError(
                f'Iteration "{text}" matches more than one iteration in field "{field.name}": '
                f"{_names(iterations)}"
            )
        return {"iterationId": iterations[0].id}
    if isinstance(field, ScalarField):
        return scalar_payload(value)
    raise TypeError(f"Unsupported field type: {type(field).__name__}")


class ProjectBoard:
    """Operations against one Projects (v2) board, addressed by node id."""

    def __init__(self, client: GitHubRestClient, project_id: str):
        self.client = client
        self.project_id = project_id
        self.logger = get_logger()
        self._fields: list[ProjectField] | None = None

    # ---------------- schema ----------------
    def fields(self) -> list[ProjectField]:
        if self._fields is not None:
            return self._fields
        self.logger.debug("Fetching project fields", project_id=self.project_id)
        data = self.client.graphql(
            PROJECT_FIELDS_QUERY, {"projectId": self.project_id, "first": FIELDS_PAGE_SIZE}
        )
        node = data.get("node")
        if not isinstance(node, Mapping):
            raise ProjectError(f"Project {self.project_id} not found or not accessible")
        fields_payload = node.get("fields")
        nodes = fields_payload.get("nodes") if isinstance(fields_payload, Mapping) else None
        parsed: list[ProjectField] = []
        if isinstance(nodes, list):
            for entry in nodes:
                if isinstance(entry, Mapping):
                    field = parse_field(entry)
                    if field is not None:
                        parsed.append(field)
        self._fields = parsed
        return parsed

    def _single_field(self, field_name: str, matches: list[Any]) -> Any:
        if not matches:
            raise ProjectError(
                f'No field named "{field_name}" found in project. '
                f"Available fields are: {_names(self.fields())}"
            )
        if len(matches) > 1:
            raise ProjectError(
                f'Field name "{field_name}" matches more than one field in project: '
                f"{_names(matches)}. Available fields are: {_names(self.fields())}"
            )
        return matches[0]

    def find_status_field(self, field_name: str) -> SingleSelectField:
        """Exact (case-sensitive) name match among single-select fields."""
        matches = [
            f for f in self.fields() if isinstance(f, SingleSelectField) and f.name == field_name
        ]
        return self._single_field(field_name, matches)

    def find_field(self, field_name: str) -> ProjectField:
        """Case-insensitive name match among all fields."""
        wanted = field_name.lower()
        matches = [f for f in self.fields() if f.name.lower() == wanted]
        return self._single_field(field_name, matches)

    # ---------------- items ----------------
    def add_issue(self, issue: Issue) -> str:
        return self.add_content(issue.node_id)

    def add_issue_by_ref(self, ref: IssueRef) -> str:
        return self.add_issue(self.client.get_issue(ref))

    def add_content(self, content_id: str) -> str:
        self.logger.debug("Adding content to project", project_id=self.project_id, content_id=content_id)
        data = self.client.graphql(
            ADD_ITEM_MUTATION, {"projectId": self.project_id, "contentId": content_id}
        )
        add_payload = data.get("addProjectV2ItemById")
        item = add_payload.get("item") if isinstance(add_payload, Mapping) else None
        item_id = item.get("id") if isinstance(item, Mapping) else None
        if not isinstance(item_id, str):
            raise GitHubAPIError("addProjectV2ItemById returned no item id")
        return item_id

    # ---------------- field values ----------------
    def _update(self, item_id: str, field: ProjectField, value: dict[str, Any]) -> None:
        self.logger.debug(
            "Updating project field", item_id=item_id, field_name=field.name, field_value=value
        )
        self.client.graphql(
            UPDATE_FIELD_MUTATION,
            {
                "projectId": self.project_id,
                "itemId": item_id,
                "fieldId": field.id,
                "value": value,
            },
        )

    def set_status(self, item_id: str, field_name: str, column_name: str) -> Choice:
        field = self.find_status_field(field_name)
        options = matching_choices(field.options, column_name)
        if not options:
            raise ProjectError(
                f'Column "{column_name}" not found in project. '
                f"Available columns are: {_names(field.options)}"
            )
        if len(options) > 1:
            raise ProjectError(
                f'Column "{column_name}" matches more than one column in project: '
                f"{_names(options)}. Available columns are: {_names(field.options)}"
            )
        option = options[0]
        self._update(item_id, field, {"singleSelectOptionId": option.id})
        return option

    def set_field_value(self, item_id: str, field_name: str, value: Any) -> dict[str, Any]:
        field = self.find_field(field_name)
        payload = build_field_value(field, value)
        self._update(item_id, field, payload)
        return payload


__all__ = [
    "Choice",
    "IterationField",
    "ProjectBoard",
    "ProjectField",
    "ScalarField",
    "SingleSelectField",
    "build_field_value",
    "field_kind",
    "matching_choices",
    "parse_field",
    "scalar_payload",
    "stringify",
]
