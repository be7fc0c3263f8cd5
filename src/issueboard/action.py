"""Step orchestration: add an issue to a project and fill in its fields.

Sequence for one run (no retries, first error aborts)::

    resolve issue ref -> fetch issue -> add to project
        -> set status column (when column-name is given)
        -> extract values, apply each custom field mapping in order

``item-id`` is only emitted once every requested action has succeeded.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import ActionInputs, load_inputs
from .context import EventContext, resolve_issue_ref
from .errors import failure_message
from .extraction import extract, resolve
from .github_rest import GitHubRestClient
from .logging import StructuredLogger, get_logger
from .project import ProjectBoard, stringify
from .workflow import mask, set_failed, set_output

ITEM_ID_OUTPUT = "item-id"


@dataclass
class ActionResult:
    item_id: str
    status: str | None = None
    fields_set: dict[str, Any] = field(default_factory=dict)
    fields_skipped: list[str] = field(default_factory=list)


def run_action(
    inputs: ActionInputs,
    context: EventContext,
    *,
    client: GitHubRestClient | None = None,
    logger: StructuredLogger | None = None,
) -> ActionResult:
    log = logger or get_logger()
    ref = resolve_issue_ref(inputs, context)
    api = client or GitHubRestClient.from_env(inputs.github_token)
    board = ProjectBoard(api, inputs.project_id)

    issue = api.get_issue(ref)
    log.info(
        f"Adding issue #{ref.number} from {ref.full_name} to project {inputs.project_id}",
        issue_number=ref.number,
    )
    with log.timed_operation("add_project_item", project_id=inputs.project_id):
        item_id = board.add_issue(issue)
    log.info(f"Issue successfully added to project with item ID: {item_id}", item_id=item_id)
    result = ActionResult(item_id=item_id)

    if inputs.column_name:
        with log.timed_operation("set_status", item_id=item_id):
            board.set_status(item_id, inputs.status_field_name, inputs.column_name)
        result.status = inputs.column_name
        log.info(f'Issue placed in column: "{inputs.column_name}"')

    if inputs.field_mappings:
        data = extract(issue.body, issue.title, issue.labels)
        log.debug("Extracted issue data", extracted=data.as_dict())
        with log.timed_operation("apply_custom_fields", item_id=item_id):
            for mapping in inputs.field_mappings:
                value = resolve(mapping.rule, data)
                if value is None:
                    log.debug(f'No value for custom field "{mapping.field_name}"; skipping')
                    result.fields_skipped.append(mapping.field_name)
                    continue
                board.set_field_value(item_id, mapping.field_name, value)
                result.fields_set[mapping.field_name] = value
                log.info(f'Set custom field "{mapping.field_name}" to "{stringify(value)}"')

    log.log_operation(
        "project_item_complete",
        item_id=item_id,
        fields_set=len(result.fields_set),
        fields_skipped=len(result.fields_skipped),
    )
    return result


def run_from_env(
    environ: Mapping[str, str] | None = None,
    *,
    overrides: Mapping[str, str | None] | None = None,
    config_path: str | Path | None = None,
    client: GitHubRestClient | None = None,
) -> int:
    """Entry point used by the action: returns the process exit code."""
    env = os.environ if environ is None else environ
    log = get_logger()
    secrets: list[str] = []
    try:
        inputs = load_inputs(env, overrides=overrides, config_path=config_path)
        secrets.append(inputs.github_token)
        if env.get("GITHUB_ACTIONS") == "true":
            mask(inputs.github_token)
        context = EventContext.from_env(env)
        api = client or GitHubRestClient.from_env(inputs.github_token, env)
        result = run_action(inputs, context, client=api, logger=log)
    except Exception as exc:
        message = failure_message(exc, secrets)
        log.log_error("issueboard run failed", error=message)
        return set_failed(message)
    set_output(ITEM_ID_OUTPUT, result.item_id, environ=env)
    return 0


__all__ = ["ActionResult", "ITEM_ID_OUTPUT", "run_action", "run_from_env"]
