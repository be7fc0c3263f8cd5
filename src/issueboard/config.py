from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml

from .errors import ConfigError
from .extraction import FieldMapping, parse_mappings

GITHUB_TOKEN = "github-token"
PROJECT_ID = "project-id"
COLUMN_NAME = "column-name"
STATUS_FIELD_NAME = "status-field-name"
ISSUE_NUMBER = "issue-number"
REPOSITORY = "repository"
CUSTOM_FIELD_MAPPINGS = "custom-field-mappings"

INPUT_NAMES = (
    GITHUB_TOKEN,
    PROJECT_ID,
    COLUMN_NAME,
    STATUS_FIELD_NAME,
    ISSUE_NUMBER,
    REPOSITORY,
    CUSTOM_FIELD_MAPPINGS,
)

DEFAULT_STATUS_FIELD = "Status"


@dataclass
class ActionInputs:
    github_token: str = field(repr=False)
    project_id: str
    column_name: str | None = None
    status_field_name: str = DEFAULT_STATUS_FIELD
    issue_number: int | None = None
    repository: str | None = None
    field_mappings: list[FieldMapping] = field(default_factory=list)


def input_env_name(name: str) -> str:
    """Environment variable the runner uses for action input ``name``."""
    return "INPUT_" + name.replace(" ", "_").upper()


def get_input(name: str, environ: Mapping[str, str] | None = None, *, required: bool = False) -> str:
    env = os.environ if environ is None else environ
    value = (env.get(input_env_name(name)) or "").strip()
    if required and not value:
        raise ConfigError(f"Input required and not supplied: {name}")
    return value


def split_repository(value: str) -> tuple[str, str]:
    owner, sep, repo = value.strip().partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise ConfigError(f"Invalid repository '{value}'; expected format owner/repo")
    return owner, repo


def _stringify_input(name: str, value: Any) -> str:
    if value is None:
        return ""
    if name == CUSTOM_FIELD_MAPPINGS and isinstance(value, Mapping):
        # YAML files may spell the mappings as a nested mapping
        return json.dumps(dict(value))
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def load_inputs_file(path: str | Path) -> dict[str, str]:
    """Read action inputs from a YAML file keyed by input name (local runs)."""
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Inputs file not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in inputs file {p}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Inputs file {p} must contain a mapping of input names")
    data = cast(dict[str, Any], raw)
    unknown = sorted(k for k in data if k not in INPUT_NAMES)
    if unknown:
        raise ConfigError(
            f"Unknown inputs in {p}: {', '.join(unknown)} (expected: {', '.join(INPUT_NAMES)})"
        )
    return {k: _stringify_input(k, v) for k, v in data.items()}


def _parse_issue_number(value: str) -> int | None:
    if not value:
        return None
    if value.startswith("-") and value[1:].isascii() and value[1:].isdigit():
        raise ConfigError(f"Invalid issue-number '{value}'; expected a positive integer")
    # int() alone would accept "4_2" and non-ASCII digits
    if not (value.isascii() and value.isdigit()):
        raise ConfigError(f"Invalid issue-number '{value}'; expected an integer")
    number = int(value)
    if number <= 0:
        raise ConfigError(f"Invalid issue-number '{value}'; expected a positive integer")
    return number


def load_inputs(
    environ: Mapping[str, str] | None = None,
    *,
    overrides: Mapping[str, str | None] | None = None,
    config_path: str | Path | None = None,
) -> ActionInputs:
    """Collect and validate action inputs.

    Precedence: ``overrides`` (CLI flags) > ``INPUT_*`` environment > YAML file.
    All validation happens here so nothing remote is touched with bad input.
    """
    env = os.environ if environ is None else environ
    raw: dict[str, str] = load_inputs_file(config_path) if config_path else {}
    for name in INPUT_NAMES:
        value = get_input(name, env)
        if value:
            raw[name] = value
    for name, value in (overrides or {}).items():
        if value is not None and str(value).strip():
            raw[name] = str(value).strip()

    for name in (GITHUB_TOKEN, PROJECT_ID):
        if not raw.get(name):
            raise ConfigError(f"Input required and not supplied: {name}")

    repository = raw.get(REPOSITORY) or None
    if repository:
        split_repository(repository)

    return ActionInputs(
        github_token=raw[GITHUB_TOKEN],
        project_id=raw[PROJECT_ID],
        column_name=raw.get(COLUMN_NAME) or None,
        status_field_name=raw.get(STATUS_FIELD_NAME) or DEFAULT_STATUS_FIELD,
        issue_number=_parse_issue_number(raw.get(ISSUE_NUMBER, "")),
        repository=repository,
        field_mappings=parse_mappings(raw.get(CUSTOM_FIELD_MAPPINGS) or "{}"),
    )


__all__ = [
    "ActionInputs",
    "DEFAULT_STATUS_FIELD",
    "INPUT_NAMES",
    "get_input",
    "input_env_name",
    "load_inputs",
    "load_inputs_file",
    "split_repository",
]
