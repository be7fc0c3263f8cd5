"""issueboard CLI.

Subcommands:
  run      -> add an issue to a project board and set its fields (the action step)
  extract  -> preview values extracted from an issue body (no network)
  fields   -> list a project's fields, options and iterations as JSON

Inputs for ``run`` come from ``INPUT_*`` variables (as set by the Actions
runner), an optional YAML inputs file, and flags, in increasing precedence.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from issueboard import config as cfg
from issueboard.action import run_from_env
from issueboard.errors import ConfigError, failure_message
from issueboard.extraction import extract, parse_mappings, resolve
from issueboard.github_rest import GitHubRestClient
from issueboard.logging import configure_from_env
from issueboard.project import (
    IterationField,
    ProjectBoard,
    SingleSelectField,
    field_kind,
)
from issueboard.workflow import set_failed

_MAX_HELP_WIDTH = 100
TOKEN_ENV_FALLBACKS = ("GITHUB_TOKEN", "GH_TOKEN")


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="issueboard", description="Add issues to GitHub project boards"
    )
    p.add_argument(
        "--env-file",
        type=Path,
        help="Load environment variables from this file (default: ./.env when present)",
    )
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    pr = sub.add_parser("run", help="Add an issue to a project and set its fields")
    pr.add_argument("--config", type=Path, help="YAML file of action inputs")
    pr.add_argument("--token", help="GitHub token (env: INPUT_GITHUB-TOKEN, GITHUB_TOKEN)")
    pr.add_argument("--project-id", help="Project node id")
    pr.add_argument("--column-name", help="Status option to place the item in")
    pr.add_argument("--status-field-name", help="Name of the status field (default: Status)")
    pr.add_argument("--issue-number", help="Issue number (default: triggering event issue)")
    pr.add_argument("--repo", help="Repository owner/repo (default: GITHUB_REPOSITORY)")
    pr.add_argument("--mappings", help="JSON object of project field name -> extraction rule")

    pe = sub.add_parser("extract", help="Preview values extracted from an issue body")
    pe.add_argument("body", nargs="?", type=Path, help="File with the issue body (default: stdin)")
    pe.add_argument("--title", default="", help="Issue title")
    pe.add_argument("--label", action="append", default=[], help="Issue label (repeatable)")
    pe.add_argument("--mappings", help="JSON object of project field name -> extraction rule")

    pf = sub.add_parser("fields", help="List project fields as JSON")
    pf.add_argument("--project-id", required=True, help="Project node id")
    pf.add_argument("--token", help="GitHub token (env: GITHUB_TOKEN / GH_TOKEN)")
    return p


def _load_env_file(path: Path | None) -> None:
    if path is not None:
        if not path.exists():
            raise ConfigError(f"Environment file not found: {path}")
        load_dotenv(path)
        return
    default = Path(".env")
    if default.exists():
        load_dotenv(default)


def _fallback_token(explicit: str | None) -> str | None:
    if explicit:
        return explicit
    if cfg.get_input(cfg.GITHUB_TOKEN):
        return None
    for name in TOKEN_ENV_FALLBACKS:
        value = os.environ.get(name)
        if value:
            return value
    return None


def _known_tokens(args: argparse.Namespace) -> list[str]:
    """Every token this invocation may have used, for redaction."""
    candidates = [getattr(args, "token", None), cfg.get_input(cfg.GITHUB_TOKEN)]
    candidates.extend(os.environ.get(name) for name in TOKEN_ENV_FALLBACKS)
    return [value for value in candidates if value]


def _cmd_run(args: argparse.Namespace) -> int:
    overrides = {
        cfg.GITHUB_TOKEN: _fallback_token(args.token),
        cfg.PROJECT_ID: args.project_id,
        cfg.COLUMN_NAME: args.column_name,
        cfg.STATUS_FIELD_NAME: args.status_field_name,
        cfg.ISSUE_NUMBER: args.issue_number,
        cfg.REPOSITORY: args.repo,
        cfg.CUSTOM_FIELD_MAPPINGS: args.mappings,
    }
    return run_from_env(overrides=overrides, config_path=args.config)


def _cmd_extract(args: argparse.Namespace) -> int:
    body = args.body.read_text(encoding="utf-8") if args.body else sys.stdin.read()
    data = extract(body, args.title, args.label)
    payload: dict[str, Any] = {"extracted": data.as_dict()}
    if args.mappings:
        payload["resolved"] = {
            m.field_name: resolve(m.rule, data) for m in parse_mappings(args.mappings)
        }
    print(json.dumps(payload, indent=2))
    return 0


def _describe_field(field: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {"id": field.id, "name": field.name, "kind": field_kind(field)}
    if isinstance(field, SingleSelectField):
        entry["options"] = [o.name for o in field.options]
    elif isinstance(field, IterationField):
        entry["iterations"] = [it.name for it in field.iterations]
    else:
        entry["data_type"] = field.data_type
    return entry


def _cmd_fields(args: argparse.Namespace) -> int:
    token = _fallback_token(args.token) or cfg.get_input(cfg.GITHUB_TOKEN)
    if not token:
        raise ConfigError(f"Input required and not supplied: {cfg.GITHUB_TOKEN}")
    board = ProjectBoard(GitHubRestClient.from_env(token), args.project_id)
    print(json.dumps([_describe_field(f) for f in board.fields()], indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    handlers = {
        "run": _cmd_run,
        "extract": _cmd_extract,
        "fields": _cmd_fields,
    }
    try:
        _load_env_file(args.env_file)
        configure_from_env()
        return handlers[args.cmd](args)
    except Exception as exc:
        return set_failed(failure_message(exc, _known_tokens(args)))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
