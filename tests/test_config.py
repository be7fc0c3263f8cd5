from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

from issueboard.config import (
    input_env_name,
    get_input,
    load_inputs,
)
from issueboard.errors import ConfigError
from issueboard.extraction import FieldRule, LabelContainsRule

BASE_ENV = {
    "INPUT_GITHUB-TOKEN": "ghp_exampletoken",
    "INPUT_PROJECT-ID": "PVT_kwDO",
}


def test_input_env_name_follows_runner_convention() -> None:
    assert input_env_name("github-token") == "INPUT_GITHUB-TOKEN"
    assert input_env_name("my input") == "INPUT_MY_INPUT"


def test_get_input_required_missing() -> None:
    with pytest.raises(ConfigError, match="Input required and not supplied: project-id"):
        get_input("project-id", {}, required=True)


def test_get_input_strips_whitespace() -> None:
    assert get_input("column-name", {"INPUT_COLUMN-NAME": "  Todo \n"}) == "Todo"


def test_defaults() -> None:
    inputs = load_inputs(BASE_ENV)
    assert inputs.github_token == "ghp_exampletoken"
    assert inputs.project_id == "PVT_kwDO"
    assert inputs.column_name is None
    assert inputs.status_field_name == "Status"
    assert inputs.issue_number is None
    assert inputs.repository is None
    assert inputs.field_mappings == []


def test_token_not_in_repr() -> None:
    assert "ghp_exampletoken" not in repr(load_inputs(BASE_ENV))


@pytest.mark.parametrize("missing", ["INPUT_GITHUB-TOKEN", "INPUT_PROJECT-ID"])
def test_required_inputs(missing: str) -> None:
    env = {k: v for k, v in BASE_ENV.items() if k != missing}
    with pytest.raises(ConfigError, match="Input required and not supplied"):
        load_inputs(env)


def test_full_inputs() -> None:
    env = dict(
        BASE_ENV,
        **{
            "INPUT_COLUMN-NAME": "In Progress",
            "INPUT_STATUS-FIELD-NAME": "Stage",
            "INPUT_ISSUE-NUMBER": "42",
            "INPUT_REPOSITORY": "acme/widgets",
            "INPUT_CUSTOM-FIELD-MAPPINGS": json.dumps(
                {"Priority": "field:priority", "IsBug": "label-contains:bug"}
            ),
        },
    )
    inputs = load_inputs(env)
    assert inputs.column_name == "In Progress"
    assert inputs.status_field_name == "Stage"
    assert inputs.issue_number == 42
    assert inputs.repository == "acme/widgets"
    assert [(m.field_name, m.rule) for m in inputs.field_mappings] == [
        ("Priority", FieldRule("priority")),
        ("IsBug", LabelContainsRule("bug")),
    ]


@pytest.mark.parametrize("value", ["abc", "0", "-3", "4_2", "\u0664\u0662", "+5", "1.0"])
def test_invalid_issue_number(value: str) -> None:
    with pytest.raises(ConfigError, match="issue-number"):
        load_inputs(dict(BASE_ENV, **{"INPUT_ISSUE-NUMBER": value}))


@pytest.mark.parametrize("value", ["acme", "acme/", "/widgets", "acme/widgets/extra"])
def test_invalid_repository(value: str) -> None:
    with pytest.raises(ConfigError, match="owner/repo"):
        load_inputs(dict(BASE_ENV, INPUT_REPOSITORY=value))


def test_malformed_mappings() -> None:
    with pytest.raises(ConfigError, match="custom-field-mappings"):
        load_inputs(dict(BASE_ENV, **{"INPUT_CUSTOM-FIELD-MAPPINGS": "{oops"}))


def test_yaml_file_with_env_and_override_precedence(tmp_path: Path) -> None:
    inputs_file = tmp_path / "inputs.yaml"
    inputs_file.write_text(
        textwrap.dedent(
            """\
            project-id: PVT_from_file
            column-name: Todo
            issue-number: 5
            custom-field-mappings:
              Team: "static:core"
            """
        )
    )
    env = {"INPUT_GITHUB-TOKEN": "tkn", "INPUT_COLUMN-NAME": "Done"}
    inputs = load_inputs(
        env, overrides={"issue-number": "9", "repository": None}, config_path=inputs_file
    )
    assert inputs.project_id == "PVT_from_file"
    assert inputs.column_name == "Done"
    assert inputs.issue_number == 9
    assert inputs.field_mappings[0].field_name == "Team"


def test_yaml_file_unknown_keys(tmp_path: Path) -> None:
    inputs_file = tmp_path / "inputs.yaml"
    inputs_file.write_text("project-id: x\ncolumn: Todo\n")
    with pytest.raises(ConfigError, match="Unknown inputs"):
        load_inputs({"INPUT_GITHUB-TOKEN": "tkn"}, config_path=inputs_file)


def test_yaml_file_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_inputs(BASE_ENV, config_path=tmp_path / "nope.yaml")
