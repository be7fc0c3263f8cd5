from __future__ import annotations

import json
from pathlib import Path

import pytest

from issueboard import cli


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in (
        "GITHUB_TOKEN",
        "GH_TOKEN",
        "INPUT_GITHUB-TOKEN",
        "INPUT_PROJECT-ID",
        "RUNNER_DEBUG",
        "ISSUEBOARD_LOG_LEVEL",
    ):
        # setenv first so teardown also removes values loaded from .env files
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_extract_prints_data_and_resolved_rules(tmp_path: Path, capsys) -> None:
    body = tmp_path / "body.md"
    body.write_text("### Priority\nHigh\n\nteam: core\n")
    code = cli.main(
        [
            "extract",
            str(body),
            "--title",
            "Crash",
            "--label",
            "bug",
            "--mappings",
            '{"Priority": "field:priority", "IsBug": "label-contains:bug", "X": "nope"}',
        ]
    )
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["extracted"] == {
        "title": "Crash",
        "labels": ["bug"],
        "priority": "High",
        "team": "core",
    }
    assert payload["resolved"] == {"Priority": "High", "IsBug": True, "X": None}


def test_run_missing_token_fails(capsys) -> None:
    code = cli.main(["run", "--project-id", "PVT_1", "--issue-number", "1", "--repo", "a/b"])
    assert code == 1
    assert "::error::Input required and not supplied: github-token" in capsys.readouterr().out


def test_run_uses_flags_and_token_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def _fake_run_from_env(**kwargs: object) -> int:
        captured.update(kwargs)
        return 0

    monkeypatch.setenv("GH_TOKEN", "gh-cli-token")
    monkeypatch.setattr(cli, "run_from_env", _fake_run_from_env)
    code = cli.main(
        ["run", "--project-id", "PVT_1", "--column-name", "Todo", "--mappings", "{}"]
    )
    assert code == 0
    overrides = captured["overrides"]
    assert isinstance(overrides, dict)
    assert overrides["github-token"] == "gh-cli-token"
    assert overrides["project-id"] == "PVT_1"
    assert overrides["column-name"] == "Todo"
    assert overrides["issue-number"] is None


def test_env_file_is_loaded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("GITHUB_TOKEN=from-dotenv\n")
    seen: dict[str, object] = {}
    monkeypatch.setattr(cli, "run_from_env", lambda **kw: seen.update(kw) or 0)
    assert cli.main(["run", "--project-id", "PVT_1"]) == 0
    assert seen["overrides"]["github-token"] == "from-dotenv"  # type: ignore[index]


def test_fields_lists_kinds(monkeypatch: pytest.MonkeyPatch, capsys, fake_github) -> None:
    gh = fake_github()
    monkeypatch.setenv("GITHUB_TOKEN", "tkn")
    monkeypatch.setattr(
        cli.GitHubRestClient, "from_env", classmethod(lambda cls, token, environ=None: gh)
    )
    assert cli.main(["fields", "--project-id", "PVT_1"]) == 0
    listing = json.loads(capsys.readouterr().out)
    by_name = {entry["name"]: entry for entry in listing}
    assert by_name["Status"]["options"] == ["Todo", "In Progress", "Done"]
    assert by_name["Sprint"]["kind"] == "iteration"
    assert by_name["Due"] == {"id": "F_DUE", "name": "Due", "kind": "scalar", "data_type": "DATE"}


def test_fields_failure_redacts_dotenv_token(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    (tmp_path / ".env").write_text("GH_TOKEN=plain-secret-value\n")

    def _rejecting_client(cls, token, environ=None):  # noqa: ANN001
        raise RuntimeError(f"token {token} was rejected")

    monkeypatch.setattr(cli.GitHubRestClient, "from_env", classmethod(_rejecting_client))
    assert cli.main(["fields", "--project-id", "PVT_1"]) == 1
    out = capsys.readouterr().out
    assert "plain-secret-value" not in out
    assert "::error::token <redacted> was rejected" in out
