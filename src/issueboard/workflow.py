"""GitHub Actions workflow commands: outputs, failure annotation, masking."""

from __future__ import annotations

import os
import sys
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def issue_command(command: str, message: str, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    out.write(f"::{command}::{_escape_data(message)}\n")
    out.flush()


def set_output(
    name: str,
    value: str,
    *,
    environ: Mapping[str, str] | None = None,
    stream: TextIO | None = None,
) -> None:
    """Append ``name=value`` to ``$GITHUB_OUTPUT``; print it when not on a runner."""
    env = os.environ if environ is None else environ
    output_file = env.get("GITHUB_OUTPUT")
    if not output_file:
        out = stream or sys.stdout
        out.write(f"{name}={value}\n")
        return
    if "\n" in value or "\r" in value:
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        entry = f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
    else:
        entry = f"{name}={value}\n"
    with Path(output_file).open("a", encoding="utf-8") as fh:
        fh.write(entry)


def set_failed(message: str, stream: TextIO | None = None) -> int:
    """Emit an error annotation and return the failing exit code."""
    issue_command("error", message, stream)
    return 1


def mask(value: str, stream: TextIO | None = None) -> None:
    if value:
        issue_command("add-mask", value, stream)


__all__ = ["issue_command", "mask", "set_failed", "set_output"]
