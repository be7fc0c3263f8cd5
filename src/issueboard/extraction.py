"""Heuristic extraction of field values from issue text, plus mapping rules.

Two scans run over the issue body:

* issue-form blocks, ``### Heading`` followed by the answer line
* YAML-ish ``key: value`` pairs (value optionally quoted)

Keys are lowercased; within and across scans the last match wins. ``title``
and ``labels`` always come from the issue itself and are never replaced by a
scan. Nothing is validated against an expected schema: callers must treat any
key as optional.

Mapping rules are the strings configured in ``custom-field-mappings``::

    field:<name>              value extracted under <name>, or absent
    label-contains:<text>     True if any label contains <text>, else False
    static:<value>            <value> verbatim

Any other text parses to :class:`UnknownRule`, which always resolves to
absent so the field is skipped.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from .errors import ConfigError

HEADING_PATTERN = re.compile(r"### ([^\n]+)\s*\n\s*([^\n#]+)")
KEY_VALUE_PATTERN = re.compile(r"(\w+):\s*[\"']?([^\"'\n]+)[\"']?", re.ASCII)

FIELD_PREFIX = "field:"
LABEL_CONTAINS_PREFIX = "label-contains:"
STATIC_PREFIX = "static:"

RESERVED_KEYS = frozenset({"title", "labels"})

Value = Union[str, bool, int, float, list[str]]


@dataclass
class ExtractedData:
    title: str
    labels: list[str]
    fields: dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> Value | None:
        key = name.strip().lower()
        if key == "title":
            return self.title
        if key == "labels":
            return list(self.labels)
        return self.fields.get(key)

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"title": self.title, "labels": list(self.labels)}
        data.update(self.fields)
        return data


def _label_name(label: Any) -> str:
    if isinstance(label, Mapping):
        return str(label.get("name") or "")
    return str(label)


def extract(body: str | None, title: str, labels: Iterable[Any] = ()) -> ExtractedData:
    """Scan ``body`` for form answers and ``key: value`` pairs."""
    data = ExtractedData(title=title, labels=[_label_name(lbl) for lbl in labels])
    text = body or ""
    for m in HEADING_PATTERN.finditer(text):
        _store(data, m.group(1), m.group(2))
    for m in KEY_VALUE_PATTERN.finditer(text):
        _store(data, m.group(1), m.group(2))
    return data


def _store(data: ExtractedData, raw_key: str, raw_value: str) -> None:
    key = raw_key.strip().lower()
    if key in RESERVED_KEYS:
        return
    data.fields[key] = raw_value.strip()


# ---- rules ---------------------------------------------------------------


@dataclass(frozen=True)
class FieldRule:
    name: str


@dataclass(frozen=True)
class LabelContainsRule:
    substring: str


@dataclass(frozen=True)
class StaticRule:
    value: str


@dataclass(frozen=True)
class UnknownRule:
    raw: str


Rule = Union[FieldRule, LabelContainsRule, StaticRule, UnknownRule]


def parse_rule(text: str) -> Rule:
    if text.startswith(FIELD_PREFIX):
        return FieldRule(text[len(FIELD_PREFIX):].strip().lower())
    if text.startswith(LABEL_CONTAINS_PREFIX):
        return LabelContainsRule(text[len(LABEL_CONTAINS_PREFIX):])
    if text.startswith(STATIC_PREFIX):
        return StaticRule(text[len(STATIC_PREFIX):])
    return UnknownRule(text)


def resolve(rule: Rule, data: ExtractedData) -> Value | None:
    """Return the value ``rule`` yields for ``data``; ``None`` means skip."""
    if isinstance(rule, FieldRule):
        return data.get(rule.name)
    if isinstance(rule, LabelContainsRule):
        needle = rule.substring.lower()
        return any(needle in label.lower() for label in data.labels)
    if isinstance(rule, StaticRule):
        return rule.value
    if isinstance(rule, UnknownRule):
        return None
    raise TypeError(f"Unsupported rule type: {type(rule).__name__}")


@dataclass(frozen=True)
class FieldMapping:
    field_name: str
    rule: Rule


def parse_mappings(raw: str | None) -> list[FieldMapping]:
    """Decode the ``custom-field-mappings`` JSON object, keeping declared order."""
    if raw is None or not raw.strip():
        return []
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid custom-field-mappings JSON: {exc}") from exc
    if not isinstance(decoded, dict):
        raise ConfigError("custom-field-mappings must be a JSON object of field name -> rule")
    mappings: list[FieldMapping] = []
    for name, rule_text in decoded.items():
        if not isinstance(rule_text, str):
            raise ConfigError(
                f"Extraction rule for field '{name}' must be a string, got {type(rule_text).__name__}"
            )
        mappings.append(FieldMapping(field_name=name, rule=parse_rule(rule_text)))
    return mappings


__all__ = [
    "ExtractedData",
    "FieldMapping",
    "FieldRule",
    "LabelContainsRule",
    "Rule",
    "StaticRule",
    "UnknownRule",
    "extract",
    "parse_mappings",
    "parse_rule",
    "resolve",
]
