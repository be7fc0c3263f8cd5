"""issueboard - add GitHub issues to Projects (v2) boards from CI.

Typical use is as an Actions step (``python -m issueboard run``) reading the
``INPUT_*`` variables set by the runner. The pieces are also usable directly::

    from issueboard import extract, parse_mappings, resolve

    data = extract(body, title, labels)
    for mapping in parse_mappings('{"Priority": "field:priority"}'):
        print(mapping.field_name, resolve(mapping.rule, data))
"""

from __future__ import annotations

# Defined before submodule imports: github_rest reads it for the User-Agent
__version__ = "0.1.0"

from .action import ActionResult, run_action, run_from_env  # noqa: E402
from .config import ActionInputs, load_inputs  # noqa: E402
from .extraction import ExtractedData, extract, parse_mappings, parse_rule, resolve  # noqa: E402
from .project import ProjectBoard  # noqa: E402

__all__ = [
    "ActionInputs",
    "ActionResult",
    "ExtractedData",
    "ProjectBoard",
    "extract",
    "load_inputs",
    "parse_mappings",
    "parse_rule",
    "resolve",
    "run_action",
    "run_from_env",
    "__version__",
]
