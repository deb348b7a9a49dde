"""Extract a JSON document from CLI output that may carry banner lines."""

import json
from typing import Any


def parse_json_from_cli_output(raw: str) -> Any | None:
    """Return the JSON value in ``raw``, or None when there is none.

    The whole text is tried first, then progressively longer windows of
    trailing lines, so a document printed after log/banner lines is found.
    """
    trimmed = raw.strip()
    if not trimmed:
        return None
    try:
        return json.loads(trimmed)
    except json.JSONDecodeError:
        pass

    lines = trimmed.splitlines()
    for start in range(len(lines) - 1, -1, -1):
        candidate = "\n".join(lines[start:]).strip()
        if not candidate:
            continue
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None
