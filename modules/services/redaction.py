"""Redaction of binary result fields before history is persisted."""

from __future__ import annotations

import copy
from typing import Any, Dict, Mapping, Tuple

IMAGE_DATA_REMOVED = "[IMAGE_DATA_REMOVED]"

# command -> result fields holding base64 image data
REDACTION_RULES: Dict[str, Tuple[str, ...]] = {
    "hidden": ("image",),
    "rgb": ("red", "green", "blue"),
}


def redact_result(command: str, result: Any) -> Any:
    """Return a copy of ``result`` with the command's image fields replaced."""
    redacted = copy.deepcopy(result)
    fields = REDACTION_RULES.get(command, ())
    if not fields or not isinstance(redacted, dict):
        return redacted
    for name in fields:
        if redacted.get(name):
            redacted[name] = IMAGE_DATA_REMOVED
    return redacted


def redact_entry(entry: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a JSON-ready copy of a serialized history entry."""
    payload = copy.deepcopy(dict(entry))
    if payload.get("result") is not None:
        payload["result"] = redact_result(str(payload.get("command", "")), payload["result"])
    return payload
