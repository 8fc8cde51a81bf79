from __future__ import annotations

import json
import re
import uuid
from datetime import date, datetime
from typing import Any

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def json_safe(obj: Any) -> Any:
    """Recursively convert objects (UUIDs, datetimes) into JSON-serializable structures."""

    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [json_safe(item) for item in obj]
    return obj


def strip_code_fences(blob: str) -> str:
    """Remove ```json / ``` fence markers wherever they appear in an LLM reply."""

    return _FENCE_RE.sub("", blob or "").strip()


def extract_json_object(blob: str) -> dict[str, Any]:
    """Parse the first ``{...}`` span found in ``blob``.

    Raises ``ValueError`` when no object is present or it does not decode to a dict.
    """

    match = _OBJECT_RE.search(blob or "")
    if not match:
        raise ValueError("No JSON object found in response")
    parsed = json.loads(_strip_trailing_commas(match.group(0)))
    if not isinstance(parsed, dict):
        raise ValueError("JSON payload is not an object")
    return parsed


def _strip_trailing_commas(text: str) -> str:
    return re.sub(r",(\s*[}\]])", r"\1", text)


__all__ = ["extract_json_object", "json_safe", "strip_code_fences"]
