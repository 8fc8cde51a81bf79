"""Normalization of raw emotion-analysis replies into catalog-backed results."""

from __future__ import annotations

import json
import math
from typing import Any, Mapping

from aletheia.libs.json_utils import strip_code_fences
from aletheia.libs.schemas.gateway import AnalysisResult
from aletheia.libs.schemas.records import clamp_unit

from .catalog import EmotionCatalog, load_catalog

DEFAULT_INTENSITY = 0.5
DEFAULT_SUMMARY = "Your emotional state has been analyzed."


class AnalysisParseError(ValueError):
    """Raised when an analysis reply cannot be decoded into a JSON object."""


def coerce_intensity(value: Any) -> float:
    """Clamp to [0, 1]; anything missing or non-numeric becomes 0.5."""

    if isinstance(value, bool) or value is None:
        return DEFAULT_INTENSITY
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return DEFAULT_INTENSITY
    if not isinstance(value, (int, float)) or math.isnan(value):
        return DEFAULT_INTENSITY
    return clamp_unit(value)


def parse_analysis_reply(content: str) -> dict[str, Any]:
    """Decode the model's reply, tolerating ```json fences around the object."""

    cleaned = strip_code_fences(content)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise AnalysisParseError("Failed to parse emotion analysis") from exc
    if not isinstance(payload, dict):
        raise AnalysisParseError("Failed to parse emotion analysis")
    return payload


def normalize_analysis(payload: Mapping[str, Any], *, catalog: EmotionCatalog | None = None) -> AnalysisResult:
    catalog = catalog or load_catalog()
    data = catalog.get(payload.get("emotion"))
    summary = payload.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        summary = DEFAULT_SUMMARY
    return AnalysisResult(
        emotion=data.label,
        intensity=coerce_intensity(payload.get("intensity")),
        summary=summary,
        emoji=data.emoji,
        quote=data.quote,
        song=data.music,
        color=data.color,
        suggestion=data.suggestion,
    )


def analyze_reply(content: str, *, catalog: EmotionCatalog | None = None) -> AnalysisResult:
    return normalize_analysis(parse_analysis_reply(content), catalog=catalog)


__all__ = [
    "AnalysisParseError",
    "DEFAULT_INTENSITY",
    "DEFAULT_SUMMARY",
    "analyze_reply",
    "coerce_intensity",
    "normalize_analysis",
    "parse_analysis_reply",
]
