"""Emotion catalog lookups and analysis normalization."""

from .analysis import (
    AnalysisParseError,
    analyze_reply,
    coerce_intensity,
    normalize_analysis,
    parse_analysis_reply,
)
from .catalog import EmotionCatalog, EmotionData, MeditationOption, get_emotion_data, load_catalog

__all__ = [
    "AnalysisParseError",
    "EmotionCatalog",
    "EmotionData",
    "MeditationOption",
    "analyze_reply",
    "coerce_intensity",
    "get_emotion_data",
    "load_catalog",
    "normalize_analysis",
    "parse_analysis_reply",
]
