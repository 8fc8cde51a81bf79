"""Pydantic models and schema utilities."""

from .db import close_async_pool, get_async_pool
from .gateway import (
    AnalysisRequest,
    AnalysisResult,
    ChatTurn,
    ChatTurnRequest,
    ChatTurnResponse,
    MeditationAIRequest,
    MeditationScriptRequest,
    SummaryRequest,
    SummaryResult,
)
from .records import (
    ChatMessage,
    ConversationSummary,
    EmotionLabel,
    EmotionRecord,
    JournalEntry,
    MeditationSession,
    MeditationType,
)
from .settings import AppSettings, get_settings

__all__ = [
    "AnalysisRequest",
    "AnalysisResult",
    "AppSettings",
    "ChatMessage",
    "ChatTurn",
    "ChatTurnRequest",
    "ChatTurnResponse",
    "ConversationSummary",
    "EmotionLabel",
    "EmotionRecord",
    "JournalEntry",
    "MeditationAIRequest",
    "MeditationScriptRequest",
    "MeditationSession",
    "MeditationType",
    "SummaryRequest",
    "SummaryResult",
    "close_async_pool",
    "get_async_pool",
    "get_settings",
]
