"""Wire payloads exchanged with the function server."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .records import EmotionLabel, MeditationType, Role


class ChatTurn(BaseModel):
    role: Role
    content: str


class AnalysisRequest(BaseModel):
    text: str


class AnalysisResult(BaseModel):
    """Normalized emotion analysis enriched with catalog content."""

    emotion: EmotionLabel
    intensity: float = Field(ge=0.0, le=1.0)
    summary: str
    emoji: str
    quote: str
    song: str
    color: str
    suggestion: str


class ChatTurnRequest(BaseModel):
    message: str
    history: list[ChatTurn] = Field(default_factory=list)


class ChatTurnResponse(BaseModel):
    response: str


class SummaryRequest(BaseModel):
    messages: list[ChatTurn]


class SummaryResult(BaseModel):
    dominant_emotion: str
    key_topics: list[str] = Field(default_factory=list)
    worries: list[str] = Field(default_factory=list)
    reflective_suggestions: str = ""
    positive_reinforcement: str = ""
    recommended_next_steps: list[str] = Field(default_factory=list)


class MeditationScriptRequest(BaseModel):
    type: str | None = None
    duration: int = 5


class MeditationScriptResponse(BaseModel):
    script: str


class MeditationAIRequest(BaseModel):
    """Request body for the meditation helper; keys are camelCase on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["summary", "recommendation"]
    emotion_before: str | None = Field(default=None, alias="emotionBefore")
    emotion_after: str | None = Field(default=None, alias="emotionAfter")
    recent_emotions: list[str] | None = Field(default=None, alias="recentEmotions")


class MeditationSummaryResponse(BaseModel):
    summary: str | None = None


class MeditationRecommendationResponse(BaseModel):
    recommendation: str


class ErrorResponse(BaseModel):
    error: str


__all__ = [
    "AnalysisRequest",
    "AnalysisResult",
    "ChatTurn",
    "ChatTurnRequest",
    "ChatTurnResponse",
    "ErrorResponse",
    "MeditationAIRequest",
    "MeditationRecommendationResponse",
    "MeditationScriptRequest",
    "MeditationScriptResponse",
    "MeditationSummaryResponse",
    "MeditationType",
    "SummaryRequest",
    "SummaryResult",
]
