"""Persisted record shapes owned by the relational store."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmotionLabel(str, Enum):
    """The eight emotions the analyzer is allowed to return."""

    HAPPY = "happy"
    SAD = "sad"
    ANXIOUS = "anxious"
    ANGRY = "angry"
    CALM = "calm"
    STRESSED = "stressed"
    CONFUSED = "confused"
    EXCITED = "excited"


class MeditationType(str, Enum):
    CALM = "calm"
    STRESS = "stress"
    SLEEP = "sleep"
    GRATITUDE = "gratitude"
    ANXIETY = "anxiety"


# Target durations in minutes for each guided meditation.
MEDITATION_DURATIONS: dict[MeditationType, int] = {
    MeditationType.CALM: 5,
    MeditationType.STRESS: 7,
    MeditationType.SLEEP: 10,
    MeditationType.GRATITUDE: 5,
    MeditationType.ANXIETY: 8,
}

EMOTION_AFTER_MEDITATION = "peaceful"

Role = Literal["user", "assistant"]


def clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class EmotionRecord(BaseModel):
    """One stored emotion analysis."""

    id: str | None = None
    user_id: str
    emotion: EmotionLabel
    intensity: float
    text: str
    summary: str
    quote: str | None = None
    song: str | None = None
    suggestion: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("intensity", mode="before")
    @classmethod
    def _clamp_intensity(cls, value: float | None) -> float:
        return clamp_unit(0.5 if value is None else value)


class ChatMessage(BaseModel):
    id: str | None = None
    user_id: str
    role: Role
    content: str
    created_at: datetime = Field(default_factory=_utcnow)

    def as_turn(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class ConversationSummary(BaseModel):
    id: str | None = None
    user_id: str
    dominant_emotion: str
    key_topics: list[str] = Field(default_factory=list)
    worries: list[str] = Field(default_factory=list)
    reflective_suggestions: str = ""
    positive_reinforcement: str = ""
    recommended_next_steps: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)


class JournalEntry(BaseModel):
    id: str | None = None
    user_id: str
    title: str
    content: str
    emotion: str | None = None
    intensity: float = 0.5
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("intensity", mode="before")
    @classmethod
    def _clamp_intensity(cls, value: float | None) -> float:
        return clamp_unit(0.5 if value is None else value)


class MeditationSession(BaseModel):
    id: str | None = None
    user_id: str
    meditation_type: MeditationType
    duration_minutes: int
    emotion_before: str | None = None
    # Not measured after the session; always recorded as "peaceful".
    emotion_after: str = EMOTION_AFTER_MEDITATION
    ai_summary: str | None = None
    completed_at: datetime = Field(default_factory=_utcnow)


__all__ = [
    "ChatMessage",
    "ConversationSummary",
    "EMOTION_AFTER_MEDITATION",
    "EmotionLabel",
    "EmotionRecord",
    "JournalEntry",
    "MEDITATION_DURATIONS",
    "MeditationSession",
    "MeditationType",
    "Role",
    "clamp_unit",
]
