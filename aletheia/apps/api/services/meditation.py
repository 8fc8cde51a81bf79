from __future__ import annotations

import logging
from typing import Sequence

from aletheia.apps.api.core.llm import call_llm
from aletheia.prompts.meditation import (
    MEDITATION_SCRIPT_PROMPTS,
    RECOMMENDATION_SYSTEM,
    SESSION_SUMMARY_SYSTEM,
    build_guide_prompt,
    build_recommendation_prompt,
    build_session_summary_prompt,
)

LOGGER = logging.getLogger(__name__)


class InvalidMeditationType(ValueError):
    def __init__(self) -> None:
        super().__init__("Invalid meditation type")


async def generate_script(meditation_type: str, duration: int) -> str:
    prompt = MEDITATION_SCRIPT_PROMPTS.get(meditation_type or "")
    if prompt is None:
        raise InvalidMeditationType()
    script = await call_llm(
        messages=[
            {"role": "system", "content": build_guide_prompt(duration)},
            {"role": "user", "content": prompt},
        ]
    )
    LOGGER.info("Generated meditation script: %s", script[:100])
    return script


async def summarize_session(emotion_before: str | None, emotion_after: str | None) -> str | None:
    """Two-sentence post-session note, or ``None`` when the starting emotion is unknown."""

    if not emotion_before:
        return None
    return await call_llm(
        messages=[
            {"role": "system", "content": SESSION_SUMMARY_SYSTEM},
            {"role": "user", "content": build_session_summary_prompt(emotion_before, emotion_after)},
        ]
    )


async def recommend(recent_emotions: Sequence[str] | None) -> str:
    return await call_llm(
        messages=[
            {"role": "system", "content": RECOMMENDATION_SYSTEM},
            {"role": "user", "content": build_recommendation_prompt(recent_emotions)},
        ]
    )
