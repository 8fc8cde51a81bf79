"""Emotion classification through the chat gateway."""

from __future__ import annotations

import logging

from aletheia.apps.api.core.llm import LLMResponseError, call_llm
from aletheia.libs.emotions import AnalysisParseError, analyze_reply
from aletheia.libs.schemas.gateway import AnalysisResult
from aletheia.prompts.emotion import EMOTION_ANALYSIS_PROMPT

LOGGER = logging.getLogger(__name__)


async def analyze_emotion(text: str) -> AnalysisResult:
    """Classify ``text`` into one of the eight labels and enrich it from the catalog."""

    content = await call_llm(
        messages=[
            {"role": "system", "content": EMOTION_ANALYSIS_PROMPT},
            {"role": "user", "content": text},
        ]
    )
    content = content.strip()
    LOGGER.info("Emotion analysis reply received", extra={"chars": len(content)})
    try:
        return analyze_reply(content)
    except AnalysisParseError as exc:
        LOGGER.error("Failed to parse analysis reply: %s", content[:400])
        raise LLMResponseError(str(exc)) from exc
