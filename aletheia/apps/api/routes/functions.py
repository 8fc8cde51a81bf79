from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import APIRouter

from aletheia.apps.api.core.metrics import function_calls, function_latency
from aletheia.apps.api.services import emotion, meditation, sol, summary
from aletheia.libs.logging_utils import log_context
from aletheia.libs.schemas.gateway import (
    AnalysisRequest,
    AnalysisResult,
    ChatTurnRequest,
    MeditationAIRequest,
    MeditationScriptRequest,
    SummaryRequest,
    SummaryResult,
)

router = APIRouter(prefix="/functions/v1", tags=["functions"])
LOGGER = logging.getLogger(__name__)


@contextmanager
def _tracked(name: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        with log_context(function=name):
            yield
    except Exception as exc:
        function_calls.labels(function=name, outcome="error").inc()
        LOGGER.error("Error in %s: %s", name, exc, extra={"function": name})
        raise
    else:
        function_calls.labels(function=name, outcome="ok").inc()
    finally:
        function_latency.labels(function=name).observe(time.perf_counter() - started)


@router.post("/analyze-emotion", response_model=AnalysisResult)
async def analyze_emotion(body: AnalysisRequest) -> AnalysisResult:
    with _tracked("analyze-emotion"):
        return await emotion.analyze_emotion(body.text)


@router.post("/chat-with-sol")
async def chat_with_sol(body: ChatTurnRequest) -> dict[str, str]:
    with _tracked("chat-with-sol"):
        reply = await sol.chat_with_sol(body.message, body.history)
    return {"response": reply}


@router.post("/generate-chat-summary", response_model=SummaryResult)
async def generate_chat_summary(body: SummaryRequest) -> SummaryResult:
    with _tracked("generate-chat-summary"):
        return await summary.summarize_conversation(body.messages)


@router.post("/generate-meditation")
async def generate_meditation(body: MeditationScriptRequest) -> dict[str, str]:
    with _tracked("generate-meditation"):
        script = await meditation.generate_script(body.type or "", body.duration)
    return {"script": script}


@router.post("/meditation-ai")
async def meditation_ai(body: MeditationAIRequest) -> dict[str, Any]:
    with _tracked("meditation-ai"):
        if body.type == "recommendation":
            return {"recommendation": await meditation.recommend(body.recent_emotions)}
        return {"summary": await meditation.summarize_session(body.emotion_before, body.emotion_after)}
