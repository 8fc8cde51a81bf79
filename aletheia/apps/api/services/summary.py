from __future__ import annotations

import logging
from typing import Sequence

from jsonschema import Draft7Validator

from aletheia.apps.api.core.llm import LLMResponseError, call_llm
from aletheia.libs.json_utils import extract_json_object
from aletheia.libs.schemas.gateway import ChatTurn, SummaryResult
from aletheia.prompts.summary import SUMMARY_SYSTEM_PROMPT, build_summary_prompt

LOGGER = logging.getLogger(__name__)

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

SUMMARY_SCHEMA = {
    "type": "object",
    "required": ["dominant_emotion"],
    "properties": {
        "dominant_emotion": {"type": "string"},
        "key_topics": _STRING_LIST,
        "worries": _STRING_LIST,
        "reflective_suggestions": {"type": "string"},
        "positive_reinforcement": {"type": "string"},
        "recommended_next_steps": _STRING_LIST,
    },
}

_VALIDATOR = Draft7Validator(SUMMARY_SCHEMA)


async def summarize_conversation(messages: Sequence[ChatTurn]) -> SummaryResult:
    """Ask for a structured summary and parse the first ``{...}`` block of the reply."""

    reply = await call_llm(
        messages=[
            {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": build_summary_prompt(turn.model_dump() for turn in messages)},
        ]
    )
    try:
        payload = extract_json_object(reply)
    except ValueError as exc:
        LOGGER.error("Summary reply had no JSON object: %s", reply[:400])
        raise LLMResponseError("Failed to parse summary") from exc

    errors = sorted(_VALIDATOR.iter_errors(payload), key=lambda err: list(err.path))
    if errors:
        detail = "; ".join(err.message for err in errors[:3])
        raise LLMResponseError(f"Summary did not match the expected shape: {detail}")
    return SummaryResult.model_validate(payload)
