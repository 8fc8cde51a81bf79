from __future__ import annotations

from typing import Iterable, Mapping

SUMMARY_SYSTEM_PROMPT = (
    "You are an AI therapist analyzing conversation summaries. Extract key emotional insights."
)

SUMMARY_USER_TEMPLATE = """Analyze this therapy conversation and provide a structured summary in JSON format:

{transcript}

Return ONLY valid JSON with this exact structure:
{{
  "dominant_emotion": "primary emotion expressed (e.g., anxiety, sadness, joy)",
  "key_topics": ["topic1", "topic2", "topic3"],
  "worries": ["worry1", "worry2"],
  "reflective_suggestions": "A paragraph of reflective insights and suggestions",
  "positive_reinforcement": "Encouraging words about their progress or strengths",
  "recommended_next_steps": ["step1", "step2", "step3"]
}}"""


def render_transcript(messages: Iterable[Mapping[str, str]]) -> str:
    """Render turns as ``User: ...`` / ``Sol: ...`` paragraphs."""

    lines = []
    for message in messages:
        speaker = "User" if message.get("role") == "user" else "Sol"
        lines.append(f"{speaker}: {message.get('content', '')}")
    return "\n\n".join(lines)


def build_summary_prompt(messages: Iterable[Mapping[str, str]]) -> str:
    return SUMMARY_USER_TEMPLATE.format(transcript=render_transcript(messages))


__all__ = ["SUMMARY_SYSTEM_PROMPT", "build_summary_prompt", "render_transcript"]
