from __future__ import annotations

from typing import Sequence

MEDITATION_SCRIPT_PROMPTS = {
    "calm": "Create a calming 5-minute meditation script. Focus on breathing exercises, body relaxation, and peaceful visualization. Use soothing language.",
    "stress": "Create a 7-minute stress relief meditation script. Guide the user through releasing tension, calming the nervous system, and finding inner peace.",
    "sleep": "Create a 10-minute sleep meditation script. Help the user relax deeply, let go of the day, and drift into peaceful sleep. Use very slow, gentle language.",
    "gratitude": "Create a 5-minute gratitude meditation script. Guide the user to reflect on things they're grateful for and cultivate appreciation.",
    "anxiety": "Create an 8-minute anxiety relief meditation script. Focus on grounding techniques, breath work, and gentle reassurance to calm anxious thoughts.",
}

GUIDE_SYSTEM_TEMPLATE = """You are a gentle, compassionate meditation guide. Create meditation scripts that are:
- Slow-paced with natural pauses
- Use calming, peaceful language
- Include breathing instructions
- Focus on relaxation and mindfulness
- Divided into clear segments with line breaks
- Approximately {duration} minutes when read slowly
- Avoid any markdown or special formatting"""

SESSION_SUMMARY_SYSTEM = "You are a compassionate meditation guide. Keep responses brief and encouraging."
RECOMMENDATION_SYSTEM = "You are a compassionate meditation guide recommending meditation types."


def build_guide_prompt(duration: int) -> str:
    return GUIDE_SYSTEM_TEMPLATE.format(duration=duration)


def build_session_summary_prompt(emotion_before: str, emotion_after: str | None) -> str:
    return (
        f"Based on a user who felt {emotion_before} before meditation and "
        f"{emotion_after or 'completed'} after, write a brief, encouraging 2-sentence "
        "post-session summary. Be warm and personal."
    )


def build_recommendation_prompt(recent_emotions: Sequence[str] | None) -> str:
    emotions = ", ".join(recent_emotions) if recent_emotions else "neutral"
    return (
        f"A user has been feeling: {emotions}. Recommend ONE specific meditation type "
        "(from: calming, stress relief, sleep, gratitude, or anxiety relief) and explain "
        "why in 1-2 sentences. Be warm and supportive."
    )


__all__ = [
    "MEDITATION_SCRIPT_PROMPTS",
    "RECOMMENDATION_SYSTEM",
    "SESSION_SUMMARY_SYSTEM",
    "build_guide_prompt",
    "build_recommendation_prompt",
    "build_session_summary_prompt",
]
