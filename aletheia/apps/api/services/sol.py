from __future__ import annotations

from typing import Sequence

from aletheia.apps.api.core.llm import call_llm
from aletheia.libs.schemas.gateway import ChatTurn
from aletheia.prompts.sol import SOL_SYSTEM_PROMPT

HISTORY_WINDOW = 10


def build_sol_messages(message: str, history: Sequence[ChatTurn]) -> list[dict[str, str]]:
    """System prompt, then at most the last ten history turns, then the new user message."""

    messages = [{"role": "system", "content": SOL_SYSTEM_PROMPT}]
    messages.extend(
        {"role": turn.role, "content": turn.content} for turn in list(history)[-HISTORY_WINDOW:]
    )
    messages.append({"role": "user", "content": message})
    return messages


async def chat_with_sol(message: str, history: Sequence[ChatTurn]) -> str:
    return await call_llm(messages=build_sol_messages(message, history))
