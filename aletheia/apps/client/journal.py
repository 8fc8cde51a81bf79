from __future__ import annotations

import logging
from dataclasses import dataclass

from aletheia.libs.schemas.records import JournalEntry

from .analysis import AnalysisOutcome
from .context import SessionContext
from .errors import InputValidationError
from .store import RecordStore

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class JournalDraft:
    """Prefill for a new entry, usually taken from an analysis."""

    content: str = ""
    emotion: str | None = None
    intensity: float = 0.5


def draft_from_analysis(outcome: AnalysisOutcome) -> JournalDraft:
    return JournalDraft(
        content=outcome.text,
        emotion=outcome.result.emotion.value,
        intensity=outcome.result.intensity,
    )


def discussion_prompt(entry: JournalEntry) -> str:
    """Opening chat message asking Sol to talk through ``entry``."""

    return (
        f"I'd like to discuss my journal entry from {entry.created_at.date().isoformat()}. "
        f'The entry says: "{entry.content}" and I was feeling {entry.emotion or "unsure"}.'
    )


class JournalService:
    def __init__(self, context: SessionContext, store: RecordStore) -> None:
        self._context = context
        self._store = store

    async def create(
        self,
        title: str,
        content: str,
        *,
        emotion: str | None = None,
        intensity: float | None = None,
    ) -> JournalEntry:
        if not title or not title.strip() or not content or not content.strip():
            raise InputValidationError("Please fill in both title and content")
        entry = await self._store.add_journal_entry(
            JournalEntry(
                user_id=self._context.user_id,
                title=title.strip(),
                content=content,
                emotion=emotion,
                intensity=0.5 if intensity is None else intensity,
            )
        )
        LOGGER.info("Journal entry saved", extra={"user_id": self._context.user_id})
        return entry

    async def create_from_draft(self, title: str, draft: JournalDraft) -> JournalEntry:
        return await self.create(title, draft.content, emotion=draft.emotion, intensity=draft.intensity)

    async def list_entries(self, *, limit: int | None = None) -> list[JournalEntry]:
        return await self._store.list_journal_entries(self._context.user_id, limit=limit)

    async def delete(self, entry_id: str) -> bool:
        return await self._store.delete_journal_entry(self._context.user_id, entry_id)


__all__ = ["JournalDraft", "JournalService", "discussion_prompt", "draft_from_analysis"]
