from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping

import yaml

from aletheia.libs.schemas.records import EmotionLabel, MEDITATION_DURATIONS, MeditationType


@dataclass(frozen=True)
class EmotionData:
    """Presentation metadata attached to an emotion label."""

    label: EmotionLabel
    emoji: str
    color: str
    gradient: str
    quote: str
    music: str
    suggestion: str


@dataclass(frozen=True)
class MeditationOption:
    type: MeditationType
    label: str
    emoji: str
    duration: int


class EmotionCatalog:
    def __init__(self, path: str) -> None:
        with open(path, "r", encoding="utf-8") as fh:
            self.data: Mapping[str, Any] = yaml.safe_load(fh) or {}
        self._fallback = EmotionLabel(self.data.get("fallback", EmotionLabel.CALM.value))
        self._emotions = {
            EmotionLabel(key): EmotionData(label=EmotionLabel(key), **values)
            for key, values in (self.data.get("emotions") or {}).items()
        }
        missing = set(EmotionLabel) - set(self._emotions)
        if missing:
            raise ValueError(f"Emotion catalog is missing labels: {sorted(m.value for m in missing)}")

    @property
    def fallback(self) -> EmotionLabel:
        return self._fallback

    def normalize(self, label: Any) -> EmotionLabel:
        """Map free-form text onto one of the catalog labels, falling back to calm."""

        if isinstance(label, EmotionLabel):
            return label
        if not isinstance(label, str):
            return self._fallback
        try:
            return EmotionLabel(label.lower().strip())
        except ValueError:
            return self._fallback

    def get(self, label: Any) -> EmotionData:
        return self._emotions[self.normalize(label)]

    def suggestion_for(self, label: Any) -> str:
        return self.get(label).suggestion

    def meditation_options(self) -> list[MeditationOption]:
        meta = self.data.get("meditations") or {}
        options = []
        for kind in MeditationType:
            entry = meta.get(kind.value) or {}
            options.append(
                MeditationOption(
                    type=kind,
                    label=entry.get("label", kind.value.title()),
                    emoji=entry.get("emoji", ""),
                    duration=MEDITATION_DURATIONS[kind],
                )
            )
        return options


@lru_cache(maxsize=1)
def load_catalog() -> EmotionCatalog:
    base = os.path.join(os.path.dirname(__file__), "catalog.yaml")
    return EmotionCatalog(os.path.abspath(base))


def get_emotion_data(label: Any) -> EmotionData:
    return load_catalog().get(label)


__all__ = ["EmotionCatalog", "EmotionData", "MeditationOption", "get_emotion_data", "load_catalog"]
