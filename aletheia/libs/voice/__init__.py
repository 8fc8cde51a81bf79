"""Voice input/output adapter and engine protocols."""

from .adapter import (
    BackgroundAudio,
    SpeechRecognizer,
    SpeechSynthesizer,
    Utterance,
    VoiceAdapter,
    VoiceState,
)

__all__ = [
    "BackgroundAudio",
    "SpeechRecognizer",
    "SpeechSynthesizer",
    "Utterance",
    "VoiceAdapter",
    "VoiceState",
]
