"""User-facing exceptions raised by the session layer."""

from aletheia.libs.errors import (
    AletheiaError,
    AnalysisFailedError,
    GatewayError,
    InputValidationError,
    SessionBusyError,
    SessionStateError,
    StoreError,
    VoiceCaptureError,
    VoiceUnavailableError,
)

__all__ = [
    "AletheiaError",
    "AnalysisFailedError",
    "GatewayError",
    "InputValidationError",
    "SessionBusyError",
    "SessionStateError",
    "StoreError",
    "VoiceCaptureError",
    "VoiceUnavailableError",
]
