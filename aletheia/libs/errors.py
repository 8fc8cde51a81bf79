"""Exception hierarchy surfaced to the session layer."""

from __future__ import annotations


class AletheiaError(Exception):
    """Base class for user-facing failures. ``str(exc)`` is the notice text."""


class InputValidationError(AletheiaError):
    """Input rejected locally before any network call."""


class GatewayError(AletheiaError):
    """Transport or HTTP failure talking to the function server."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AnalysisFailedError(GatewayError):
    """The AI reply could not be turned into a usable result."""


class VoiceUnavailableError(AletheiaError):
    """The speech capability needed for an operation is not present."""


class VoiceCaptureError(AletheiaError):
    """A recognition attempt ended without a transcript."""


class SessionBusyError(AletheiaError):
    """A send was attempted while another is still in flight."""


class SessionStateError(AletheiaError):
    """An operation is not valid in the controller's current state."""


class StoreError(AletheiaError):
    """Persistence against the record store failed."""


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
