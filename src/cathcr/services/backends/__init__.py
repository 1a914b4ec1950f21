"""Speech-to-text backend adapters.

Only the shared types are exported here; adapters are imported from their own
modules (see ``registry.build_recognizers``).
"""

from cathcr.services.backends.base import (
    WEB_SPEECH_CONFIDENCE,
    Recognition,
    SpeechRecognizer,
    TranscriptionBackend,
    TranscriptionRequest,
    TranscriptionResult,
    WordTimestamp,
)

__all__ = [
    "WEB_SPEECH_CONFIDENCE",
    "Recognition",
    "SpeechRecognizer",
    "TranscriptionBackend",
    "TranscriptionRequest",
    "TranscriptionResult",
    "WordTimestamp",
]
