from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum

from cathcr.utils.text import clamp_confidence

# Fixed confidence reported for client-side real-time transcripts.
WEB_SPEECH_CONFIDENCE = 0.85


class TranscriptionBackend(StrEnum):
    WEB_SPEECH = "web_speech"
    HOSTED_OPEN_MODEL = "hosted_open_model"
    COMMERCIAL_API = "commercial_api"
    LOCAL_HIGH_PERFORMANCE = "local_high_performance"


@dataclass(frozen=True)
class WordTimestamp:
    word: str
    start: float
    end: float
    confidence: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", clamp_confidence(self.confidence))


@dataclass(frozen=True)
class TranscriptionResult:
    text: str
    confidence: float
    backend: TranscriptionBackend
    processing_time_ms: float = 0.0
    words: tuple[WordTimestamp, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", clamp_confidence(self.confidence))
        object.__setattr__(self, "words", tuple(self.words))


@dataclass
class TranscriptionRequest:
    """One capture event: raw audio, an audio URL, and/or a real-time transcript.

    Inputs are checked when the request is resolved, not here, so a batch can
    carry a malformed request without failing as a whole.
    """

    audio_bytes: bytes | None = None
    audio_url: str | None = None
    realtime_text: str | None = None
    language: str | None = None
    enhance: bool = True

    @property
    def has_realtime_text(self) -> bool:
        return bool(self.realtime_text and self.realtime_text.strip())

    @property
    def has_audio(self) -> bool:
        return bool(self.audio_bytes) or bool(self.audio_url)


@dataclass(frozen=True)
class Recognition:
    """Raw output of one backend call, before normalisation into a result."""

    text: str
    confidence: float | None = None
    words: list[WordTimestamp] = field(default_factory=list)


class SpeechRecognizer(ABC):
    """Capability interface implemented by every server-side backend adapter."""

    backend: TranscriptionBackend

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials / flags for this backend are present."""

    @abstractmethod
    async def recognize(self, audio: bytes, *, language: str | None = None) -> Recognition:
        """Transcribe ``audio``. Raises ``BackendError`` on failure."""

    @abstractmethod
    async def is_reachable(self) -> bool:
        """Lightweight connectivity probe. Must not raise."""

    async def close(self) -> None:
        return None
