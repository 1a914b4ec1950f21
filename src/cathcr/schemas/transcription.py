from datetime import datetime

from pydantic import BaseModel, Field, HttpUrl

from cathcr.services.backends.base import TranscriptionBackend, TranscriptionResult
from cathcr.services.health import HealthReport, HealthStatus


class WordTimestampSchema(BaseModel):
    word: str
    start: float
    end: float
    confidence: float = 0.0


class TranscriptionResultSchema(BaseModel):
    text: str
    confidence: float = Field(ge=0.0, le=1.0)
    backend: TranscriptionBackend
    processing_time_ms: float
    word_timestamps: list[WordTimestampSchema] = []

    @classmethod
    def from_result(cls, result: TranscriptionResult) -> "TranscriptionResultSchema":
        return cls(
            text=result.text,
            confidence=result.confidence,
            backend=result.backend,
            processing_time_ms=result.processing_time_ms,
            word_timestamps=[
                WordTimestampSchema(word=w.word, start=w.start, end=w.end, confidence=w.confidence)
                for w in result.words
            ],
        )


class EnhanceResponse(TranscriptionResultSchema):
    original_web_speech: str | None = None


class BatchTranscriptionResponse(BaseModel):
    results: list[TranscriptionResultSchema]
    processed: int


class UrlTranscriptionRequest(BaseModel):
    audio_url: HttpUrl
    language: str | None = None


class CapabilitiesResponse(BaseModel):
    backends: dict[str, bool]
    fallback_chain: list[str]
    recommended_backend: str | None = None


class HealthResponse(BaseModel):
    status: HealthStatus
    backends: dict[str, bool]
    latency_ms: float
    checked_at: datetime

    @classmethod
    def from_report(cls, report: HealthReport) -> "HealthResponse":
        return cls(
            status=report.status,
            backends={b.value: ok for b, ok in report.backends.items()},
            latency_ms=report.latency_ms,
            checked_at=report.checked_at,
        )


class LanguageSchema(BaseModel):
    code: str
    name: str
    variants: list[str]
