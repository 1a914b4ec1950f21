import logging

from openai import AsyncOpenAI, OpenAIError

from cathcr.config import Settings
from cathcr.exceptions import BackendError
from cathcr.services.backends.base import (
    Recognition,
    SpeechRecognizer,
    TranscriptionBackend,
    WordTimestamp,
)

logger = logging.getLogger(__name__)

# Whisper does not report a confidence score.
_ASSUMED_CONFIDENCE = 0.9


class OpenAIWhisperRecognizer(SpeechRecognizer):
    """Commercial transcription through the OpenAI audio API."""

    backend = TranscriptionBackend.COMMERCIAL_API

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._model = settings.openai_whisper_model
        self._client = AsyncOpenAI(
            api_key=settings.openai_api_key or "unset",
            base_url=settings.openai_base_url,
            timeout=settings.backend_timeout_seconds,
            max_retries=settings.openai_max_retries,
        )

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def recognize(self, audio: bytes, *, language: str | None = None) -> Recognition:
        if not self.is_configured():
            raise BackendError("OpenAI API key not configured")

        kwargs: dict = {
            "model": self._model,
            "file": ("audio.webm", audio),
            "response_format": "verbose_json",
            "timestamp_granularities": ["word"],
        }
        if language:
            kwargs["language"] = language

        try:
            response = await self._client.audio.transcriptions.create(**kwargs)
        except OpenAIError as e:
            raise BackendError(f"OpenAI transcription failed: {e}") from e

        words = [
            WordTimestamp(
                word=w.word,
                start=float(w.start),
                end=float(w.end),
                confidence=_ASSUMED_CONFIDENCE,
            )
            for w in getattr(response, "words", None) or []
        ]
        return Recognition(
            text=(response.text or "").strip(),
            confidence=_ASSUMED_CONFIDENCE,
            words=words,
        )

    async def is_reachable(self) -> bool:
        """Check API connectivity by listing models."""
        if not self.is_configured():
            return False
        try:
            await self._client.models.list()
            return True
        except Exception:
            logger.debug("OpenAI reachability probe failed", exc_info=True)
            return False

    async def close(self) -> None:
        await self._client.close()
