import asyncio
import dataclasses
import logging
import time
from dataclasses import dataclass

from cathcr.exceptions import (
    AllBackendsFailedError,
    BackendError,
    InputError,
    NoBackendAvailableError,
)
from cathcr.services.audio import AudioDownloader
from cathcr.services.backends.base import (
    WEB_SPEECH_CONFIDENCE,
    TranscriptionBackend,
    TranscriptionRequest,
    TranscriptionResult,
)
from cathcr.services.reconciliation import reconcile
from cathcr.services.selector import BackendSelector
from cathcr.utils.languages import normalize_language

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Enhanced:
    result: TranscriptionResult


@dataclass(frozen=True)
class EnhancementFailed:
    error: Exception


EnhancementOutcome = Enhanced | EnhancementFailed


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class TranscriptionService:
    """Resolve one capture event to one transcription result."""

    def __init__(
        self,
        selector: BackendSelector,
        downloader: AudioDownloader,
        backend_timeout: float = 60.0,
        default_language: str | None = None,
    ) -> None:
        self._selector = selector
        self._downloader = downloader
        self._backend_timeout = backend_timeout
        self._default_language = default_language

    @property
    def selector(self) -> BackendSelector:
        return self._selector

    async def transcribe(self, request: TranscriptionRequest) -> TranscriptionResult:
        start = time.perf_counter()
        self._validate(request)

        if request.has_realtime_text:
            return await self._resolve_realtime(request, start)
        return await self._transcribe_server_side(request, start)

    @staticmethod
    def _validate(request: TranscriptionRequest) -> None:
        if not request.has_realtime_text and not request.has_audio:
            raise InputError("No audio data or real-time transcript provided")
        if request.audio_bytes and request.audio_url:
            raise InputError("Provide either audio bytes or an audio URL, not both")

    # ------------------------------------------------------------------ #
    #  Real-time transcript path
    # ------------------------------------------------------------------ #

    async def _resolve_realtime(
        self, request: TranscriptionRequest, start: float
    ) -> TranscriptionResult:
        realtime_text = request.realtime_text.strip()
        provisional = TranscriptionResult(
            text=realtime_text,
            confidence=WEB_SPEECH_CONFIDENCE,
            backend=TranscriptionBackend.WEB_SPEECH,
            processing_time_ms=_elapsed_ms(start),
        )
        if not request.has_audio or not request.enhance:
            return provisional

        outcome = await self._enhance(request, start)
        if isinstance(outcome, EnhancementFailed):
            logger.warning(
                "Server enhancement failed, keeping real-time transcript: %s", outcome.error
            )
            return dataclasses.replace(provisional, processing_time_ms=_elapsed_ms(start))

        chosen = reconcile(realtime_text, outcome.result)
        return dataclasses.replace(chosen, processing_time_ms=_elapsed_ms(start))

    async def _enhance(self, request: TranscriptionRequest, start: float) -> EnhancementOutcome:
        """Best-effort server pass over the same audio; errors come back as a value."""
        try:
            return Enhanced(await self._transcribe_server_side(request, start))
        except Exception as e:
            return EnhancementFailed(e)

    # ------------------------------------------------------------------ #
    #  Server-side path: fallback chain
    # ------------------------------------------------------------------ #

    async def _transcribe_server_side(
        self, request: TranscriptionRequest, start: float
    ) -> TranscriptionResult:
        chain = self._selector.fallback_chain()
        if not chain:
            raise NoBackendAvailableError()

        audio = request.audio_bytes
        if not audio:
            audio = await self._downloader.download(request.audio_url)

        language = normalize_language(request.language) or self._default_language
        failures: dict[str, str] = {}
        attempted: set[TranscriptionBackend] = set()

        for backend in chain:
            if backend in attempted:
                continue
            attempted.add(backend)
            recognizer = self._selector.recognizer(backend)
            if recognizer is None:
                failures[backend.value] = "no adapter registered"
                continue

            try:
                recognition = await asyncio.wait_for(
                    recognizer.recognize(audio, language=language),
                    timeout=self._backend_timeout,
                )
                if recognition is None or not recognition.text.strip():
                    raise BackendError("empty transcription")
            except asyncio.TimeoutError:
                logger.warning(
                    "Backend '%s' timed out after %.1fs", backend.value, self._backend_timeout
                )
                failures[backend.value] = f"timed out after {self._backend_timeout}s"
                continue
            except Exception as e:
                logger.warning("Backend '%s' failed: %s", backend.value, e)
                failures[backend.value] = str(e) or type(e).__name__
                continue

            result = TranscriptionResult(
                text=recognition.text.strip(),
                confidence=recognition.confidence if recognition.confidence is not None else 0.0,
                backend=backend,
                processing_time_ms=_elapsed_ms(start),
                words=tuple(recognition.words),
            )
            logger.info(
                "Transcribed with '%s' in %.0fms (%d chars)",
                backend.value,
                result.processing_time_ms,
                len(result.text),
            )
            return result

        logger.error("All transcription backends failed: %s", failures)
        raise AllBackendsFailedError(failures)
