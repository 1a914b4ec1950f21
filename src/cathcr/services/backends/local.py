import asyncio
import importlib.util
import io
import logging
import threading

from cathcr.config import Settings
from cathcr.exceptions import BackendError
from cathcr.services.backends.base import (
    Recognition,
    SpeechRecognizer,
    TranscriptionBackend,
    WordTimestamp,
)

logger = logging.getLogger(__name__)

_DEFAULT_CONFIDENCE = 0.9


class LocalWhisperRecognizer(SpeechRecognizer):
    """In-process faster-whisper model, loaded on first use.

    Inference is blocking and runs in a worker thread. The asyncio lock queues
    callers; the thread lock keeps model loading and inference single-file even
    after a caller has given up on a timed-out call.
    """

    backend = TranscriptionBackend.LOCAL_HIGH_PERFORMANCE

    def __init__(self, settings: Settings) -> None:
        self._enabled = settings.local_whisper_enabled
        self._model_name = settings.local_whisper_model
        self._device = settings.local_whisper_device
        self._compute_type = settings.local_whisper_compute_type
        self._model = None
        self._lock = asyncio.Lock()
        self._model_lock = threading.Lock()

    def is_configured(self) -> bool:
        return self._enabled

    def _load_model(self):
        from faster_whisper import WhisperModel

        logger.info(
            "Loading faster-whisper model: %s (device=%s, compute_type=%s)",
            self._model_name,
            self._device,
            self._compute_type,
        )
        return WhisperModel(
            self._model_name,
            device=self._device,
            compute_type=self._compute_type,
        )

    def _transcribe_sync(self, audio: bytes, language: str | None) -> Recognition:
        """Run faster-whisper synchronously (called via asyncio.to_thread)."""
        # A timed-out caller cancels its await, not the worker thread still using the model.
        with self._model_lock:
            return self._run_model(audio, language)

    def _run_model(self, audio: bytes, language: str | None) -> Recognition:
        if self._model is None:
            self._model = self._load_model()

        segments, info = self._model.transcribe(
            io.BytesIO(audio),
            language=language,
            word_timestamps=True,
        )

        texts: list[str] = []
        words: list[WordTimestamp] = []
        # segments is a lazy generator; decoding happens while iterating.
        for segment in segments:
            texts.append(segment.text.strip())
            for w in segment.words or []:
                words.append(
                    WordTimestamp(
                        word=w.word.strip(),
                        start=float(w.start),
                        end=float(w.end),
                        confidence=float(w.probability),
                    )
                )

        confidence = (
            sum(w.confidence for w in words) / len(words) if words else _DEFAULT_CONFIDENCE
        )
        logger.info(
            "faster-whisper done: language=%s, segments=%d, words=%d",
            getattr(info, "language", language),
            len(texts),
            len(words),
        )
        return Recognition(text=" ".join(t for t in texts if t), confidence=confidence, words=words)

    async def recognize(self, audio: bytes, *, language: str | None = None) -> Recognition:
        if not self.is_configured():
            raise BackendError("Local whisper backend is disabled")
        try:
            async with self._lock:
                return await asyncio.to_thread(self._transcribe_sync, audio, language)
        except ImportError as e:
            raise BackendError("faster-whisper is not installed") from e
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"Local whisper inference failed: {e}") from e

    async def is_reachable(self) -> bool:
        if not self.is_configured():
            return False
        return importlib.util.find_spec("faster_whisper") is not None
