"""HuggingFace Inference API client for hosted open-weights Whisper models.

The raw audio bytes are posted as the request body; the API answers with
``{"text": ..., "chunks": [{"text": ..., "timestamp": [start, end]}]}`` when
timestamps are requested. No confidence is returned, so a fixed value is used.
"""

import logging

import httpx

from cathcr.config import Settings
from cathcr.exceptions import BackendError
from cathcr.services.backends.base import (
    Recognition,
    SpeechRecognizer,
    TranscriptionBackend,
    WordTimestamp,
)

logger = logging.getLogger(__name__)

_PLACEHOLDER_TOKENS = {"", "hf_development_placeholder"}
_ASSUMED_CONFIDENCE = 0.9


class HostedWhisperRecognizer(SpeechRecognizer):
    backend = TranscriptionBackend.HOSTED_OPEN_MODEL

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._token = settings.huggingface_api_token
        self._model = settings.huggingface_whisper_model
        self._base_url = settings.huggingface_base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=10.0,
                read=settings.backend_timeout_seconds,
                write=30.0,
                pool=10.0,
            )
        )

    @property
    def _model_url(self) -> str:
        return f"{self._base_url}/models/{self._model}"

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    def is_configured(self) -> bool:
        return self._token not in _PLACEHOLDER_TOKENS

    async def recognize(self, audio: bytes, *, language: str | None = None) -> Recognition:
        if not self.is_configured():
            raise BackendError("HuggingFace API token not configured")

        params: dict[str, str] = {"return_timestamps": "true"}
        if language:
            params["language"] = language

        try:
            response = await self._client.post(
                self._model_url,
                content=audio,
                params=params,
                headers={**self._headers, "Content-Type": "application/octet-stream"},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise BackendError(
                f"HuggingFace returned HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise BackendError(f"HuggingFace request failed: {e}") from e
        except ValueError as e:
            raise BackendError(f"HuggingFace returned invalid JSON: {e}") from e

        return self._parse(payload)

    @staticmethod
    def _parse(payload: object) -> Recognition:
        # The inference API answers either a bare string or an object with "text".
        if isinstance(payload, str):
            return Recognition(text=payload.strip(), confidence=_ASSUMED_CONFIDENCE)
        if not isinstance(payload, dict) or "text" not in payload:
            raise BackendError(f"Unexpected HuggingFace payload: {str(payload)[:200]}")

        words: list[WordTimestamp] = []
        for chunk in payload.get("chunks") or []:
            if not isinstance(chunk, dict):
                raise BackendError(f"Unexpected HuggingFace payload: {str(chunk)[:200]}")
            timestamp = chunk.get("timestamp") or [None, None]
            start, end = (list(timestamp) + [None, None])[:2]
            words.append(
                WordTimestamp(
                    word=str(chunk.get("text", "")).strip(),
                    start=float(start or 0.0),
                    end=float(end if end is not None else start or 0.0),
                    confidence=_ASSUMED_CONFIDENCE,
                )
            )

        return Recognition(
            text=str(payload.get("text") or "").strip(),
            confidence=_ASSUMED_CONFIDENCE,
            words=words,
        )

    async def is_reachable(self) -> bool:
        """Check that the model endpoint answers with the configured token."""
        if not self.is_configured():
            return False
        try:
            response = await self._client.get(
                self._model_url,
                headers=self._headers,
                timeout=httpx.Timeout(5.0),
            )
            return response.status_code == 200
        except Exception:
            logger.debug("HuggingFace reachability probe failed", exc_info=True)
            return False

    async def close(self) -> None:
        await self._client.aclose()
