import time
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from cathcr.config import Settings
from cathcr.exceptions import BackendError
from cathcr.services.backends.base import TranscriptionBackend
from cathcr.services.backends.hosted import HostedWhisperRecognizer
from cathcr.services.backends.local import LocalWhisperRecognizer
from cathcr.services.backends.openai_api import OpenAIWhisperRecognizer
from cathcr.services.backends.registry import build_recognizers


@pytest.fixture
def mock_settings() -> Settings:
    return Settings(
        huggingface_api_token="hf_test",
        huggingface_base_url="https://hf.test",
        huggingface_whisper_model="openai/whisper-large-v3",
        openai_api_key="sk-test",
        local_whisper_enabled=True,
    )


def _hosted(settings: Settings, handler) -> HostedWhisperRecognizer:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HostedWhisperRecognizer(settings, client=client)


class TestHostedWhisperRecognizer:
    @pytest.mark.asyncio
    async def test_parses_text_and_chunks(self, mock_settings: Settings):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "text": " call the dentist ",
                    "chunks": [
                        {"text": " call the", "timestamp": [0.0, 0.8]},
                        {"text": " dentist", "timestamp": [0.8, None]},
                    ],
                },
            )

        recognizer = _hosted(mock_settings, handler)
        recognition = await recognizer.recognize(b"audio-bytes", language="en")

        assert recognition.text == "call the dentist"
        assert recognition.confidence == 0.9
        assert [w.word for w in recognition.words] == ["call the", "dentist"]
        assert recognition.words[1].end == 0.8
        assert seen[0].url.path == "/models/openai/whisper-large-v3"
        assert seen[0].url.params["language"] == "en"
        assert seen[0].headers["Authorization"] == "Bearer hf_test"
        assert seen[0].content == b"audio-bytes"

    @pytest.mark.asyncio
    async def test_http_error_raises_backend_error(self, mock_settings: Settings):
        recognizer = _hosted(
            mock_settings, lambda request: httpx.Response(503, text="model loading")
        )

        with pytest.raises(BackendError, match="503"):
            await recognizer.recognize(b"audio")

    @pytest.mark.asyncio
    async def test_unexpected_payload(self, mock_settings: Settings):
        recognizer = _hosted(mock_settings, lambda request: httpx.Response(200, json=[1, 2]))

        with pytest.raises(BackendError):
            await recognizer.recognize(b"audio")

    @pytest.mark.asyncio
    async def test_transport_error(self, mock_settings: Settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        recognizer = _hosted(mock_settings, handler)

        with pytest.raises(BackendError):
            await recognizer.recognize(b"audio")
        assert await recognizer.is_reachable() is False

    @pytest.mark.asyncio
    async def test_non_object_chunk_rejected(self, mock_settings: Settings):
        recognizer = _hosted(
            mock_settings,
            lambda request: httpx.Response(200, json={"text": "hi", "chunks": ["oops"]}),
        )

        with pytest.raises(BackendError, match="Unexpected HuggingFace payload"):
            await recognizer.recognize(b"audio")

    def test_placeholder_token_is_not_configured(self):
        settings = Settings(huggingface_api_token="hf_development_placeholder")

        assert HostedWhisperRecognizer(settings).is_configured() is False

    @pytest.mark.asyncio
    async def test_reachable(self, mock_settings: Settings):
        recognizer = _hosted(mock_settings, lambda request: httpx.Response(200, json={}))

        assert await recognizer.is_reachable() is True


class TestOpenAIWhisperRecognizer:
    @pytest.mark.asyncio
    async def test_recognize(self, mock_settings: Settings):
        recognizer = OpenAIWhisperRecognizer(mock_settings)
        create = AsyncMock(
            return_value=SimpleNamespace(
                text=" pick up the kids ",
                words=[
                    SimpleNamespace(word="pick", start=0.0, end=0.3),
                    SimpleNamespace(word="up", start=0.3, end=0.5),
                ],
            )
        )
        recognizer._client = MagicMock()
        recognizer._client.audio.transcriptions.create = create

        recognition = await recognizer.recognize(b"audio", language="de")

        assert recognition.text == "pick up the kids"
        assert recognition.confidence == 0.9
        assert len(recognition.words) == 2
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "whisper-1"
        assert kwargs["language"] == "de"
        assert kwargs["response_format"] == "verbose_json"

    @pytest.mark.asyncio
    async def test_api_error_raises_backend_error(self, mock_settings: Settings):
        recognizer = OpenAIWhisperRecognizer(mock_settings)
        recognizer._client = MagicMock()
        recognizer._client.audio.transcriptions.create = AsyncMock(
            side_effect=openai.OpenAIError("quota exceeded")
        )

        with pytest.raises(BackendError, match="quota exceeded"):
            await recognizer.recognize(b"audio")

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        recognizer = OpenAIWhisperRecognizer(Settings(openai_api_key=""))

        assert recognizer.is_configured() is False
        assert await recognizer.is_reachable() is False
        with pytest.raises(BackendError):
            await recognizer.recognize(b"audio")


class TestLocalWhisperRecognizer:
    @pytest.mark.asyncio
    async def test_recognize_with_loaded_model(self, mock_settings: Settings):
        words = [
            SimpleNamespace(word=" ship", start=0.0, end=0.4, probability=0.8),
            SimpleNamespace(word=" it", start=0.4, end=0.6, probability=0.6),
        ]
        model = MagicMock()
        model.transcribe.return_value = (
            iter([SimpleNamespace(text=" ship it ", words=words)]),
            SimpleNamespace(language="en"),
        )
        recognizer = LocalWhisperRecognizer(mock_settings)
        recognizer._model = model

        recognition = await recognizer.recognize(b"audio", language="en")

        assert recognition.text == "ship it"
        assert recognition.confidence == pytest.approx(0.7)
        assert [w.word for w in recognition.words] == ["ship", "it"]

    @pytest.mark.asyncio
    async def test_inference_error_wrapped(self, mock_settings: Settings):
        model = MagicMock()
        model.transcribe.side_effect = RuntimeError("CUDA out of memory")
        recognizer = LocalWhisperRecognizer(mock_settings)
        recognizer._model = model

        with pytest.raises(BackendError, match="out of memory"):
            await recognizer.recognize(b"audio")

    def test_model_loaded_once_across_overlapping_threads(self, mock_settings: Settings):
        model = MagicMock()
        model.transcribe.side_effect = lambda *args, **kwargs: (
            iter([SimpleNamespace(text="ok", words=[])]),
            SimpleNamespace(language="en"),
        )

        def slow_load():
            time.sleep(0.1)
            return model

        recognizer = LocalWhisperRecognizer(mock_settings)
        recognizer._load_model = MagicMock(side_effect=slow_load)

        # A worker abandoned by a timed-out caller overlaps with the next call.
        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(recognizer._transcribe_sync, b"audio", None) for _ in range(2)]
            results = [f.result() for f in futures]

        assert recognizer._load_model.call_count == 1
        assert [r.text for r in results] == ["ok", "ok"]

    @pytest.mark.asyncio
    async def test_disabled(self):
        recognizer = LocalWhisperRecognizer(Settings(local_whisper_enabled=False))

        assert recognizer.is_configured() is False
        assert await recognizer.is_reachable() is False


def test_registry_builds_one_adapter_per_server_backend(mock_settings: Settings):
    recognizers = build_recognizers(mock_settings)

    assert set(recognizers) == {
        TranscriptionBackend.HOSTED_OPEN_MODEL,
        TranscriptionBackend.COMMERCIAL_API,
        TranscriptionBackend.LOCAL_HIGH_PERFORMANCE,
    }
