from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from cathcr.services.audio import AudioDownloader
from cathcr.services.batch import BatchTranscriber
from cathcr.services.health import HealthMonitor
from cathcr.services.selector import BackendSelector
from cathcr.services.transcriber import TranscriptionService
from fakes import COMMERCIAL, HOSTED, FakeRecognizer, make_selector


@pytest.fixture
def mock_downloader() -> MagicMock:
    downloader = MagicMock(spec=AudioDownloader)
    downloader.download = AsyncMock(return_value=b"downloaded-audio")
    return downloader


@pytest.fixture
def hosted() -> FakeRecognizer:
    return FakeRecognizer(HOSTED)


@pytest.fixture
def commercial() -> FakeRecognizer:
    return FakeRecognizer(COMMERCIAL)


@pytest.fixture
def selector(hosted: FakeRecognizer, commercial: FakeRecognizer) -> BackendSelector:
    return make_selector(hosted, commercial)


@pytest.fixture
def transcriber(selector: BackendSelector, mock_downloader: MagicMock) -> TranscriptionService:
    return TranscriptionService(selector, mock_downloader, backend_timeout=1.0)


@pytest.fixture
def mock_transcriber() -> MagicMock:
    """Create a mocked TranscriptionService for router tests."""
    transcriber = MagicMock(spec=TranscriptionService)
    transcriber.selector = MagicMock(spec=BackendSelector)
    return transcriber


@pytest.fixture
def mock_batch() -> MagicMock:
    return MagicMock(spec=BatchTranscriber)


@pytest.fixture
def mock_health() -> MagicMock:
    return MagicMock(spec=HealthMonitor)


@pytest.fixture
def test_app(mock_transcriber: MagicMock, mock_batch: MagicMock, mock_health: MagicMock):
    """Create a test FastAPI app with mocked services."""
    from fastapi import FastAPI
    from cathcr.routers.transcription import router as transcription_router

    app = FastAPI()
    app.state.transcriber = mock_transcriber
    app.state.batch = mock_batch
    app.state.health = mock_health
    app.include_router(transcription_router)
    return app


@pytest.fixture
def client(test_app) -> TestClient:
    return TestClient(test_app)
