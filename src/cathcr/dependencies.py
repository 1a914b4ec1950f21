from fastapi import Request

from cathcr.services.batch import BatchTranscriber
from cathcr.services.health import HealthMonitor
from cathcr.services.transcriber import TranscriptionService


def get_transcriber(request: Request) -> TranscriptionService:
    """Retrieve the TranscriptionService instance from app state."""
    return request.app.state.transcriber


def get_batch_transcriber(request: Request) -> BatchTranscriber:
    """Retrieve the BatchTranscriber instance from app state."""
    return request.app.state.batch


def get_health_monitor(request: Request) -> HealthMonitor:
    """Retrieve the HealthMonitor instance from app state."""
    return request.app.state.health
