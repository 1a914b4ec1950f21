from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from cathcr.config import settings
from cathcr.dependencies import get_batch_transcriber, get_health_monitor, get_transcriber
from cathcr.exceptions import (
    AllBackendsFailedError,
    CathcrError,
    DownloadError,
    InputError,
    NoBackendAvailableError,
)
from cathcr.schemas.transcription import (
    BatchTranscriptionResponse,
    CapabilitiesResponse,
    EnhanceResponse,
    HealthResponse,
    LanguageSchema,
    TranscriptionResultSchema,
    UrlTranscriptionRequest,
)
from cathcr.services.backends.base import TranscriptionRequest, TranscriptionResult
from cathcr.services.batch import BatchTranscriber
from cathcr.services.health import HealthMonitor
from cathcr.services.transcriber import TranscriptionService
from cathcr.utils.languages import SUPPORTED_LANGUAGES

router = APIRouter(prefix="/api/v1/transcription", tags=["transcription"])


def _http_error(exc: CathcrError) -> HTTPException:
    if isinstance(exc, (InputError, DownloadError)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NoBackendAvailableError):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, AllBackendsFailedError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


async def _read_audio(file: UploadFile) -> bytes:
    """Read an uploaded audio file, enforcing content type and size limits."""
    if file.content_type and not file.content_type.startswith("audio/"):
        raise HTTPException(status_code=400, detail="Only audio files are allowed")

    audio_bytes = await file.read()
    if len(audio_bytes) > settings.max_upload_size_bytes:
        raise HTTPException(status_code=413, detail="File too large")
    return audio_bytes


async def _run(
    transcriber: TranscriptionService, request: TranscriptionRequest
) -> TranscriptionResult:
    try:
        return await transcriber.transcribe(request)
    except CathcrError as e:
        raise _http_error(e)


@router.post("/enhance", response_model=EnhanceResponse)
async def enhance(
    web_speech_text: str | None = Form(default=None),
    language: str | None = Form(default=None),
    enhance: bool = Form(default=True),
    audio: UploadFile | None = File(default=None),
    transcriber: TranscriptionService = Depends(get_transcriber),
) -> EnhanceResponse:
    """Resolve a real-time transcript, optionally re-checking it against the audio."""
    audio_bytes = await _read_audio(audio) if audio is not None else None
    if not (web_speech_text and web_speech_text.strip()) and not audio_bytes:
        raise HTTPException(
            status_code=400, detail="Either web_speech_text or audio file is required"
        )

    result = await _run(
        transcriber,
        TranscriptionRequest(
            audio_bytes=audio_bytes,
            realtime_text=web_speech_text,
            language=language,
            enhance=enhance,
        ),
    )
    return EnhanceResponse(
        **TranscriptionResultSchema.from_result(result).model_dump(),
        original_web_speech=web_speech_text,
    )


@router.post("/process", response_model=TranscriptionResultSchema)
async def process(
    audio: UploadFile = File(...),
    language: str | None = Form(default=None),
    transcriber: TranscriptionService = Depends(get_transcriber),
) -> TranscriptionResultSchema:
    """Transcribe an uploaded audio file server-side."""
    audio_bytes = await _read_audio(audio)
    result = await _run(
        transcriber, TranscriptionRequest(audio_bytes=audio_bytes, language=language)
    )
    return TranscriptionResultSchema.from_result(result)


@router.post("/batch", response_model=BatchTranscriptionResponse)
async def batch(
    audio: list[UploadFile] = File(...),
    language: str | None = Form(default=None),
    batch_transcriber: BatchTranscriber = Depends(get_batch_transcriber),
) -> BatchTranscriptionResponse:
    """Transcribe several audio files; failed items come back empty with zero confidence."""
    if not audio:
        raise HTTPException(status_code=400, detail="At least one audio file is required")
    if len(audio) > settings.max_batch_files:
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.max_batch_files} audio files per batch",
        )

    requests = [
        TranscriptionRequest(audio_bytes=await _read_audio(f), language=language) for f in audio
    ]
    results = await batch_transcriber.batch_transcribe(requests)
    return BatchTranscriptionResponse(
        results=[TranscriptionResultSchema.from_result(r) for r in results],
        processed=len(results),
    )


@router.post("/url", response_model=TranscriptionResultSchema)
async def transcribe_url(
    body: UrlTranscriptionRequest,
    transcriber: TranscriptionService = Depends(get_transcriber),
) -> TranscriptionResultSchema:
    """Download audio from a URL and transcribe it."""
    result = await _run(
        transcriber,
        TranscriptionRequest(audio_url=str(body.audio_url), language=body.language),
    )
    return TranscriptionResultSchema.from_result(result)


@router.get("/capabilities", response_model=CapabilitiesResponse)
async def capabilities(
    transcriber: TranscriptionService = Depends(get_transcriber),
) -> CapabilitiesResponse:
    """Report which backends are usable and the active fallback chain."""
    return CapabilitiesResponse(**transcriber.selector.capabilities())


@router.get("/health", response_model=HealthResponse)
async def health(
    monitor: HealthMonitor = Depends(get_health_monitor),
) -> HealthResponse:
    """Probe every backend and report the aggregate status."""
    report = await monitor.health_check()
    return HealthResponse.from_report(report)


@router.get("/languages", response_model=list[LanguageSchema])
async def languages() -> list[LanguageSchema]:
    return [LanguageSchema(**lang) for lang in SUPPORTED_LANGUAGES]
