import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cathcr.config import settings
from cathcr.exceptions import CathcrError
from cathcr.routers import transcription
from cathcr.services.audio import AudioDownloader
from cathcr.services.backends.registry import build_recognizers
from cathcr.services.batch import BatchTranscriber
from cathcr.services.health import HealthMonitor
from cathcr.services.selector import BackendSelector
from cathcr.services.transcriber import TranscriptionService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the transcription services on startup, close network clients on shutdown."""
    logger.info("Starting Cathcr transcription service ...")

    recognizers = build_recognizers(settings)
    downloader = AudioDownloader(settings)
    probe_task: asyncio.Task | None = None
    try:
        selector = BackendSelector(
            recognizers,
            chain=settings.transcription_fallback_chain,
            local_enabled=settings.local_whisper_enabled,
        )
        app.state.transcriber = TranscriptionService(
            selector,
            downloader,
            backend_timeout=settings.backend_timeout_seconds,
            default_language=settings.default_language,
        )
        app.state.batch = BatchTranscriber(
            app.state.transcriber,
            group_size=settings.batch_group_size,
            delay_ms=settings.batch_delay_ms,
        )
        app.state.health = HealthMonitor(
            selector,
            probe_timeout=settings.health_probe_timeout_seconds,
            healthy_min=settings.health_healthy_min_backends,
        )

        chain = selector.fallback_chain()
        if chain:
            logger.info("Fallback chain: %s", " -> ".join(b.value for b in chain))
        else:
            logger.warning("No server-side transcription backend configured")

        if settings.health_probe_interval_seconds > 0:
            probe_task = asyncio.create_task(
                app.state.health.run_periodic(settings.health_probe_interval_seconds)
            )

        logger.info("Cathcr transcription service ready.")
        yield
    finally:
        logger.info("Shutting down Cathcr transcription service ...")
        if probe_task is not None:
            probe_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await probe_task
        for recognizer in recognizers.values():
            await recognizer.close()
        await downloader.close()


app = FastAPI(
    title="Cathcr",
    description="Hybrid speech-to-text resolution for thought capture",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(transcription.router)


@app.exception_handler(CathcrError)
async def cathcr_error_handler(request: Request, exc: CathcrError):
    return JSONResponse(status_code=500, content={"detail": str(exc)})
