from pydantic_settings import BaseSettings, SettingsConfigDict

from cathcr.services.backends.base import TranscriptionBackend


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Server-side fallback chain, tried in order. web_speech is client-only and
    # local_high_performance is always appended last, so both are ignored here.
    transcription_fallback_chain: list[TranscriptionBackend] = [
        TranscriptionBackend.HOSTED_OPEN_MODEL,
        TranscriptionBackend.COMMERCIAL_API,
    ]
    default_language: str = "en"

    # Hosted open model (HuggingFace Inference API)
    huggingface_api_token: str = ""
    huggingface_base_url: str = "https://api-inference.huggingface.co"
    huggingface_whisper_model: str = "openai/whisper-large-v3"

    # Commercial API (OpenAI audio transcriptions)
    openai_api_key: str = ""
    openai_base_url: str | None = None
    openai_whisper_model: str = "whisper-1"
    openai_max_retries: int = 2

    # Local high-performance model (faster-whisper), opt-in only
    local_whisper_enabled: bool = False
    local_whisper_model: str = "base"
    local_whisper_device: str = "auto"  # auto | cpu | cuda
    local_whisper_compute_type: str = "int8"  # int8 | float16 | float32

    # Per-backend call timeout; expiry counts as that backend's failure
    backend_timeout_seconds: float = 60.0

    # Audio URL download
    download_timeout_seconds: float = 30.0
    max_download_size_mb: int = 25

    # Batch resolution
    batch_group_size: int = 5
    batch_delay_ms: int = 100

    # Health probing
    health_probe_timeout_seconds: float = 5.0
    health_probe_interval_seconds: float = 0.0  # 0 disables the background loop
    health_healthy_min_backends: int = 2

    # Upload settings
    max_upload_size_mb: int = 50
    max_batch_files: int = 10

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def max_download_size_bytes(self) -> int:
        return self.max_download_size_mb * 1024 * 1024


settings = Settings()
