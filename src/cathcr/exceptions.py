class CathcrError(Exception):
    """Base exception for the Cathcr transcription service."""


class InputError(CathcrError):
    """Raised when a request carries no usable input, or contradictory audio sources."""


class DownloadError(CathcrError):
    """Raised when an audio URL cannot be fetched (non-2xx status, network error, too large)."""


class BackendError(CathcrError):
    """Raised by a single backend adapter; recovered by the fallback chain."""


class NoBackendAvailableError(CathcrError):
    """Raised when no server-side transcription backend is configured or reachable."""

    def __init__(self, message: str = "no transcription backend available") -> None:
        super().__init__(message)


class AllBackendsFailedError(CathcrError):
    """Raised when every backend in the fallback chain failed for one request."""

    def __init__(self, failures: dict[str, str]) -> None:
        self.failures = dict(failures)
        detail = "; ".join(f"{name}: {reason}" for name, reason in self.failures.items())
        super().__init__(f"all transcription backends failed ({detail})")
