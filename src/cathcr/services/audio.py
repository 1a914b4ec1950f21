import logging

import httpx

from cathcr.config import Settings
from cathcr.exceptions import DownloadError

logger = logging.getLogger(__name__)


class AudioDownloader:
    """Fetch raw audio bytes from a caller-supplied URL.

    Any failure here is the caller's fault (bad URL, missing object), so it is
    raised as ``DownloadError`` and never triggers the backend fallback chain.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._max_bytes = settings.max_download_size_bytes
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.download_timeout_seconds),
            follow_redirects=True,
        )

    async def download(self, url: str) -> bytes:
        logger.info("Downloading audio: %s", url)
        try:
            async with self._client.stream("GET", url) as response:
                if not response.is_success:
                    raise DownloadError(
                        f"Failed to download audio: HTTP {response.status_code} "
                        f"{response.reason_phrase}"
                    )
                chunks: list[bytes] = []
                received = 0
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > self._max_bytes:
                        raise DownloadError(
                            f"Audio exceeds {self._max_bytes} bytes download limit"
                        )
                    chunks.append(chunk)
        except httpx.InvalidURL as e:
            raise DownloadError(f"Invalid audio URL: {url}") from e
        except httpx.HTTPError as e:
            raise DownloadError(f"Failed to download audio file: {e}") from e

        audio = b"".join(chunks)
        if not audio:
            raise DownloadError("Downloaded audio file is empty")
        logger.info("Downloaded %d bytes of audio", len(audio))
        return audio

    async def close(self) -> None:
        await self._client.aclose()
