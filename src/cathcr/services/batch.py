import asyncio
import logging

from cathcr.services.backends.base import TranscriptionRequest, TranscriptionResult
from cathcr.services.transcriber import TranscriptionService

logger = logging.getLogger(__name__)


class BatchTranscriber:
    """Resolve many requests in fixed-size concurrent groups, isolating failures.

    Groups run one after another with a pause in between to stay under
    backend rate limits. Failed items become zero-confidence placeholders;
    nothing is retried here.
    """

    def __init__(
        self,
        transcriber: TranscriptionService,
        group_size: int = 5,
        delay_ms: int = 100,
    ) -> None:
        if group_size < 1:
            raise ValueError("group_size must be >= 1")
        self._transcriber = transcriber
        self._group_size = group_size
        self._delay_s = max(delay_ms, 0) / 1000

    async def batch_transcribe(
        self, requests: list[TranscriptionRequest]
    ) -> list[TranscriptionResult]:
        results: list[TranscriptionResult] = []
        total = len(requests)

        for offset in range(0, total, self._group_size):
            group = requests[offset : offset + self._group_size]
            logger.info(
                "Transcribing batch group %d-%d of %d ...", offset + 1, offset + len(group), total
            )
            outcomes = await asyncio.gather(
                *(self._transcriber.transcribe(request) for request in group),
                return_exceptions=True,
            )

            for index, outcome in enumerate(outcomes, start=offset):
                if isinstance(outcome, Exception):
                    logger.error("Batch transcription failed for request %d: %s", index, outcome)
                    results.append(self._failure_result())
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    results.append(outcome)

            if offset + self._group_size < total:
                await asyncio.sleep(self._delay_s)

        return results

    def _failure_result(self) -> TranscriptionResult:
        return TranscriptionResult(
            text="",
            confidence=0.0,
            backend=self._transcriber.selector.default_backend(),
            processing_time_ms=0.0,
        )
