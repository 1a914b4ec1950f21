import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum

from cathcr.services.backends.base import SpeechRecognizer, TranscriptionBackend
from cathcr.services.selector import BackendSelector

logger = logging.getLogger(__name__)


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class HealthReport:
    backends: dict[TranscriptionBackend, bool]
    status: HealthStatus
    latency_ms: float
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def aggregate_status(usable: int, healthy_min: int = 2) -> HealthStatus:
    if usable <= 0:
        return HealthStatus.UNHEALTHY
    if usable >= healthy_min:
        return HealthStatus.HEALTHY
    return HealthStatus.DEGRADED


class HealthMonitor:
    """Probe every backend and publish the snapshot to the selector.

    ``health_check`` never raises: a failing probe only marks its backend
    unusable.
    """

    def __init__(
        self,
        selector: BackendSelector,
        probe_timeout: float = 5.0,
        healthy_min: int = 2,
    ) -> None:
        self._selector = selector
        self._probe_timeout = probe_timeout
        self._healthy_min = healthy_min
        self._last_report: HealthReport | None = None

    @property
    def last_report(self) -> HealthReport | None:
        return self._last_report

    async def _probe(self, recognizer: SpeechRecognizer) -> bool:
        try:
            if not recognizer.is_configured():
                return False
            return bool(
                await asyncio.wait_for(recognizer.is_reachable(), timeout=self._probe_timeout)
            )
        except Exception as e:
            logger.warning("Health probe for '%s' failed: %s", recognizer.backend.value, e)
            return False

    async def health_check(self) -> HealthReport:
        start = time.perf_counter()
        recognizers = self._selector.recognizers

        backends: dict[TranscriptionBackend, bool] = {
            TranscriptionBackend.WEB_SPEECH: True,
        }
        try:
            probes = await asyncio.gather(*(self._probe(r) for r in recognizers.values()))
            backends.update(zip(recognizers.keys(), probes))
        except Exception:
            logger.exception("Health check aborted; marking server backends unusable")
            backends.update({b: False for b in recognizers})

        usable = sum(1 for ok in backends.values() if ok)
        report = HealthReport(
            backends=backends,
            status=aggregate_status(usable, self._healthy_min),
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        self._selector.update_health(backends)
        self._last_report = report
        logger.info(
            "Health check: %s (%d/%d backends usable, %.0fms)",
            report.status.value,
            usable,
            len(backends),
            report.latency_ms,
        )
        return report

    async def run_periodic(self, interval: float) -> None:
        """Re-probe every ``interval`` seconds until cancelled."""
        while True:
            await self.health_check()
            await asyncio.sleep(interval)
