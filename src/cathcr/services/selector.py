import logging
from collections.abc import Iterable, Mapping

from cathcr.services.backends.base import SpeechRecognizer, TranscriptionBackend

logger = logging.getLogger(__name__)

# Backends that never belong to the configured primary chain.
_EXCLUDED_FROM_PRIMARY = {
    TranscriptionBackend.WEB_SPEECH,
    TranscriptionBackend.LOCAL_HIGH_PERFORMANCE,
}


class BackendSelector:
    """Knows which backends are configured and reachable, and in what order to try them.

    The cached health snapshot is written only by the health monitor and is
    replaced as a whole; everything else here is a pure read.
    """

    def __init__(
        self,
        recognizers: Mapping[TranscriptionBackend, SpeechRecognizer],
        chain: Iterable[TranscriptionBackend],
        local_enabled: bool = False,
    ) -> None:
        self._recognizers = dict(recognizers)
        self._chain = list(chain)
        self._local_enabled = local_enabled
        self._health: dict[TranscriptionBackend, bool] = {}

    @property
    def recognizers(self) -> dict[TranscriptionBackend, SpeechRecognizer]:
        return dict(self._recognizers)

    def recognizer(self, backend: TranscriptionBackend) -> SpeechRecognizer | None:
        return self._recognizers.get(backend)

    def configured_backends(self) -> set[TranscriptionBackend]:
        """web_speech plus every server backend whose credentials/flags are present."""
        configured = {TranscriptionBackend.WEB_SPEECH}
        for backend, recognizer in self._recognizers.items():
            if backend == TranscriptionBackend.LOCAL_HIGH_PERFORMANCE and not self._local_enabled:
                continue
            if recognizer.is_configured():
                configured.add(backend)
        return configured

    def available_backends(self) -> set[TranscriptionBackend]:
        """Configured backends not marked unreachable by the latest health snapshot.

        A backend with no snapshot entry yet counts as available; its first
        real call decides.
        """
        health = self._health
        return {b for b in self.configured_backends() if health.get(b, True)}

    def primary_chain(self) -> list[TranscriptionBackend]:
        available = self.available_backends()
        chain: list[TranscriptionBackend] = []
        for backend in self._chain:
            if backend in _EXCLUDED_FROM_PRIMARY or backend in chain:
                continue
            if backend in available:
                chain.append(backend)
        return chain

    def last_resort(self) -> TranscriptionBackend | None:
        """The local backend, when enabled, available and not already in the chain."""
        local = TranscriptionBackend.LOCAL_HIGH_PERFORMANCE
        if local in self.available_backends() and local not in self.primary_chain():
            return local
        return None

    def fallback_chain(self) -> list[TranscriptionBackend]:
        chain = self.primary_chain()
        rescue = self.last_resort()
        if rescue is not None:
            chain.append(rescue)
        return chain

    def default_backend(self) -> TranscriptionBackend:
        """Backend reported on placeholder results when nothing was attempted."""
        chain = self.fallback_chain()
        return chain[0] if chain else TranscriptionBackend.COMMERCIAL_API

    def update_health(self, snapshot: Mapping[TranscriptionBackend, bool]) -> None:
        self._health = dict(snapshot)
        logger.debug("Health snapshot updated: %s", self._health)

    def capabilities(self) -> dict:
        available = self.available_backends()
        chain = self.fallback_chain()
        return {
            "backends": {b.value: b in available for b in TranscriptionBackend},
            "fallback_chain": [b.value for b in chain],
            "recommended_backend": chain[0].value if chain else None,
        }
