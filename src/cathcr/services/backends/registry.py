from cathcr.config import Settings
from cathcr.services.backends.base import SpeechRecognizer, TranscriptionBackend
from cathcr.services.backends.hosted import HostedWhisperRecognizer
from cathcr.services.backends.local import LocalWhisperRecognizer
from cathcr.services.backends.openai_api import OpenAIWhisperRecognizer


def build_recognizers(settings: Settings) -> dict[TranscriptionBackend, SpeechRecognizer]:
    """Create one adapter per server-side backend.

    Adapters are created even when unconfigured so health reports can list them.
    """
    recognizers: list[SpeechRecognizer] = [
        HostedWhisperRecognizer(settings),
        OpenAIWhisperRecognizer(settings),
        LocalWhisperRecognizer(settings),
    ]
    return {r.backend: r for r in recognizers}
