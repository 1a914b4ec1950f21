"""Choose between a real-time (web_speech) transcript and a server transcript.

Rules are evaluated in order; the first match wins:

1. server confidence > 0.9                                   -> server
2. server words >= 1.5 x real-time words and server words > 5 -> server
3. real-time words < 3 and server words > 5                   -> server
4. otherwise the real-time text, with confidence lifted to
   max(0.85, server confidence x 0.9) and zero processing time.
"""

import logging

from cathcr.services.backends.base import (
    WEB_SPEECH_CONFIDENCE,
    TranscriptionBackend,
    TranscriptionResult,
)
from cathcr.utils.text import count_words

logger = logging.getLogger(__name__)

SERVER_CONFIDENCE_THRESHOLD = 0.9
LENGTH_RATIO = 1.5
MIN_SERVER_WORDS = 5
SHORT_REALTIME_WORDS = 3
CORROBORATION_DISCOUNT = 0.9


def reconcile(realtime_text: str, server: TranscriptionResult) -> TranscriptionResult:
    """Return the authoritative result for one utterance. Never raises."""
    realtime_words = count_words(realtime_text)
    server_words = count_words(server.text)

    if server.confidence > SERVER_CONFIDENCE_THRESHOLD:
        logger.info("Reconciliation: server wins on confidence %.2f", server.confidence)
        return server

    if server_words >= realtime_words * LENGTH_RATIO and server_words > MIN_SERVER_WORDS:
        logger.info(
            "Reconciliation: server wins on length (%d vs %d words)",
            server_words,
            realtime_words,
        )
        return server

    if realtime_words < SHORT_REALTIME_WORDS and server_words > MIN_SERVER_WORDS:
        logger.info(
            "Reconciliation: real-time transcript too short (%d words), server wins",
            realtime_words,
        )
        return server

    return TranscriptionResult(
        text=realtime_text,
        confidence=max(WEB_SPEECH_CONFIDENCE, server.confidence * CORROBORATION_DISCOUNT),
        backend=TranscriptionBackend.WEB_SPEECH,
        processing_time_ms=0.0,
    )
