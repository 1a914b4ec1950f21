"""Small text and score helpers shared by backends and the reconciliation judge."""

import math


def count_words(text: str) -> int:
    """Count whitespace-delimited words; blank text has zero words."""
    return len(text.split())


def clamp_confidence(value: float | None, default: float = 0.0) -> float:
    """Clamp a confidence score into [0, 1].

    ``None`` and NaN map to ``default`` (itself clamped).
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        value = default
    return min(1.0, max(0.0, float(value)))
