"""Live captioning front end with slate annotation."""

from slatecap.constants import (
    CORRELATION_WINDOW_SECONDS,
    DEFAULT_SAMPLE_RATE,
    MAX_PACKET_MS,
    MIN_PACKET_MS,
)

__all__ = [
    "DEFAULT_SAMPLE_RATE",
    "MIN_PACKET_MS",
    "MAX_PACKET_MS",
    "CORRELATION_WINDOW_SECONDS",
]
