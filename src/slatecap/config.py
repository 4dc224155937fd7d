"""Session configuration read from the environment."""

import os
from dataclasses import dataclass

from slatecap.constants import (
    CORRELATION_WINDOW_SECONDS,
    MAX_PACKET_MS,
    MIN_PACKET_MS,
    PROVIDER_STREAMING_URL,
)
from slatecap.framing import FlushPolicy

DEFAULT_TOKEN_URL = "http://localhost:3000/token"


@dataclass
class SessionConfig:
    """Settings for one captioning session."""

    token_url: str = DEFAULT_TOKEN_URL
    streaming_url: str = PROVIDER_STREAMING_URL
    sample_rate: int | None = None
    min_packet_ms: int = MIN_PACKET_MS
    max_packet_ms: int = MAX_PACKET_MS
    correlation_window: float = CORRELATION_WINDOW_SECONDS
    flush_policy: FlushPolicy = FlushPolicy.DISCARD
    timeout: float = 10.0

    @staticmethod
    def from_env() -> "SessionConfig":
        sample_rate = os.environ.get("SLATECAP_SAMPLE_RATE")
        flush = os.environ.get("SLATECAP_FLUSH_ON_STOP", "").lower() in ("1", "true", "yes")
        return SessionConfig(
            token_url=os.environ.get("SLATECAP_TOKEN_URL", DEFAULT_TOKEN_URL),
            streaming_url=os.environ.get("SLATECAP_STREAMING_URL", PROVIDER_STREAMING_URL),
            sample_rate=int(sample_rate) if sample_rate else None,
            flush_policy=FlushPolicy.FLUSH if flush else FlushPolicy.DISCARD,
        )


@dataclass(frozen=True)
class ServerConfig:
    """Settings for the token and annotation server."""

    api_key: str
    host: str = "127.0.0.1"
    port: int = 3000

    @staticmethod
    def from_env() -> "ServerConfig":
        api_key = os.environ.get("ASSEMBLYAI_API_KEY")
        if not api_key:
            raise ValueError("ASSEMBLYAI_API_KEY is required.")
        return ServerConfig(
            api_key=api_key,
            host=os.environ.get("SLATECAP_HOST", "127.0.0.1"),
            port=int(os.environ.get("SLATECAP_PORT", "3000")),
        )
