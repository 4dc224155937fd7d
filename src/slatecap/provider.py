"""Streaming transcription provider message format.

The provider speaks JSON over a WebSocket:

- ``{"type": "Begin", "id": ..., "expires_at": ...}`` when the session opens
- ``{"type": "Turn", "transcript": "...", "end_of_turn": bool, ...}`` per update
- ``{"type": "Termination", ...}`` when the session closes

Clients send binary PCM16 audio and ``{"type": "Terminate"}`` to finish.
"""

import json
import logging
import time
from urllib.parse import urlencode

from slatecap.router import TranscriptEvent

logger = logging.getLogger(__name__)


def build_stream_url(base_url: str, sample_rate: int, token: str) -> str:
    """Streaming endpoint URL for a session at ``sample_rate``."""
    query = urlencode(
        {
            "sample_rate": sample_rate,
            "encoding": "pcm_s16le",
            "speaker_labels": "true",
            "token": token,
        }
    )
    return f"{base_url}?{query}"


def mask_token(url: str) -> str:
    """Redact the token query parameter for logging."""
    head, sep, tail = url.partition("token=")
    if not sep:
        return url
    _, amp, rest = tail.partition("&")
    return f"{head}token=****{amp}{rest}"


def terminate_message() -> str:
    """Message asking the provider to close the session."""
    return json.dumps({"type": "Terminate"})


def decode_message(raw: str | bytes, clock=time.monotonic) -> TranscriptEvent | None:
    """Turn a provider message into a transcript event.

    Returns:
        An event for ``Turn`` messages, None for session bookkeeping and for
        anything malformed.
    """
    try:
        data = json.loads(raw)
    except ValueError:
        logger.debug(f"Ignoring non-JSON provider message: {raw!r}")
        return None
    if not isinstance(data, dict):
        return None

    msg_type = data.get("type")
    if msg_type == "Turn":
        transcript = data.get("transcript")
        if not isinstance(transcript, str):
            return None
        return TranscriptEvent(
            text=transcript,
            is_final=bool(data.get("end_of_turn", False)),
            timestamp=clock(),
        )
    if msg_type == "Begin":
        logger.info(f"Provider session started: {data.get('id')}")
    elif msg_type == "Termination":
        logger.info("Provider session terminated")
    elif "error" in data:
        logger.error(f"Provider error: {data.get('error')}")
    return None
