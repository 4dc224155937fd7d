"""FastAPI server for token issuance and slate annotation.

Capture clients fetch temporary provider tokens here so the provider API key
stays on the server. The annotation WebSocket runs the slate parser and take
lifecycle for clients that relay transcripts themselves.
It depends only on the TokenIssuer protocol, allowing use with real or fake
issuers.
"""

import json
import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from slatecap.constants import (
    CORRELATION_WINDOW_SECONDS,
    MAX_PACKET_MS,
    MIN_PACKET_MS,
    TOKEN_EXPIRES_IN_SECONDS,
)
from slatecap.errors import TokenError
from slatecap.router import TranscriptEvent, TranscriptRouter
from slatecap.tokens import TokenIssuer

logger = logging.getLogger(__name__)


def create_app(
    issuer: TokenIssuer,
    correlation_window: float = CORRELATION_WINDOW_SECONDS,
) -> FastAPI:
    """Create a FastAPI application with the given token issuer.

    Args:
        issuer: Token backend (real or fake).
        correlation_window: Slate correlation window for annotation sessions.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(title="Slatecap Token Server")

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "ok",
            "min_packet_ms": MIN_PACKET_MS,
            "max_packet_ms": MAX_PACKET_MS,
            "correlation_window_s": correlation_window,
            "token_expires_in_s": TOKEN_EXPIRES_IN_SECONDS,
        }

    @app.get("/token")
    async def token():
        """Issue a temporary streaming token."""
        try:
            value = await issuer.issue()
        except TokenError as e:
            logger.error(f"Token issuance failed: {e}")
            return JSONResponse(status_code=500, content={"error": str(e)})
        return {"token": value}

    @app.websocket("/v1/annotate")
    async def annotate(websocket: WebSocket):
        """WebSocket endpoint turning transcript events into annotations.

        Protocol:
        - Client sends JSON ``{"text": "...", "is_final": bool, "timestamp": float}``
        - Client sends ``{"type": "reset"}`` to start a new recording session
        - Server responds with one JSON annotation per message:
          ``{"kind": "slate|action|cut|transcript", "text": "...", "timestamp": float}``
        - Malformed messages get ``{"error": "..."}``
        """
        await websocket.accept()
        router = TranscriptRouter(correlation_window=correlation_window)

        try:
            while True:
                message = await websocket.receive_text()

                try:
                    data = json.loads(message)
                except ValueError:
                    await websocket.send_json({"error": "Invalid JSON"})
                    continue

                if isinstance(data, dict) and data.get("type") == "reset":
                    router.reset()
                    await websocket.send_json({"status": "reset"})
                    continue

                event = TranscriptEvent.from_dict(data)
                if event is None:
                    await websocket.send_json({"error": "Expected a transcript object"})
                    continue

                for annotation in router.route(event):
                    await websocket.send_json(annotation.to_dict())

        except WebSocketDisconnect:
            pass

    return app
