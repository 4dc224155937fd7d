#!/usr/bin/env -S uv run python
"""
Token Server

Serves temporary streaming tokens to capture clients and the slate annotation
WebSocket.

Usage:
    ASSEMBLYAI_API_KEY=... ./token_server.py

Environment variables:
    ASSEMBLYAI_API_KEY  - Provider API key (required)
    SLATECAP_HOST       - Bind address (default: 127.0.0.1)
    SLATECAP_PORT       - Port (default: 3000)
"""

import logging

import uvicorn

from slatecap.config import ServerConfig
from slatecap.server import create_app
from slatecap.tokens import AssemblyAITokenIssuer


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = ServerConfig.from_env()
    app = create_app(AssemblyAITokenIssuer(config.api_key))
    logging.getLogger(__name__).info(
        f"Server is listening on http://{config.host}:{config.port}"
    )
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
