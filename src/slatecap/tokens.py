"""Temporary streaming tokens.

The server exchanges the long-lived provider API key for short-lived tokens so
the key never reaches capture clients. Clients fetch a token before opening
the streaming channel.
"""

import logging
from typing import Protocol

import httpx

from slatecap.constants import PROVIDER_TOKEN_URL, TOKEN_EXPIRES_IN_SECONDS
from slatecap.errors import TokenError

logger = logging.getLogger(__name__)


class TokenIssuer(Protocol):
    """Protocol for backends that mint temporary streaming tokens."""

    async def issue(self) -> str:
        """Return a new temporary token.

        Raises:
            TokenError: The provider refused or returned no token.
        """
        ...


class AssemblyAITokenIssuer:
    """Mints tokens from the provider's token endpoint."""

    def __init__(
        self,
        api_key: str,
        expires_in_seconds: int = TOKEN_EXPIRES_IN_SECONDS,
        url: str = PROVIDER_TOKEN_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._expires_in_seconds = expires_in_seconds
        self._url = url
        self._transport = transport

    async def issue(self) -> str:
        async with httpx.AsyncClient(transport=self._transport, timeout=10.0) as client:
            try:
                response = await client.get(
                    self._url,
                    params={"expires_in_seconds": self._expires_in_seconds},
                    headers={"Authorization": self._api_key},
                )
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                raise TokenError(f"token request failed: {e}") from e

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise TokenError("token response has no token")
        return token


async def fetch_token(
    url: str,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Fetch a temporary token from a slatecap token server.

    Raises:
        TokenError: The server was unreachable or answered with an error.
    """
    async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
        try:
            response = await client.get(url)
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TokenError(f"Error fetching token: {e}") from e

    if not isinstance(data, dict):
        raise TokenError("Error fetching token: malformed response")
    if data.get("error"):
        raise TokenError(f"Error fetching token: {data['error']}")
    token = data.get("token")
    if not token:
        raise TokenError("Error fetching token: no token in response")
    logger.info(f"Got temp token (truncated): {token[:8]}...")
    return token
