"""Unit tests for token issuance and fetching."""

import httpx
import pytest

from slatecap.errors import SessionSetupFailure, TokenError
from slatecap.tokens import AssemblyAITokenIssuer, fetch_token


def transport(status: int, payload=None, content: bytes | None = None, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if content is not None:
            return httpx.Response(status, content=content)
        return httpx.Response(status, json=payload)

    return httpx.MockTransport(handler)


class TestAssemblyAITokenIssuer:
    """Tests for the provider token issuer."""

    @pytest.mark.asyncio
    async def test_issue(self):
        seen = []
        issuer = AssemblyAITokenIssuer(
            "key-1", transport=transport(200, {"token": "abc"}, seen=seen)
        )
        assert await issuer.issue() == "abc"
        assert seen[0].headers["authorization"] == "key-1"
        assert seen[0].url.params["expires_in_seconds"] == "600"

    @pytest.mark.asyncio
    async def test_http_error(self):
        issuer = AssemblyAITokenIssuer("bad", transport=transport(401, {"error": "nope"}))
        with pytest.raises(TokenError):
            await issuer.issue()

    @pytest.mark.asyncio
    async def test_missing_token(self):
        issuer = AssemblyAITokenIssuer("key", transport=transport(200, {}))
        with pytest.raises(TokenError):
            await issuer.issue()


class TestFetchToken:
    """Tests for the client-side token fetch."""

    @pytest.mark.asyncio
    async def test_fetch(self):
        token = await fetch_token(
            "http://server/token", transport=transport(200, {"token": "tok-12345678"})
        )
        assert token == "tok-12345678"

    @pytest.mark.asyncio
    async def test_server_error_payload(self):
        with pytest.raises(TokenError, match="quota"):
            await fetch_token(
                "http://server/token", transport=transport(500, {"error": "quota"})
            )

    @pytest.mark.asyncio
    async def test_non_json(self):
        with pytest.raises(TokenError):
            await fetch_token("http://server/token", transport=transport(200, content=b"<html>"))

    @pytest.mark.asyncio
    async def test_token_error_is_setup_failure(self):
        with pytest.raises(SessionSetupFailure):
            await fetch_token("http://server/token", transport=transport(200, {"token": ""}))
