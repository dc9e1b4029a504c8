"""Tests for HTTP client utility module."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from shared.http_client import AsyncHTTPClient


def _mock_session(response: Any) -> MagicMock:
    session = MagicMock()
    session.close = AsyncMock()
    session.get.return_value.__aenter__ = AsyncMock(return_value=response)
    session.get.return_value.__aexit__ = AsyncMock(return_value=None)
    return session


class TestAsyncHTTPClient:
    """Test HTTP client functionality."""

    @pytest.mark.asyncio
    async def test_context_manager_sets_default_headers(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value = _mock_session(AsyncMock())

            async with AsyncHTTPClient(timeout=5, headers={"X-Api-Key": "abc"}) as client:
                assert client.session is not None

            kwargs = mock_session_class.call_args.kwargs
            assert kwargs["headers"]["Accept"] == "application/json"
            assert kwargs["headers"]["User-Agent"] == "LeadForge/1.0"
            assert kwargs["headers"]["X-Api-Key"] == "abc"
            assert kwargs["timeout"].total == 5
            client.session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_request(self) -> None:
        """Test GET request functionality."""
        mock_response_data: dict[str, Any] = {"data": {"allProjectPreview": {"nodes": []}}}
        mock_response = MagicMock()
        mock_response.raise_for_status.return_value = None
        mock_response.json = AsyncMock(return_value=mock_response_data)

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session = _mock_session(mock_response)
            mock_session_class.return_value = mock_session

            async with AsyncHTTPClient() as client:
                result = await client.get("https://cases.example.com/catalog.json")

            assert result == mock_response_data
            mock_session.get.assert_called_once_with(
                "https://cases.example.com/catalog.json", headers=None
            )
            # Body is decoded whatever the advertised content type
            mock_response.json.assert_awaited_once_with(content_type=None)

    @pytest.mark.asyncio
    async def test_not_initialized_error(self) -> None:
        """Test error when client not used as context manager."""
        client = AsyncHTTPClient()
        with pytest.raises(RuntimeError, match="HTTP client not initialized"):
            await client.get("https://api.example.com/test")

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        """Test HTTP error status handling."""
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = aiohttp.ClientResponseError(
            request_info=MagicMock(), history=(), status=404
        )

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value = _mock_session(mock_response)

            async with AsyncHTTPClient() as client:
                with pytest.raises(aiohttp.ClientResponseError):
                    await client.get("https://api.example.com/notfound")
