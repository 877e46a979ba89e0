"""Tests for the upstream streaming client."""

import asyncio

import httpx
import pytest

from src.api import UpstreamClient
from src.core.errors import UpstreamError
from tests.helpers import collect


def _client(handler) -> UpstreamClient:
    return UpstreamClient("http://upstream.test/stream", transport=httpx.MockTransport(handler))


def test_stream_text_yields_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.headers["accept"] == "text/event-stream"
        return httpx.Response(200, content=b'data: {"type":"a"}\n')

    assert "".join(collect(_client(handler).stream_text({"x": 1}))) == 'data: {"type":"a"}\n'


def test_error_status_raises_with_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, content=b"unauthorized")

    with pytest.raises(UpstreamError, match="unauthorized"):
        collect(_client(handler).stream_text({}))


def test_error_status_without_body_mentions_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    with pytest.raises(UpstreamError, match="503"):
        collect(_client(handler).stream_text({}))


def test_empty_body_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"")

    with pytest.raises(UpstreamError):
        collect(_client(handler).stream_text({}))


def test_from_config_requires_url() -> None:
    assert UpstreamClient.from_config({"upstream": {"url": ""}}) is None
    client = UpstreamClient.from_config({"upstream": {"url": "http://x.test", "timeout": 3}})
    assert client is not None
    assert client.url == "http://x.test"
    asyncio.run(client.aclose())
