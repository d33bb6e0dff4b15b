"""
Pytest configuration and shared fixtures.

HTTP is never touched for real: adapters receive an httpx.AsyncClient backed
by httpx.MockTransport, and streaming bodies are served by TrackingStream so
tests can assert when the connection is closed.
"""

import json
from collections.abc import Callable, Iterable
from typing import Any

import httpx
import pytest


class TrackingStream(httpx.AsyncByteStream):
    """Async response body that records how far it was read and whether it was closed.

    Args:
        chunks: Byte chunks served in order
        fail_after: Raise httpx.ReadError instead of serving chunk number ``fail_after``
    """

    def __init__(self, chunks: Iterable[bytes], fail_after: int | None = None):
        self.chunks = list(chunks)
        self.fail_after = fail_after
        self.served = 0
        self.closed = False

    async def __aiter__(self):
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index >= self.fail_after:
                raise httpx.ReadError("Connection reset by peer")
            self.served += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def encode_sse(frames: Iterable[tuple[str | None, Any]]) -> bytes:
    """Encode (event, data) pairs as an SSE body. Dict data is JSON-encoded."""
    lines = []
    for event, data in frames:
        if event is not None:
            lines.append(f"event: {event}")
        payload = data if isinstance(data, str) else json.dumps(data)
        lines.append(f"data: {payload}")
        lines.append("")
    return ("\n".join(lines) + "\n").encode()


def split_bytes(body: bytes, size: int) -> list[bytes]:
    """Cut a body into fixed-size chunks, ignoring line boundaries."""
    return [body[i : i + size] for i in range(0, len(body), size)]


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory building an httpx.AsyncClient that answers with ``handler``."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def tracking_stream() -> type[TrackingStream]:
    """The TrackingStream class, for building streaming responses."""
    return TrackingStream


@pytest.fixture
def sse() -> Callable[[Iterable[tuple[str | None, Any]]], bytes]:
    """SSE body encoder."""
    return encode_sse


@pytest.fixture
def chunked() -> Callable[[bytes, int], list[bytes]]:
    """Fixed-size body splitter."""
    return split_bytes


@pytest.fixture
def captured_requests() -> list[httpx.Request]:
    """List that handlers can append outgoing requests to."""
    return []
