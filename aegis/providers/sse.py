"""
Incremental Server-Sent Events decoder.

Streaming bodies arrive as arbitrary byte chunks: a line, a multi-byte UTF-8
character or a whole event may be split across chunk boundaries. The decoder
keeps only the unfinished tail between calls, so memory stays bounded by the
size of one event rather than the whole body.

Usage:
    async for event in aiter_sse(response.aiter_bytes()):
        handle(event.event, event.data)

    # Or push-style
    decoder = SSEDecoder()
    for event in decoder.feed(chunk):
        ...
    for event in decoder.flush():
        ...
"""

import codecs
import json
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ServerSentEvent:
    """One dispatched SSE frame."""

    event: str = "message"
    data: str = ""
    id: str | None = None

    def json(self) -> Any:
        """Decode ``data`` as JSON. Raises ValueError on malformed payloads."""
        return json.loads(self.data)


class SSEDecoder:
    """Turns a byte stream into ServerSentEvent objects, chunk by chunk."""

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        # Length of the buffer prefix already known to hold no line terminator
        self._scanned = 0
        self._event: str | None = None
        self._data: list[str] = []
        self._last_id: str | None = None

    def feed(self, chunk: bytes) -> list[ServerSentEvent]:
        """Consume a chunk and return the events it completed (possibly none)."""
        self._buffer += self._utf8.decode(chunk)
        return self._drain(final=False)

    def flush(self) -> list[ServerSentEvent]:
        """Dispatch whatever is left once the body has ended."""
        self._buffer += self._utf8.decode(b"", final=True)
        events = self._drain(final=True)
        event = self._dispatch()
        if event is not None:
            events.append(event)
        return events

    def _drain(self, final: bool) -> list[ServerSentEvent]:
        """Process every complete line in the buffer, scanning each character once."""
        events = []
        buffer = self._buffer
        start = 0
        newline = buffer.find("\n", self._scanned)
        carriage = buffer.find("\r", self._scanned)

        while newline != -1 or carriage != -1:
            if carriage == -1 or (newline != -1 and newline < carriage):
                end, resume = newline, newline + 1
            elif carriage + 1 < len(buffer):
                end = carriage
                resume = carriage + (2 if buffer[carriage + 1] == "\n" else 1)
            elif final:
                end, resume = carriage, carriage + 1
            else:
                # A trailing \r might be the first half of \r\n
                break

            event = self._process_line(buffer[start:end])
            if event is not None:
                events.append(event)
            start = resume
            if newline != -1 and newline < start:
                newline = buffer.find("\n", start)
            if carriage != -1 and carriage < start:
                carriage = buffer.find("\r", start)

        self._buffer = buffer[start:]
        self._scanned = len(self._buffer) - (1 if self._buffer.endswith("\r") else 0)

        if final and self._buffer:
            event = self._process_line(self._buffer)
            self._buffer = ""
            self._scanned = 0
            if event is not None:
                events.append(event)
        return events

    def _process_line(self, line: str) -> ServerSentEvent | None:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        elif name == "id":
            if "\0" not in value:
                self._last_id = value
        # "retry" and unknown fields are ignored
        return None

    def _dispatch(self) -> ServerSentEvent | None:
        if not self._data:
            # Frames without data are discarded, event name included
            self._event = None
            return None
        event = ServerSentEvent(
            event=self._event or "message",
            data="\n".join(self._data),
            id=self._last_id,
        )
        self._event = None
        self._data = []
        return event


async def aiter_sse(chunks: AsyncIterable[bytes]) -> AsyncIterator[ServerSentEvent]:
    """Decode an async byte stream into events as the bytes arrive."""
    decoder = SSEDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
    for event in decoder.flush():
        yield event
