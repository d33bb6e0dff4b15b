"""Tests for aegis/providers/sse.py - incremental SSE decoder."""

import pytest

from aegis.providers.sse import ServerSentEvent, SSEDecoder, aiter_sse


class TestSSEDecoder:
    """Tests for SSEDecoder.feed/flush."""

    def test_single_event(self):
        """A complete frame should dispatch one event."""
        events = SSEDecoder().feed(b'event: ping\ndata: {"type": "ping"}\n\n')

        assert events == [ServerSentEvent(event="ping", data='{"type": "ping"}')]

    def test_default_event_name(self):
        """Frames without an event field should be 'message' events."""
        events = SSEDecoder().feed(b"data: hello\n\n")

        assert events[0].event == "message"
        assert events[0].data == "hello"

    def test_incomplete_frame_waits_for_blank_line(self):
        """Nothing should be dispatched until the frame ends."""
        decoder = SSEDecoder()

        assert decoder.feed(b"data: hel") == []
        assert decoder.feed(b"lo\n") == []
        assert decoder.feed(b"\n") == [ServerSentEvent(data="hello")]

    def test_split_at_every_byte(self):
        """Events should survive being fed one byte at a time."""
        body = b"event: a\ndata: 1\n\nevent: b\ndata: 2\n\n"
        decoder = SSEDecoder()

        events = []
        for i in range(len(body)):
            events.extend(decoder.feed(body[i : i + 1]))

        assert [(e.event, e.data) for e in events] == [("a", "1"), ("b", "2")]

    def test_split_multibyte_utf8(self):
        """A UTF-8 character cut in half should decode correctly."""
        body = "data: héllo ✓\n\n".encode()
        cut = body.index("✓".encode()) + 1
        decoder = SSEDecoder()

        events = decoder.feed(body[:cut]) + decoder.feed(body[cut:])

        assert events[0].data == "héllo ✓"

    @pytest.mark.parametrize("newline", [b"\r\n", b"\r"])
    def test_alternative_line_endings(self, newline):
        """CRLF and CR line endings should be accepted."""
        body = b"event: x" + newline + b"data: y" + newline + newline
        decoder = SSEDecoder()

        events = decoder.feed(body) + decoder.flush()

        assert events == [ServerSentEvent(event="x", data="y")]

    def test_crlf_split_between_chunks(self):
        """A CRLF split across chunks should count as one line break."""
        decoder = SSEDecoder()

        events = decoder.feed(b"data: a\r") + decoder.feed(b"\n\r\n")

        assert events == [ServerSentEvent(data="a")]

    def test_lone_cr_after_partial_line(self):
        """A pending \\r followed by a non-\\n chunk should end just one line."""
        decoder = SSEDecoder()

        events = decoder.feed(b"data: a") + decoder.feed(b"bc\r") + decoder.feed(b"data: d\r\r")

        assert events == [ServerSentEvent(data="abc\nd")]

    def test_long_line_in_small_chunks(self):
        """A line much longer than each chunk should be reassembled intact."""
        payload = "x" * 5000
        body = f"data: {payload}\n\n".encode()
        decoder = SSEDecoder()

        events = []
        for i in range(0, len(body), 3):
            events.extend(decoder.feed(body[i : i + 3]))

        assert [e.data for e in events] == [payload]

    def test_many_events_in_one_chunk(self):
        """One chunk holding many frames should dispatch them all in order."""
        body = b"".join(f"data: {i}\n\n".encode() for i in range(1000))

        events = SSEDecoder().feed(body)

        assert [e.data for e in events] == [str(i) for i in range(1000)]

    def test_multiline_data(self):
        """Multiple data lines should be joined with newlines."""
        events = SSEDecoder().feed(b"data: line1\ndata: line2\n\n")

        assert events[0].data == "line1\nline2"

    def test_comments_and_unknown_fields_ignored(self):
        """Comment lines and unknown fields should not affect events."""
        events = SSEDecoder().feed(b": keep-alive\nretry: 100\nfoo: bar\ndata: x\n\n")

        assert events == [ServerSentEvent(data="x")]

    def test_frame_without_data_is_discarded(self):
        """An event with no data lines should not be dispatched."""
        decoder = SSEDecoder()

        assert decoder.feed(b"event: lonely\n\n") == []
        # The discarded event name must not leak into the next frame
        assert decoder.feed(b"data: x\n\n")[0].event == "message"

    def test_id_field(self):
        """The last event id should be attached to events."""
        events = SSEDecoder().feed(b"id: 7\ndata: x\n\ndata: y\n\n")

        assert [e.id for e in events] == ["7", "7"]

    def test_field_without_space(self):
        """'data:x' should be read the same as 'data: x'."""
        assert SSEDecoder().feed(b"data:x\n\n")[0].data == "x"

    def test_flush_dispatches_trailing_event(self):
        """A final frame without a blank line should come out on flush."""
        decoder = SSEDecoder()

        assert decoder.feed(b"data: [DONE]") == []
        assert decoder.flush() == [ServerSentEvent(data="[DONE]")]

    def test_flush_empty(self):
        """flush on a clean decoder should return nothing."""
        assert SSEDecoder().flush() == []

    def test_json_helper(self):
        """json() should decode the data payload."""
        assert ServerSentEvent(data='{"a": 1}').json() == {"a": 1}
        with pytest.raises(ValueError):
            ServerSentEvent(data="not json").json()


class TestAiterSSE:
    """Tests for aiter_sse."""

    @pytest.mark.asyncio
    async def test_decodes_async_chunks(self):
        """aiter_sse should yield events as chunks arrive, then flush."""

        async def chunks():
            yield b"data: 1\n"
            yield b"\ndata: "
            yield b"2"

        events = [event async for event in aiter_sse(chunks())]

        assert [e.data for e in events] == ["1", "2"]
