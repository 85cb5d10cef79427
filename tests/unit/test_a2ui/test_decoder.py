"""
test_decoder.py - Frame Decoder 테스트

검증 포인트:
1. 청크 경계 무관 (임의 바이트 위치 분할 → 같은 결과)
2. 잘못된 프레임 사이에 끼어도 앞뒤 프레임 처리
3. done/error 수신 시 즉시 종료 (이후 청크 읽지 않음)
4. 종료 메시지 없이 끝나면 남은 버퍼 처리 + done 1회
5. HTTP 전송 실패 → error 콜백 1회
"""

import json
from collections.abc import AsyncIterator

import httpx
import pytest

from src.a2ui.decoder import FrameDecoder, consume_stream, stream_surface, strip_frame
from src.a2ui.types import CreateSurface, Message, UpdateComponents


def frame(message: dict) -> str:
    return f"data: {json.dumps(message, ensure_ascii=False)}\n\n"


async def chunked(chunks: list) -> AsyncIterator:
    for chunk in chunks:
        yield chunk


class Recorder:
    """콜백 호출 기록."""

    def __init__(self) -> None:
        self.messages: list[Message] = []
        self.done_calls = 0
        self.errors: list[str] = []

    def on_message(self, message: Message) -> None:
        self.messages.append(message)

    def on_done(self) -> None:
        self.done_calls += 1

    def on_error(self, message: str) -> None:
        self.errors.append(message)

    @property
    def callbacks(self):
        return self.on_message, self.on_done, self.on_error


# =============================================================================
# FrameDecoder
# =============================================================================


class TestFrameDecoder:
    """증분 프레임 분리."""

    def test_single_complete_frame(self):
        decoder = FrameDecoder()
        assert decoder.feed('data: {"type":"done"}\n\n') == ['{"type":"done"}']
        assert decoder.pending == ""

    def test_incomplete_frame_is_buffered(self):
        decoder = FrameDecoder()

        assert decoder.feed('data: {"type":"cre') == []
        assert decoder.pending == 'data: {"type":"cre'

        assert decoder.feed('ateSurface","surfaceId":"s1"}\n\n') == [
            '{"type":"createSurface","surfaceId":"s1"}'
        ]

    def test_delimiter_split_across_chunks(self):
        decoder = FrameDecoder()
        assert decoder.feed('data: {"type":"done"}\n') == []
        assert decoder.feed("\n") == ['{"type":"done"}']

    def test_multiple_frames_in_one_chunk(self):
        decoder = FrameDecoder()
        payloads = decoder.feed('data: {"a":1}\n\ndata: {"b":2}\n\ndata: {"c"')
        assert payloads == ['{"a":1}', '{"b":2}']
        assert decoder.pending == 'data: {"c"'

    def test_empty_fragments_skipped(self):
        decoder = FrameDecoder()
        assert decoder.feed("\n\n\n\ndata: \n\n") == []

    def test_flush_returns_trailing_fragment(self):
        decoder = FrameDecoder()
        decoder.feed('data: {"type":"done"}')
        assert decoder.flush() == ['{"type":"done"}']
        assert decoder.flush() == []

    def test_multibyte_character_split_across_chunks(self):
        """UTF-8 멀티바이트 문자가 청크 사이에서 잘려도 보존."""
        raw = frame({"type": "error", "message": "재고 부족 ✓"}).encode("utf-8")
        assert "✓".encode() in raw  # 이스케이프되지 않은 멀티바이트 그대로
        split = raw.index("✓".encode()) + 1  # ✓ 중간에서 분할

        decoder = FrameDecoder()
        assert decoder.feed(raw[:split]) == []
        payloads = decoder.feed(raw[split:])

        assert json.loads(payloads[0])["message"] == "재고 부족 ✓"

    def test_strip_frame(self):
        assert strip_frame('data: {"x":1}  ') == '{"x":1}'
        assert strip_frame('  {"x":1}\n') == '{"x":1}'
        # 접두사는 맨 앞에 있을 때만 제거
        assert strip_frame('{"note":"data: x"}') == '{"note":"data: x"}'


# =============================================================================
# consume_stream
# =============================================================================


class TestConsumeStream:
    """스트림 소비 + 콜백."""

    @pytest.mark.asyncio
    async def test_whole_stream(self, low_stock_stream: bytes):
        rec = Recorder()

        await consume_stream(chunked([low_stock_stream]), *rec.callbacks)

        assert len(rec.messages) == 3
        assert rec.messages[0] == CreateSurface(surface_id="s1")
        assert rec.done_calls == 1
        assert rec.errors == []

    @pytest.mark.asyncio
    async def test_split_at_every_offset_yields_same_messages(self, low_stock_stream: bytes):
        """임의 바이트 위치에서 두 조각으로 나눠도 같은 메시지 시퀀스."""
        whole = Recorder()
        await consume_stream(chunked([low_stock_stream]), *whole.callbacks)

        for offset in range(len(low_stock_stream) + 1):
            rec = Recorder()
            pieces = [low_stock_stream[:offset], low_stock_stream[offset:]]

            await consume_stream(chunked(pieces), *rec.callbacks)

            assert rec.messages == whole.messages, f"offset {offset}"
            assert rec.done_calls == 1

    @pytest.mark.asyncio
    async def test_byte_at_a_time(self, low_stock_stream: bytes):
        rec = Recorder()
        pieces = [low_stock_stream[i:i + 1] for i in range(len(low_stock_stream))]

        await consume_stream(chunked(pieces), *rec.callbacks)

        assert len(rec.messages) == 3
        assert rec.done_calls == 1

    @pytest.mark.asyncio
    async def test_malformed_frame_between_valid_frames(self):
        """비-JSON 프레임이 끼어도 앞뒤 프레임 처리."""
        body = (
            frame({"type": "createSurface", "surfaceId": "s1"})
            + "data: this is not json\n\n"
            + 'data: {"type":"updateComponents"}\n\n'
            + frame({
                "type": "updateComponents",
                "surfaceId": "s1",
                "components": [{"id": "a", "type": "Heading", "data": {}}],
            })
        )
        rec = Recorder()

        await consume_stream(chunked([body]), *rec.callbacks)

        assert [m.type for m in rec.messages] == ["createSurface", "updateComponents"]
        assert rec.done_calls == 1

    @pytest.mark.asyncio
    async def test_stops_reading_after_error(self):
        """error 메시지 이후 청크는 읽지 않음."""
        read: list[int] = []

        async def tracked() -> AsyncIterator[str]:
            chunks = [
                frame({"type": "createSurface", "surfaceId": "s1"}),
                frame({"type": "error", "message": "rate limited"}),
                frame({"type": "updateComponents", "surfaceId": "s1", "components": []}),
            ]
            for i, chunk in enumerate(chunks):
                read.append(i)
                yield chunk

        rec = Recorder()
        await consume_stream(tracked(), *rec.callbacks)

        assert rec.errors == ["rate limited"]
        assert rec.done_calls == 0
        assert len(rec.messages) == 1
        assert read == [0, 1]

    @pytest.mark.asyncio
    async def test_stops_after_done_in_same_chunk(self):
        body = (
            frame({"type": "createSurface", "surfaceId": "s1"})
            + frame({"type": "done"})
            + frame({"type": "createSurface", "surfaceId": "s2"})
        )
        rec = Recorder()

        await consume_stream(chunked([body]), *rec.callbacks)

        assert rec.messages == [CreateSurface(surface_id="s1")]
        assert rec.done_calls == 1

    @pytest.mark.asyncio
    async def test_stream_end_without_terminal_is_done(self):
        """종료 메시지 없이 끝난 스트림 → 남은 버퍼 처리 후 done 1회."""
        body = frame({"type": "createSurface", "surfaceId": "s1"}) + (
            'data: {"type":"updateComponents","surfaceId":"s1",'
            '"components":[{"id":"a","type":"Heading","data":{}}]}'
        )
        rec = Recorder()

        await consume_stream(chunked([body]), *rec.callbacks)

        assert len(rec.messages) == 2
        assert isinstance(rec.messages[1], UpdateComponents)
        assert rec.done_calls == 1
        assert rec.errors == []

    @pytest.mark.asyncio
    async def test_trailing_error_fragment_is_terminal(self):
        body = 'data: {"type":"error","message":"boom"}'
        rec = Recorder()

        await consume_stream(chunked([body]), *rec.callbacks)

        assert rec.errors == ["boom"]
        assert rec.done_calls == 0

    @pytest.mark.asyncio
    async def test_empty_stream_is_done(self):
        rec = Recorder()
        await consume_stream(chunked([]), *rec.callbacks)
        assert rec.done_calls == 1


# =============================================================================
# stream_surface (HTTP)
# =============================================================================


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="http://testserver",
    )


class TestStreamSurface:
    """HTTP 전송 + 실패 처리."""

    @pytest.mark.asyncio
    async def test_posts_query_and_decodes_body(self, low_stock_stream: bytes):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                content=low_stock_stream,
                headers={"Content-Type": "text/event-stream"},
            )

        rec = Recorder()
        async with make_client(handler) as client:
            await stream_surface(client, "low stock?", *rec.callbacks)

        assert seen == {"path": "/api/ai/surface", "body": {"query": "low stock?"}}
        assert len(rec.messages) == 3
        assert rec.done_calls == 1

    @pytest.mark.asyncio
    async def test_structured_error_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "ANTHROPIC_API_KEY not configured on server"})

        rec = Recorder()
        async with make_client(handler) as client:
            await stream_surface(client, "q", *rec.callbacks)

        assert rec.errors == ["ANTHROPIC_API_KEY not configured on server"]
        assert rec.done_calls == 0
        assert rec.messages == []

    @pytest.mark.asyncio
    async def test_unstructured_error_body_reports_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        rec = Recorder()
        async with make_client(handler) as client:
            await stream_surface(client, "q", *rec.callbacks)

        assert rec.errors == ["Server error 502"]

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        rec = Recorder()
        async with make_client(handler) as client:
            await stream_surface(client, "q", *rec.callbacks)

        assert rec.errors == ["Network error: could not reach the server"]
        assert rec.done_calls == 0

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        rec = Recorder()
        async with make_client(handler) as client:
            await stream_surface(client, "q", *rec.callbacks)

        assert len(rec.errors) == 1
        assert "timed out" in rec.errors[0]
