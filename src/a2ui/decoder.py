"""
Frame Decoder: SSE 바이트 스트림 → 프로토콜 메시지.

와이어 포맷 (비트 단위 고정):
    data: <json>\\n\\n

규칙:
- 청크 경계 ≠ 메시지 경계 → 불완전한 꼬리는 다음 청크까지 버퍼에 보관
- done/error 메시지 수신 시 즉시 종료 (이후 바이트 읽지 않음)
- 종료 메시지 없이 스트림이 끝나면 → 남은 버퍼 처리 후 done 콜백 1회
- 전송 실패 (연결 불가, non-2xx, 타임아웃) → error 콜백 1회
"""

import codecs
import logging
from collections.abc import AsyncIterable, Callable
from typing import Any

import httpx

from src.a2ui.types import DONE, ERROR, Message
from src.a2ui.validator import parse_message

logger = logging.getLogger(__name__)

FRAME_DELIMITER = "\n\n"
DATA_PREFIX = "data: "

DEFAULT_SURFACE_PATH = "/api/ai/surface"

MessageCallback = Callable[[Message], None]
DoneCallback = Callable[[], None]
ErrorCallback = Callable[[str], None]


# =============================================================================
# Frame Decoder
# =============================================================================

class FrameDecoder:
    """
    증분 SSE 프레임 디코더.

    Usage:
        decoder = FrameDecoder()
        for payload in decoder.feed(chunk):
            ...
        for payload in decoder.flush():
            ...
    """

    def __init__(self) -> None:
        self._buffer = ""
        # 멀티바이트 문자가 청크 사이에서 잘려도 보존
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def pending(self) -> str:
        """아직 구분자를 만나지 못한 버퍼 내용."""
        return self._buffer

    def feed(self, chunk: bytes | str) -> list[str]:
        """
        청크 하나를 버퍼에 추가하고 완결된 프레임 페이로드 목록 반환.

        마지막 (불완전할 수 있는) 조각은 버퍼에 남김.
        """
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer += chunk

        fragments = self._buffer.split(FRAME_DELIMITER)
        self._buffer = fragments.pop()

        return [p for p in (strip_frame(f) for f in fragments) if p]

    def flush(self) -> list[str]:
        """스트림 종료 시 남은 버퍼를 프레임으로 처리."""
        self._buffer += self._utf8.decode(b"", final=True)
        remainder = strip_frame(self._buffer)
        self._buffer = ""
        return [remainder] if remainder else []


def strip_frame(fragment: str) -> str:
    """'data: ' 접두사와 앞뒤 공백 제거."""
    if fragment.startswith(DATA_PREFIX):
        fragment = fragment[len(DATA_PREFIX):]
    return fragment.strip()


# =============================================================================
# Stream Consumption
# =============================================================================

async def consume_stream(
    chunks: AsyncIterable[bytes | str],
    on_message: MessageCallback,
    on_done: DoneCallback,
    on_error: ErrorCallback,
) -> None:
    """
    청크 스트림을 순차적으로 읽어 메시지를 전달.

    청크 하나를 기다리는 동안만 suspend (자연스러운 backpressure).
    done/error 중 정확히 하나의 종료 콜백이 최대 1회 호출됨.

    Args:
        chunks: 전송 계층 청크 (bytes 또는 str)
        on_message: 비종료 메시지마다 호출
        on_done: done 수신 또는 스트림 종료 시
        on_error: error 메시지 수신 시 (메시지 전달)
    """
    decoder = FrameDecoder()

    async for chunk in chunks:
        for payload in decoder.feed(chunk):
            if _dispatch(payload, on_message, on_done, on_error):
                return

    for payload in decoder.flush():
        if _dispatch(payload, on_message, on_done, on_error):
            return

    # 종료 메시지 없이 끝난 스트림 = 암묵적 완료
    on_done()


def _dispatch(
    payload: str,
    on_message: MessageCallback,
    on_done: DoneCallback,
    on_error: ErrorCallback,
) -> bool:
    """페이로드 하나 처리. 종료 메시지였으면 True."""
    message = parse_message(payload)
    if message is None:
        return False

    if message.type == DONE:
        on_done()
        return True
    if message.type == ERROR:
        on_error(message.message)  # type: ignore[union-attr]
        return True

    on_message(message)
    return False


# =============================================================================
# HTTP Transport
# =============================================================================

async def stream_surface(
    client: httpx.AsyncClient,
    query: str,
    on_message: MessageCallback,
    on_done: DoneCallback,
    on_error: ErrorCallback,
    path: str = DEFAULT_SURFACE_PATH,
) -> None:
    """
    질의를 POST하고 응답 SSE 본문을 디코딩.

    타임아웃은 client에 설정된 httpx.Timeout을 따름 (전송 실패로 처리).

    Args:
        client: base_url/쿠키/타임아웃이 설정된 httpx.AsyncClient
        query: 자연어 질의
        path: surface 엔드포인트 경로
    """
    try:
        async with client.stream("POST", path, json={"query": query}) as response:
            if not response.is_success:
                await response.aread()
                on_error(_describe_failure(response))
                return

            await consume_stream(response.aiter_bytes(), on_message, on_done, on_error)

    except httpx.TimeoutException as e:
        logger.error(f"Surface stream timed out: {e}")
        on_error("Request timed out while waiting for the assistant")
    except httpx.HTTPError as e:
        logger.error(f"Surface stream transport failure: {e}")
        on_error("Network error: could not reach the server")


def _describe_failure(response: httpx.Response) -> str:
    """구조화된 에러 본문이 있으면 그 메시지, 없으면 상태 코드."""
    body: Any
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return str(body["error"])
    return f"Server error {response.status_code}"
