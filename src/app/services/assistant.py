"""
Assistant Service: 자연어 질의 → A2UI SSE 프레임 스트림.

흐름:
1. 질의 검증 (빈 질의 → QUERY_REQUIRED)
2. 재고 snapshot 구성 → system prompt에 삽입
3. provider 텍스트 청크 → 줄 단위 분리 → JSON인 줄만 프레임으로 전송
4. 항상 마지막에 {"type": "done"} 전송
   업스트림 실패 시 {"type": "error", "message": ...} 전송 후 종료

와이어 포맷: data: <json>\\n\\n
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from src.app.providers.base import ProviderError, SurfaceProvider
from src.app.services.inventory import InventoryService
from src.domain.errors import ErrorCodes, ServiceError
from src.domain.schemas import InventorySnapshot

logger = logging.getLogger(__name__)


# =============================================================================
# System Prompt
# =============================================================================

SYSTEM_PROMPT_TEMPLATE = """You are InvenTrack AI, an inventory management assistant that answers using the A2UI (Agent-to-UI) protocol.

When users ask questions about inventory data, respond ONLY with newline-delimited JSON messages that follow the A2UI protocol.
Do NOT include plain text or markdown. Every line of your response must be one complete JSON object.

## A2UI Protocol Rules
1. Always start with a createSurface message.
2. Then send one or more updateComponents messages.
3. Each message is a complete JSON object on its own line.
4. Components have: id (unique string), type (see catalog below), parentId (optional), data (object).
5. Use parentId to nest components under another component.
6. A component sent again with the same id replaces the earlier one.

## Message Types
- {"type":"createSurface","surfaceId":string}
- {"type":"updateComponents","surfaceId":string,"components":[...]}
- {"type":"updateDataModel","surfaceId":string,"data":object}
- {"type":"deleteSurface","surfaceId":string}

## Available Component Catalog
- Heading: data: { text: string, level: 1|2|3 }
- TextBlock: data: { content: string }
- AlertBanner: data: { message: string, variant: "info"|"warning"|"error"|"success" }
- StatsGrid: data: { stats: Array<{ title: string, value: string|number, subtitle?: string, color: "blue"|"green"|"yellow"|"red" }> }
- InventoryTable: data: { items: Array<InventoryItem>, caption?: string }
- CategoryChart: data: { data: Array<{ category: string, total_value: number, count: number, total_qty: number }> }
- SupplierChart: data: { data: Array<{ supplier: string, total_value: number, count: number }> }
- Divider: data: {}

## Example response for "Show low stock items":
{"type":"createSurface","surfaceId":"ai-panel"}
{"type":"updateComponents","surfaceId":"ai-panel","components":[{"id":"h1","type":"Heading","data":{"text":"Low Stock Items","level":2}},{"id":"alert1","type":"AlertBanner","data":{"message":"4 items are below their minimum threshold and need restocking.","variant":"warning"}},{"id":"tbl1","type":"InventoryTable","data":{"items":[],"caption":"Items at or below threshold"}}]}

## Current Inventory Data
{inventory_data}

Remember: respond ONLY with newline-delimited JSON. No prose, no markdown fences."""


def build_system_prompt(snapshot: InventorySnapshot) -> str:
    """snapshot JSON을 system prompt에 삽입."""
    inventory_data = json.dumps(snapshot.to_dict(), ensure_ascii=False)
    return SYSTEM_PROMPT_TEMPLATE.replace("{inventory_data}", inventory_data)


def normalize_query(query: Any) -> str:
    """
    질의 정리.

    Raises:
        ServiceError: 문자열이 아니거나 공백뿐일 때
    """
    if not isinstance(query, str) or not query.strip():
        raise ServiceError(ErrorCodes.QUERY_REQUIRED, message="Query is required")
    return query.strip()


# =============================================================================
# Framing
# =============================================================================

def encode_frame(payload: str) -> str:
    """JSON 텍스트 하나 → SSE 프레임."""
    return f"data: {payload}\n\n"


def encode_message(message: dict[str, Any]) -> str:
    return encode_frame(json.dumps(message, ensure_ascii=False, separators=(",", ":")))


DONE_FRAME = encode_message({"type": "done"})


def error_frame(message: str) -> str:
    return encode_message({"type": "error", "message": message})


class LineFramer:
    """
    LLM 텍스트 청크 → 완결된 JSON 줄.

    청크 경계는 줄 경계와 무관 → 마지막 불완전한 줄은 버퍼에 보관.
    JSON으로 파싱되지 않는 줄 (prose, 코드 펜스 등)은 버림.
    """

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, text: str) -> list[str]:
        self._buffer += text
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return [line for line in (self._accept(raw) for raw in lines) if line]

    def flush(self) -> list[str]:
        remainder = self._accept(self._buffer)
        self._buffer = ""
        return [remainder] if remainder else []

    @staticmethod
    def _accept(raw: str) -> str | None:
        line = raw.strip()
        if not line:
            return None
        try:
            json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Skipping non-JSON line from model: {line[:80]!r}")
            return None
        return line


# =============================================================================
# Service
# =============================================================================

class AssistantService:
    """
    Usage:
        service = AssistantService(provider, inventory)
        system_prompt = service.prepare()
        async for frame in service.stream_frames(system_prompt, query):
            ...
    """

    def __init__(self, provider: SurfaceProvider, inventory: InventoryService):
        self.provider = provider
        self.inventory = inventory

    def prepare(self) -> str:
        """
        질의 1회분 system prompt 구성.

        스트림 시작 전에 호출 → 재고 데이터 오류는 일반 JSON 에러로 응답 가능.
        """
        return build_system_prompt(self.inventory.snapshot())

    async def stream_frames(self, system_prompt: str, query: str) -> AsyncIterator[str]:
        """
        SSE 프레임 스트림.

        응답 헤더가 이미 나간 뒤이므로 실패는 error 프레임으로만 전달.
        """
        framer = LineFramer()
        frame_count = 0

        try:
            async for chunk in self.provider.stream_text(system_prompt, query):
                for line in framer.feed(chunk):
                    frame_count += 1
                    yield encode_frame(line)

            for line in framer.flush():
                frame_count += 1
                yield encode_frame(line)

        except ProviderError as e:
            logger.error(f"Assistant stream failed after {frame_count} frames: {e}")
            yield error_frame(e.message)
            return
        except Exception as e:
            logger.error(f"Unexpected assistant stream failure: {e}", exc_info=True)
            yield error_frame(str(e) or "AI error")
            return

        logger.info(f"Assistant stream completed: {frame_count} frames")
        yield DONE_FRAME
