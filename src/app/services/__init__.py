"""
Application Services.

역할:
- inventory: 재고 데이터 → 어시스턴트 context snapshot
- assistant: 질의 → system prompt → A2UI SSE 프레임 스트림
"""

from .assistant import AssistantService, LineFramer, build_system_prompt
from .inventory import InventoryService, build_snapshot, load_inventory

__all__ = [
    "AssistantService",
    "LineFramer",
    "build_system_prompt",
    "InventoryService",
    "build_snapshot",
    "load_inventory",
]
