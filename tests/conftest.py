"""
Pytest fixtures for the assistant tests.

구성:
- 경로/설정 fixture
- 재고 데이터 fixture (inventory.yaml 생성)
- A2UI 프레임/메시지 fixture
- 가짜 provider (Anthropic 호출 없음)
"""

import json
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest
import yaml

from src.app.providers.base import StreamError, SurfaceProvider

# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


# =============================================================================
# Inventory Fixtures
# =============================================================================

@pytest.fixture
def sample_items() -> list[dict[str, Any]]:
    """
    재고 품목 (raw dict).

    - active 4개 (low stock 2개, 품절 1개)
    - inactive 1개 (snapshot에서 제외)
    - 공급사 없는 품목 1개
    """
    return [
        {
            "id": 1, "name": "Wireless Mouse", "sku": "WM-001",
            "category": "Electronics", "quantity": 45, "unit_price": "29.99",
            "supplier": "TechSupply Co", "low_stock_threshold": 10,
            "status": "active",
        },
        {
            "id": 2, "name": "Monitor 27\"", "sku": "MN-004",
            "category": "Electronics", "quantity": 3, "unit_price": "349.99",
            "supplier": "DisplayTech", "low_stock_threshold": 10,
            "status": "active",
        },
        {
            "id": 3, "name": "Laptop Stand", "sku": "LS-009",
            "category": "Accessories", "quantity": 0, "unit_price": "59.99",
            "supplier": None, "low_stock_threshold": 5,
            "status": "active",
        },
        {
            "id": 4, "name": "Standing Desk", "sku": "SD-003",
            "category": "Furniture", "quantity": 12, "unit_price": "399.00",
            "supplier": "OfficeWorld", "low_stock_threshold": 5,
            "status": "active",
        },
        {
            "id": 5, "name": "Fax Machine", "sku": "FX-100",
            "category": "Electronics", "quantity": 1, "unit_price": "120.00",
            "supplier": "TechSupply Co", "low_stock_threshold": 2,
            "status": "discontinued",
        },
    ]


@pytest.fixture
def inventory_path(tmp_path: Path, sample_items: list[dict[str, Any]]) -> Path:
    """sample_items로 만든 inventory.yaml."""
    path = tmp_path / "inventory.yaml"
    path.write_text(yaml.safe_dump({"items": sample_items}, allow_unicode=True), encoding="utf-8")
    return path


# =============================================================================
# A2UI Fixtures
# =============================================================================

def frame(message: dict[str, Any]) -> str:
    """메시지 dict → SSE 프레임 문자열."""
    return f"data: {json.dumps(message)}\n\n"


@pytest.fixture
def low_stock_messages() -> list[dict[str, Any]]:
    """생성 → 컴포넌트 2개 (부모/자식) → done 시나리오."""
    return [
        {"type": "createSurface", "surfaceId": "s1"},
        {
            "type": "updateComponents",
            "surfaceId": "s1",
            "components": [{"id": "a", "type": "Heading", "data": {"text": "Low Stock"}}],
        },
        {
            "type": "updateComponents",
            "surfaceId": "s1",
            "components": [
                {
                    "id": "b",
                    "type": "AlertBanner",
                    "parentId": "a",
                    "data": {"message": "3 items low", "variant": "warning"},
                }
            ],
        },
        {"type": "done"},
    ]


@pytest.fixture
def low_stock_stream(low_stock_messages: list[dict[str, Any]]) -> bytes:
    """low_stock_messages의 와이어 바이트."""
    return "".join(frame(m) for m in low_stock_messages).encode("utf-8")


# =============================================================================
# Provider Fixtures
# =============================================================================

class FakeSurfaceProvider(SurfaceProvider):
    """
    미리 정한 텍스트 청크를 내보내는 provider.

    fail_with가 있으면 청크를 모두 보낸 뒤 StreamError 발생.
    """

    name = "fake"

    def __init__(self, chunks: list[str], fail_with: str | None = None):
        self.chunks = chunks
        self.fail_with = fail_with
        self.calls: list[tuple[str, str]] = []

    async def stream_text(self, system_prompt: str, query: str) -> AsyncIterator[str]:
        self.calls.append((system_prompt, query))
        for chunk in self.chunks:
            yield chunk
        if self.fail_with:
            raise StreamError("STREAM_INTERRUPTED", self.fail_with)


@pytest.fixture
def fake_provider_factory():
    """FakeSurfaceProvider 생성 함수."""
    return FakeSurfaceProvider

