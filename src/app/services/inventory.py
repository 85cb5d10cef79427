"""
Inventory Service: 재고 데이터 → 어시스턴트 context snapshot.

데이터 저장소는 외부 협력자 (여기서는 inventory.yaml).
질의 1회당 snapshot을 한 번 구성:
- active 품목 샘플 (수량 오름차순, 상한)
- 재주문 임계치 이하 품목
- 카테고리별 / 공급사별 집계
- 전체 요약 수치
"""

import logging
from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from src.domain.constants import DEFAULT_SAMPLE_LIMIT, DEFAULT_SUPPLIER_LIMIT
from src.domain.errors import ErrorCodes, ServiceError
from src.domain.schemas import (
    CategoryStat,
    InventoryItem,
    InventorySnapshot,
    InventorySummary,
    ItemStatus,
    SupplierStat,
)

logger = logging.getLogger(__name__)

REQUIRED_ITEM_KEYS = ("id", "name", "sku", "category", "quantity", "unit_price")


# =============================================================================
# Loading
# =============================================================================

def load_inventory(path: Path) -> list[InventoryItem]:
    """
    inventory.yaml 로드.

    포맷:
        items:
          - id: 1
            name: Wireless Mouse
            sku: WM-001
            ...

    Raises:
        ServiceError: 파일 없음 / 형식 오류
    """
    if not path.exists():
        raise ServiceError(
            ErrorCodes.INVENTORY_DATA_MISSING,
            message="Inventory data file not found",
            path=str(path),
        )

    with open(path, encoding="utf-8") as f:
        data: Any = yaml.safe_load(f) or {}

    raw_items = data.get("items", []) if isinstance(data, dict) else None
    if not isinstance(raw_items, list):
        raise ServiceError(
            ErrorCodes.INVENTORY_DATA_INVALID,
            message="'items' must be a list",
            path=str(path),
        )

    return [item_from_dict(raw, index) for index, raw in enumerate(raw_items)]


def item_from_dict(raw: Any, index: int = 0) -> InventoryItem:
    """dict → InventoryItem (필수 키 검증 + Decimal 변환)."""
    if not isinstance(raw, dict):
        raise ServiceError(
            ErrorCodes.INVENTORY_DATA_INVALID,
            message="item must be a mapping",
            index=index,
        )

    missing = [k for k in REQUIRED_ITEM_KEYS if raw.get(k) is None]
    if missing:
        raise ServiceError(
            ErrorCodes.INVENTORY_DATA_INVALID,
            message="item is missing required keys",
            index=index,
            missing=missing,
        )

    try:
        item = InventoryItem(
            id=int(raw["id"]),
            name=str(raw["name"]),
            sku=str(raw["sku"]).upper(),
            category=str(raw["category"]),
            quantity=int(raw["quantity"]),
            # float 경유 금지: 문자열로 변환 후 Decimal
            unit_price=Decimal(str(raw["unit_price"])),
            supplier=raw.get("supplier"),
            location=raw.get("location"),
            low_stock_threshold=int(raw.get("low_stock_threshold", 10)),
            status=ItemStatus(raw.get("status", ItemStatus.ACTIVE.value)),
        )
    except (ValueError, TypeError, ArithmeticError) as e:
        raise ServiceError(
            ErrorCodes.INVENTORY_DATA_INVALID,
            message=f"invalid item value: {e}",
            index=index,
            sku=raw.get("sku"),
        ) from e

    # NaN/Inf → 항상 reject (정렬/합계에서 InvalidOperation 발생)
    if not item.unit_price.is_finite():
        raise ServiceError(
            ErrorCodes.INVENTORY_DATA_INVALID,
            message="unit_price must be a finite number",
            index=index,
            sku=item.sku,
        )
    return item


# =============================================================================
# Snapshot
# =============================================================================

def build_snapshot(
    items: Iterable[InventoryItem],
    sample_limit: int = DEFAULT_SAMPLE_LIMIT,
    supplier_limit: int = DEFAULT_SUPPLIER_LIMIT,
) -> InventorySnapshot:
    """
    active 품목 기준 snapshot 구성.

    정렬은 안정 정렬 (동순위는 원래 순서 유지).
    """
    active = [i for i in items if i.status == ItemStatus.ACTIVE]
    by_quantity = sorted(active, key=lambda i: i.quantity)

    return InventorySnapshot(
        summary=summarize(active),
        items=by_quantity[:sample_limit],
        low_stock=[i for i in by_quantity if i.is_low_stock],
        by_category=aggregate_by_category(active),
        by_supplier=aggregate_by_supplier(active)[:supplier_limit],
    )


def summarize(active: list[InventoryItem]) -> InventorySummary:
    return InventorySummary(
        total_items=len(active),
        total_value=sum((i.total_value for i in active), Decimal("0")),
        low_stock_count=sum(1 for i in active if i.is_low_stock),
        out_of_stock=sum(1 for i in active if i.quantity == 0),
    )


def aggregate_by_category(active: list[InventoryItem]) -> list[CategoryStat]:
    """카테고리별 (품목 수, 총 가치, 총 수량), 총 가치 내림차순."""
    stats: dict[str, CategoryStat] = {}
    for item in active:
        stat = stats.setdefault(
            item.category,
            CategoryStat(category=item.category, count=0, total_value=Decimal("0"), total_qty=0),
        )
        stat.count += 1
        stat.total_value += item.total_value
        stat.total_qty += item.quantity
    return sorted(stats.values(), key=lambda s: s.total_value, reverse=True)


def aggregate_by_supplier(active: list[InventoryItem]) -> list[SupplierStat]:
    """공급사별 (품목 수, 총 가치), 공급사 없는 품목 제외, 총 가치 내림차순."""
    stats: dict[str, SupplierStat] = {}
    for item in active:
        if item.supplier is None:
            continue
        stat = stats.setdefault(
            item.supplier,
            SupplierStat(supplier=item.supplier, count=0, total_value=Decimal("0")),
        )
        stat.count += 1
        stat.total_value += item.total_value
    return sorted(stats.values(), key=lambda s: s.total_value, reverse=True)


# =============================================================================
# Service
# =============================================================================

class InventoryService:
    """
    snapshot 제공 서비스.

    Usage:
        service = InventoryService(Path("inventory.yaml"), sample_limit=50)
        snapshot = service.snapshot()
    """

    def __init__(
        self,
        data_path: Path,
        sample_limit: int = DEFAULT_SAMPLE_LIMIT,
        supplier_limit: int = DEFAULT_SUPPLIER_LIMIT,
    ):
        self.data_path = data_path
        self.sample_limit = sample_limit
        self.supplier_limit = supplier_limit

    def snapshot(self) -> InventorySnapshot:
        """매 질의마다 저장소에서 다시 읽어 구성."""
        items = load_inventory(self.data_path)
        snapshot = build_snapshot(items, self.sample_limit, self.supplier_limit)
        logger.info(
            f"Inventory snapshot: {snapshot.summary.total_items} active items, "
            f"{snapshot.summary.low_stock_count} low stock"
        )
        return snapshot
