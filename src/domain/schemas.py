"""
Data schemas for the inventory assistant.

규칙:
- Decimal 사용: 금액 필드 float 금지 (JSON 직렬화 시에만 float 변환)
- 직렬화 키는 어시스턴트 context 포맷과 동일 (snake_case 항목, camelCase 요약)
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any


class ItemStatus(str, Enum):
    """재고 품목 상태."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCONTINUED = "discontinued"


# =============================================================================
# Inventory Schemas
# =============================================================================

@dataclass
class InventoryItem:
    """재고 품목 하나."""
    id: int
    name: str
    sku: str
    category: str
    quantity: int
    unit_price: Decimal  # float 금지
    supplier: str | None = None
    location: str | None = None
    low_stock_threshold: int = 10
    status: ItemStatus = ItemStatus.ACTIVE

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold

    @property
    def total_value(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        """JSON 직렬화용."""
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "category": self.category,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),  # Decimal → float (JSON)
            "supplier": self.supplier,
            "location": self.location,
            "low_stock_threshold": self.low_stock_threshold,
            "status": self.status.value,
        }


@dataclass
class CategoryStat:
    """카테고리별 집계."""
    category: str
    count: int
    total_value: Decimal
    total_qty: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "count": self.count,
            "total_value": float(self.total_value),
            "total_qty": self.total_qty,
        }


@dataclass
class SupplierStat:
    """공급사별 집계."""
    supplier: str
    count: int
    total_value: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "supplier": self.supplier,
            "count": self.count,
            "total_value": float(self.total_value),
        }


@dataclass
class InventorySummary:
    """전체 재고 요약 (active 품목 기준)."""
    total_items: int = 0
    total_value: Decimal = Decimal("0")
    low_stock_count: int = 0
    out_of_stock: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalItems": self.total_items,
            "totalValue": float(self.total_value),
            "lowStockCount": self.low_stock_count,
            "outOfStock": self.out_of_stock,
        }


@dataclass
class InventorySnapshot:
    """
    질의 1회당 한 번 구성되는 어시스턴트 context.

    system prompt에 JSON으로 삽입됨.
    """
    summary: InventorySummary = field(default_factory=InventorySummary)
    items: list[InventoryItem] = field(default_factory=list)  # 샘플 (상한 있음)
    low_stock: list[InventoryItem] = field(default_factory=list)
    by_category: list[CategoryStat] = field(default_factory=list)
    by_supplier: list[SupplierStat] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "items": [i.to_dict() for i in self.items],
            "lowStock": [i.to_dict() for i in self.low_stock],
            "byCategory": [c.to_dict() for c in self.by_category],
            "bySupplier": [s.to_dict() for s in self.by_supplier],
        }
