"""Domain layer: errors and schemas."""

from .errors import ErrorCodes, ServiceError
from .schemas import (
    CategoryStat,
    InventoryItem,
    InventorySnapshot,
    InventorySummary,
    ItemStatus,
    SupplierStat,
)

__all__ = [
    "ServiceError",
    "ErrorCodes",
    "InventoryItem",
    "InventorySnapshot",
    "InventorySummary",
    "ItemStatus",
    "CategoryStat",
    "SupplierStat",
]
