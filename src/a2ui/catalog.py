"""
Capability Catalog: component type 문자열 → 렌더링 함수.

- 프로세스 전역, 시작 시 한 번 구성 후 읽기 전용
- 등록되지 않은 type은 정상 분기 (renderer가 placeholder 출력)
- 스트림에서 온 모든 텍스트는 escape 후 출력

기본 component 세트 (어시스턴트 system prompt의 카탈로그 설명과 일치해야 함):
Heading, TextBlock, Divider, AlertBanner, StatsGrid,
InventoryTable, CategoryChart, SupplierChart
"""

import html as html_escape_module
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

Capability = Callable[[dict[str, Any]], str]


def escape_html(text: Any) -> str:
    """HTML 이스케이프 (None → 빈 문자열)."""
    if text is None:
        return ""
    return html_escape_module.escape(str(text))


# =============================================================================
# Catalog
# =============================================================================

class Catalog(Mapping[str, Capability]):
    """
    읽기 전용 capability 레지스트리.

    Usage:
        catalog = Catalog({"Heading": render_heading})
        capability = catalog.resolve("Heading")
    """

    def __init__(self, capabilities: Mapping[str, Capability]) -> None:
        self._capabilities = MappingProxyType(dict(capabilities))

    def __getitem__(self, component_type: str) -> Capability:
        return self._capabilities[component_type]

    def __iter__(self) -> Iterator[str]:
        return iter(self._capabilities)

    def __len__(self) -> int:
        return len(self._capabilities)

    def resolve(self, component_type: str) -> Capability | None:
        """type에 해당하는 capability, 없으면 None."""
        return self._capabilities.get(component_type)

    def extend(self, capabilities: Mapping[str, Capability]) -> "Catalog":
        """기존 catalog + 추가 항목으로 새 Catalog 생성 (원본은 그대로)."""
        return Catalog({**self._capabilities, **capabilities})


# =============================================================================
# Formatting Helpers
# =============================================================================

ALERT_VARIANTS = {
    "info": "ℹ",
    "warning": "⚠",
    "error": "✕",
    "success": "✓",
}

STAT_COLORS = ("blue", "green", "yellow", "red")

TABLE_COLUMNS = ("Name", "SKU", "Category", "Qty", "Unit Price", "Supplier", "Status")


def format_money(value: Any) -> str:
    if value is None or value == "":
        return "-"
    return f"${float(value):,.2f}"


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"expected list, got {type(value).__name__}")
    return value


def _empty(message: str) -> str:
    return f'<p class="a2ui-empty">{escape_html(message)}</p>'


# =============================================================================
# Capabilities
# =============================================================================

def render_heading(data: dict[str, Any]) -> str:
    level = data.get("level", 2)
    # 정수가 아닌 level (null, 문자열 등) → 기본 크기
    if not isinstance(level, int) or isinstance(level, bool):
        level = 2
    elif level not in (1, 2, 3):
        level = 3
    return f'<h{level} class="a2ui-heading">{escape_html(data.get("text"))}</h{level}>'


def render_text_block(data: dict[str, Any]) -> str:
    return f'<p class="a2ui-text">{escape_html(data.get("content"))}</p>'


def render_divider(data: dict[str, Any]) -> str:
    return '<hr class="a2ui-divider">'


def render_alert_banner(data: dict[str, Any]) -> str:
    variant = data.get("variant", "info")
    if variant not in ALERT_VARIANTS:
        variant = "info"
    return (
        f'<div class="a2ui-alert a2ui-alert-{variant}" role="alert">'
        f'<span class="a2ui-alert-icon">{ALERT_VARIANTS[variant]}</span> '
        f"<span>{escape_html(data.get('message'))}</span>"
        f"</div>"
    )


def render_stats_grid(data: dict[str, Any]) -> str:
    cards = []
    for stat in _as_list(data.get("stats")):
        color = stat.get("color", "blue")
        if color not in STAT_COLORS:
            color = "blue"
        subtitle = ""
        if stat.get("subtitle"):
            subtitle = f'<p class="a2ui-stat-subtitle">{escape_html(stat["subtitle"])}</p>'
        cards.append(
            f'<div class="a2ui-stat a2ui-stat-{color}">'
            f'<p class="a2ui-stat-title">{escape_html(stat.get("title"))}</p>'
            f'<p class="a2ui-stat-value">{escape_html(stat.get("value"))}</p>'
            f"{subtitle}</div>"
        )
    return f'<div class="a2ui-stats-grid">{"".join(cards)}</div>'


def render_inventory_table(data: dict[str, Any]) -> str:
    items = _as_list(data.get("items"))
    if not items:
        return _empty("No items to display.")

    caption = ""
    if data.get("caption"):
        caption = f"<caption>{escape_html(data['caption'])}</caption>"

    header = "".join(f"<th>{name}</th>" for name in TABLE_COLUMNS)
    rows = []
    for item in items:
        quantity = item.get("quantity", 0)
        threshold = item.get("low_stock_threshold")
        is_low = threshold is not None and quantity <= threshold
        row_class = ' class="a2ui-low-stock"' if is_low else ""
        rows.append(
            f"<tr{row_class}>"
            f"<td>{escape_html(item.get('name'))}</td>"
            f"<td><code>{escape_html(item.get('sku'))}</code></td>"
            f"<td>{escape_html(item.get('category'))}</td>"
            f"<td>{escape_html(quantity)}</td>"
            f"<td>{format_money(item.get('unit_price'))}</td>"
            f"<td>{escape_html(item.get('supplier') or '-')}</td>"
            f"<td>{escape_html(item.get('status'))}</td>"
            f"</tr>"
        )

    return (
        f'<table class="a2ui-table">{caption}'
        f"<thead><tr>{header}</tr></thead>"
        f"<tbody>{''.join(rows)}</tbody></table>"
    )


def _render_bar_chart(rows: list[dict[str, Any]], label_key: str, css_class: str) -> str:
    values = [float(row.get("total_value") or 0) for row in rows]
    peak = max(values) if values else 0.0

    bars = []
    for row, value in zip(rows, values):
        width = round(value / peak * 100, 1) if peak > 0 else 0.0
        bars.append(
            f'<div class="a2ui-bar-row">'
            f'<span class="a2ui-bar-label">{escape_html(row.get(label_key))}</span>'
            f'<span class="a2ui-bar" style="width: {width}%"></span>'
            f'<span class="a2ui-bar-value">{format_money(value)}</span>'
            f"</div>"
        )
    return f'<div class="a2ui-chart {css_class}">{"".join(bars)}</div>'


def render_category_chart(data: dict[str, Any]) -> str:
    rows = _as_list(data.get("data"))
    if not rows:
        return _empty("No category data.")
    return _render_bar_chart(rows, "category", "a2ui-category-chart")


def render_supplier_chart(data: dict[str, Any]) -> str:
    rows = _as_list(data.get("data"))
    if not rows:
        return _empty("No supplier data.")
    return _render_bar_chart(rows, "supplier", "a2ui-supplier-chart")


DEFAULT_CATALOG = Catalog({
    "Heading": render_heading,
    "TextBlock": render_text_block,
    "Divider": render_divider,
    "AlertBanner": render_alert_banner,
    "StatsGrid": render_stats_grid,
    "InventoryTable": render_inventory_table,
    "CategoryChart": render_category_chart,
    "SupplierChart": render_supplier_chart,
})
