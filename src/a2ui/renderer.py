"""
Surface Renderer: component 트리를 catalog로 렌더링.

규칙:
- 알 수 없는 type → type 이름이 보이는 placeholder (자식은 계속 렌더링)
- capability가 잘못된 data로 실패 → placeholder + 경고 로그 (나머지 트리 유지)
- 루트가 없는 surface → 빈 문자열
"""

import logging
from collections.abc import Iterator

from src.a2ui.catalog import DEFAULT_CATALOG, Catalog, escape_html
from src.a2ui.tree import ComponentTree, build_component_tree
from src.a2ui.types import ComponentDef, Surface

logger = logging.getLogger(__name__)

# capability가 잘못된 data를 받았을 때 나올 수 있는 예외
CAPABILITY_ERRORS = (TypeError, ValueError, KeyError, AttributeError, ArithmeticError)


def render_surface(surface: Surface, catalog: Catalog = DEFAULT_CATALOG) -> str:
    """
    Surface 하나를 HTML로 렌더링.

    트리는 매번 현재 component 목록에서 다시 계산.
    """
    tree = build_component_tree(surface.components)
    if not tree.roots:
        return ""

    body = "".join(render_component(c, tree, catalog) for c in tree.roots)
    return (
        f'<div class="a2ui-surface" data-surface-id="{escape_html(surface.surface_id)}">'
        f"{body}</div>"
    )


def render_component(
    component: ComponentDef,
    tree: ComponentTree,
    catalog: Catalog = DEFAULT_CATALOG,
) -> str:
    """
    component 하나 + 자손 렌더링.

    재귀 대신 명시적 스택으로 순회 → 깊게 중첩된 트리도 RecursionError 없음.
    """
    # (component, 아직 방문하지 않은 자식, 렌더링 끝난 자식 HTML)
    stack: list[tuple[ComponentDef, Iterator[ComponentDef], list[str]]] = [
        (component, iter(tree.children_of(component.id)), [])
    ]

    while True:
        current, pending, rendered = stack[-1]
        child = next(pending, None)
        if child is not None:
            stack.append((child, iter(tree.children_of(child.id)), []))
            continue

        stack.pop()
        html = _wrap(current, render_own(current, catalog), rendered)
        if not stack:
            return html
        stack[-1][2].append(html)


def render_own(component: ComponentDef, catalog: Catalog = DEFAULT_CATALOG) -> str:
    """자식 없이 component 자체만 렌더링 (실패 시 placeholder)."""
    capability = catalog.resolve(component.type)
    if capability is None:
        return render_unknown(component)

    try:
        return capability(component.data)
    except CAPABILITY_ERRORS as e:
        logger.warning(
            f"Component {component.id!r} ({component.type}) failed to render: {e}"
        )
        return render_failed(component)


def _wrap(component: ComponentDef, own: str, children: list[str]) -> str:
    nested = f'<div class="a2ui-children">{"".join(children)}</div>' if children else ""
    return f'<div class="a2ui-component" data-component-id="{escape_html(component.id)}">{own}{nested}</div>'


def render_unknown(component: ComponentDef) -> str:
    return (
        f'<div class="a2ui-unknown">Unknown component type: '
        f"<code>{escape_html(component.type)}</code></div>"
    )


def render_failed(component: ComponentDef) -> str:
    return (
        f'<div class="a2ui-unknown">Could not render component '
        f"<code>{escape_html(component.id)}</code> "
        f"(<code>{escape_html(component.type)}</code>)</div>"
    )


def render_surfaces(surfaces: dict[str, Surface], catalog: Catalog = DEFAULT_CATALOG) -> str:
    """열린 surface 전부를 생성 순서대로 렌더링."""
    return "".join(render_surface(s, catalog) for s in surfaces.values())
