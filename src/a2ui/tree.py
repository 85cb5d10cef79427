"""
Component Tree Builder: 평면 component 목록 → 계층 구조.

렌더링할 때마다 현재 목록에서 다시 계산 (수십 개 규모라 충분히 저렴).
입력 목록은 변경하지 않음.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from src.a2ui.types import ComponentDef


@dataclass(frozen=True)
class ComponentTree:
    """루트 목록 + parent_id → 직계 자식 목록."""
    roots: tuple[ComponentDef, ...] = ()
    children: dict[str, tuple[ComponentDef, ...]] = field(default_factory=dict)

    def children_of(self, component_id: str) -> tuple[ComponentDef, ...]:
        return self.children.get(component_id, ())

    def orphans(self) -> tuple[ComponentDef, ...]:
        """parent_id가 목록에 없는 component (렌더링되지 않음)."""
        known = {c.id for c in self.roots}
        for group in self.children.values():
            known.update(c.id for c in group)
        return tuple(
            child
            for parent_id, group in self.children.items()
            if parent_id not in known
            for child in group
        )


def build_component_tree(components: Sequence[ComponentDef]) -> ComponentTree:
    """
    parent_id 참조로 트리 구성.

    - parent_id 없음 → 루트
    - 각 자식 그룹 안에서는 원래 목록 순서 유지
    - 존재하지 않는 parent를 가리키는 서브트리는 도달 불가 (에러 아님)
    """
    roots: list[ComponentDef] = []
    children: dict[str, list[ComponentDef]] = {}

    for component in components:
        if component.parent_id is None:
            roots.append(component)
        else:
            children.setdefault(component.parent_id, []).append(component)

    return ComponentTree(
        roots=tuple(roots),
        children={pid: tuple(group) for pid, group in children.items()},
    )
