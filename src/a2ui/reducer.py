"""
Surface Reducer + Surface Store.

reduce(state, message) → state' 는 순수 함수:
- 같은 메시지 시퀀스 → 항상 같은 최종 상태 (결정론)
- 입력 state를 절대 변경하지 않음 (새 StoreState 반환)

SurfaceStore:
- 한 번의 어시스턴트 상호작용 동안 모든 Surface를 독점 소유
- reset() → idle + surface 전부 폐기 + generation 증가
- 이전 generation으로 태그된 늦은 메시지는 무시 (stale stream 방지)
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from src.a2ui.types import (
    ComponentDef,
    CreateSurface,
    DeleteSurface,
    Done,
    Error,
    Message,
    StreamStatus,
    Surface,
    UpdateComponents,
    UpdateDataModel,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreState:
    """Surface Store 스냅샷 (surface_id → Surface + 스트림 상태)."""
    surfaces: dict[str, Surface] = field(default_factory=dict)
    status: StreamStatus = StreamStatus.IDLE
    error: str | None = None


# =============================================================================
# Reducer
# =============================================================================

def reduce(state: StoreState, message: Message) -> StoreState:
    """
    메시지 하나를 적용한 다음 상태 반환.

    존재하지 않는 surface에 대한 update/delete는 no-op (에러 아님).
    done/error는 스트림 상태만 바꾸고 surface 내용은 건드리지 않음.
    """
    if isinstance(message, CreateSurface):
        # 같은 id가 이미 있으면 병합하지 않고 새 상태로 교체
        surfaces = dict(state.surfaces)
        surfaces[message.surface_id] = Surface(surface_id=message.surface_id)
        return StoreState(surfaces=surfaces, status=StreamStatus.STREAMING)

    if isinstance(message, UpdateComponents):
        surface = state.surfaces.get(message.surface_id)
        if surface is None:
            return state
        updated = replace(
            surface,
            components=upsert_components(surface.components, message.components),
        )
        return _with_surface(state, updated)

    if isinstance(message, UpdateDataModel):
        surface = state.surfaces.get(message.surface_id)
        if surface is None:
            return state
        updated = replace(surface, data_model={**surface.data_model, **message.data})
        return _with_surface(state, updated)

    if isinstance(message, DeleteSurface):
        if message.surface_id not in state.surfaces:
            return state
        surfaces = {
            sid: s for sid, s in state.surfaces.items() if sid != message.surface_id
        }
        return replace(state, surfaces=surfaces)

    if isinstance(message, Done):
        return replace(state, status=StreamStatus.DONE)

    if isinstance(message, Error):
        return replace(state, status=StreamStatus.ERROR, error=message.message)

    return state


def upsert_components(
    existing: tuple[ComponentDef, ...],
    incoming: Iterable[ComponentDef],
) -> tuple[ComponentDef, ...]:
    """
    id 기준 upsert.

    - 이미 있는 id: 같은 위치에서 교체 (순서 변경 없음)
    - 새 id: 끝에 추가 (처음 등장한 순서 유지)
    """
    components = list(existing)
    index = {c.id: i for i, c in enumerate(components)}

    for component in incoming:
        position = index.get(component.id)
        if position is None:
            index[component.id] = len(components)
            components.append(component)
        else:
            components[position] = component

    return tuple(components)


def replay(messages: Iterable[Message], state: StoreState | None = None) -> StoreState:
    """메시지 시퀀스를 순서대로 적용."""
    result = state or StoreState()
    for message in messages:
        result = reduce(result, message)
    return result


def _with_surface(state: StoreState, surface: Surface) -> StoreState:
    surfaces = dict(state.surfaces)
    surfaces[surface.surface_id] = surface
    return replace(state, surfaces=surfaces)


# =============================================================================
# Store
# =============================================================================

class SurfaceStore:
    """
    Surface 상태 보관소.

    reducer만 상태를 바꿈 (외부에서 surface 직접 수정 금지).

    Usage:
        store = SurfaceStore()
        generation = store.reset()
        store.apply(message, generation)
    """

    def __init__(self) -> None:
        self._state = StoreState()
        self._generation = 0

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def surfaces(self) -> dict[str, Surface]:
        return self._state.surfaces

    @property
    def status(self) -> StreamStatus:
        return self._state.status

    @property
    def error(self) -> str | None:
        return self._state.error

    @property
    def generation(self) -> int:
        """현재 스트림 epoch."""
        return self._generation

    def get(self, surface_id: str) -> Surface | None:
        return self._state.surfaces.get(surface_id)

    def reset(self) -> int:
        """
        기본 상태로 복귀.

        Returns:
            새 generation (이후 스트림 메시지에 태그로 사용)
        """
        self._generation += 1
        self._state = StoreState()
        return self._generation

    def apply(self, message: Message, generation: int | None = None) -> bool:
        """
        메시지 적용.

        Args:
            message: 프로토콜 메시지
            generation: 메시지를 만든 스트림의 epoch (None이면 검사 안 함)

        Returns:
            적용되었으면 True, stale generation이라 버렸으면 False
        """
        if generation is not None and generation != self._generation:
            logger.debug(
                f"Ignoring {message.type} from stale stream "
                f"(generation {generation}, current {self._generation})"
            )
            return False

        self._state = reduce(self._state, message)
        return True
