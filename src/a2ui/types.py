"""
A2UI 프로토콜 타입 정의.

서버 → 클라이언트 메시지 (닫힌 태그 유니온):
- createSurface / updateComponents / updateDataModel / deleteSurface
- done / error

규칙:
- surface는 격리 단위: 한 surface에 대한 메시지는 다른 surface에 영향 없음
- component는 id로 upsert (처음 등장한 순서 유지)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

# =============================================================================
# Message Type Discriminators
# =============================================================================

CREATE_SURFACE = "createSurface"
UPDATE_COMPONENTS = "updateComponents"
UPDATE_DATA_MODEL = "updateDataModel"
DELETE_SURFACE = "deleteSurface"
DONE = "done"
ERROR = "error"


class StreamStatus(str, Enum):
    """
    스트림 상태 (surface 단위가 아니라 디코딩 세션 단위).

    idle → streaming: 첫 createSurface
    streaming → done: done 메시지
    streaming → error: error 메시지 (메시지 보존)
    reset(): 항상 idle로 복귀
    """
    IDLE = "idle"
    STREAMING = "streaming"
    DONE = "done"
    ERROR = "error"


# =============================================================================
# Component / Surface
# =============================================================================

@dataclass(frozen=True)
class ComponentDef:
    """
    Surface UI 트리의 노드 하나.

    parent_id가 같은 surface에 없으면 해당 서브트리는 렌더링되지 않음 (에러 아님).
    """
    id: str
    type: str
    parent_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Surface:
    """독립적으로 주소 지정되는 UI 트리 인스턴스."""
    surface_id: str
    components: tuple[ComponentDef, ...] = ()
    data_model: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Protocol Messages
# =============================================================================

@dataclass(frozen=True)
class CreateSurface:
    surface_id: str
    type: str = field(default=CREATE_SURFACE, init=False)


@dataclass(frozen=True)
class UpdateComponents:
    surface_id: str
    components: tuple[ComponentDef, ...]
    type: str = field(default=UPDATE_COMPONENTS, init=False)


@dataclass(frozen=True)
class UpdateDataModel:
    surface_id: str
    data: dict[str, Any]
    type: str = field(default=UPDATE_DATA_MODEL, init=False)


@dataclass(frozen=True)
class DeleteSurface:
    surface_id: str
    type: str = field(default=DELETE_SURFACE, init=False)


@dataclass(frozen=True)
class Done:
    type: str = field(default=DONE, init=False)


@dataclass(frozen=True)
class Error:
    message: str
    type: str = field(default=ERROR, init=False)


Message = Union[
    CreateSurface,
    UpdateComponents,
    UpdateDataModel,
    DeleteSurface,
    Done,
    Error,
]
