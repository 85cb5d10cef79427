"""
A2UI layer: 스트리밍 surface 프로토콜.

데이터 흐름:
    bytes → decoder → validator → reducer (store) → tree → renderer (catalog)

역할:
- SSE 프레임 디코딩, 메시지 검증
- surface 상태 reducer (순수 함수)
- component 트리 구성 + catalog 기반 렌더링
"""

from .catalog import DEFAULT_CATALOG, Catalog
from .decoder import FrameDecoder, consume_stream, stream_surface
from .panel import SurfacePanel
from .reducer import StoreState, SurfaceStore, reduce, replay
from .renderer import render_surface, render_surfaces
from .tree import ComponentTree, build_component_tree
from .types import ComponentDef, Message, StreamStatus, Surface
from .validator import parse_message

__all__ = [
    # types
    "ComponentDef",
    "Surface",
    "Message",
    "StreamStatus",
    # decoder / validator
    "FrameDecoder",
    "consume_stream",
    "stream_surface",
    "parse_message",
    # reducer
    "StoreState",
    "SurfaceStore",
    "reduce",
    "replay",
    # tree / render
    "ComponentTree",
    "build_component_tree",
    "Catalog",
    "DEFAULT_CATALOG",
    "render_surface",
    "render_surfaces",
    # panel
    "SurfacePanel",
]
