"""
Message Validator: 디코딩된 프레임 텍스트 → 타입 있는 프로토콜 메시지.

규칙:
- 파싱 실패는 조용히 버림 (None 반환) → 스트림 중단 없음
- 이 계층에서 절대 예외를 던지지 않음
- 부분 메시지 버퍼링 없음 (프레임 하나 = 완결된 JSON 하나)
- NaN/Inf → 항상 reject (1e999 같은 overflow 포함)
"""

import json
import logging
import math
from typing import Any

from src.a2ui.types import (
    CREATE_SURFACE,
    DELETE_SURFACE,
    DONE,
    ERROR,
    UPDATE_COMPONENTS,
    UPDATE_DATA_MODEL,
    ComponentDef,
    CreateSurface,
    DeleteSurface,
    Done,
    Error,
    Message,
    UpdateComponents,
    UpdateDataModel,
)

logger = logging.getLogger(__name__)


class MessageShapeError(ValueError):
    """메시지 구조 불일치 (내부용, parse_message 밖으로 나가지 않음)."""
    pass


def parse_message(text: str) -> Message | None:
    """
    프레임 텍스트 하나를 프로토콜 메시지로 파싱.

    Args:
        text: "data: " 접두사가 제거된 프레임 페이로드

    Returns:
        Message, 또는 유효하지 않으면 None
    """
    try:
        payload = json.loads(text, parse_float=_finite_float, parse_constant=_reject_constant)
    except (ValueError, TypeError, RecursionError) as e:
        logger.debug(f"Dropping non-JSON frame: {e}")
        return None

    try:
        return message_from_dict(payload)
    except MessageShapeError as e:
        logger.debug(f"Dropping malformed frame: {e}")
        return None


def message_from_dict(payload: Any) -> Message:
    """
    JSON 객체 → 메시지.

    Raises:
        MessageShapeError: 6개 메시지 형태 중 어느 것도 아닐 때
    """
    if not isinstance(payload, dict):
        raise MessageShapeError(f"expected object, got {type(payload).__name__}")

    msg_type = payload.get("type")

    if msg_type == CREATE_SURFACE:
        return CreateSurface(surface_id=_require_str(payload, "surfaceId"))

    if msg_type == UPDATE_COMPONENTS:
        raw_components = payload.get("components")
        if not isinstance(raw_components, list):
            raise MessageShapeError("components must be a list")
        return UpdateComponents(
            surface_id=_require_str(payload, "surfaceId"),
            components=tuple(_component_from_dict(c) for c in raw_components),
        )

    if msg_type == UPDATE_DATA_MODEL:
        data = payload.get("data")
        if not isinstance(data, dict):
            raise MessageShapeError("data must be an object")
        return UpdateDataModel(
            surface_id=_require_str(payload, "surfaceId"),
            data=data,
        )

    if msg_type == DELETE_SURFACE:
        return DeleteSurface(surface_id=_require_str(payload, "surfaceId"))

    if msg_type == DONE:
        return Done()

    if msg_type == ERROR:
        return Error(message=_require_str(payload, "message"))

    raise MessageShapeError(f"unknown message type: {msg_type!r}")


def _component_from_dict(raw: Any) -> ComponentDef:
    if not isinstance(raw, dict):
        raise MessageShapeError("component must be an object")

    parent_id = raw.get("parentId")
    if parent_id is not None and not isinstance(parent_id, str):
        raise MessageShapeError("parentId must be a string")

    data = raw.get("data", {})
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MessageShapeError("component data must be an object")

    return ComponentDef(
        id=_require_str(raw, "id"),
        type=_require_str(raw, "type"),
        # 빈 문자열 parentId는 루트로 취급
        parent_id=parent_id or None,
        data=data,
    )


def _require_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise MessageShapeError(f"{key} must be a string")
    return value


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"non-finite number: {text}")
    return value


def _reject_constant(name: str) -> float:
    raise ValueError(f"non-finite number: {name}")
