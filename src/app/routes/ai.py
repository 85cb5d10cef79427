"""
AI Assistant Routes: A2UI surface 스트리밍.

- GET /assistant → 어시스턴트 패널 화면 (HTMX)
- POST /api/ai/surface → A2UI SSE 스트림 (JSON body {"query": ...})
- POST /api/ai/panel → 같은 스트림을 서버에서 렌더링한 HTML 조각 (Form query)

에러 응답 (스트림 시작 전):
- 401 {"error": ...}: 세션 없음
- 400 {"error": "Query is required"}: 빈 질의
- 503 {"error": ...}: 업스트림 자격 증명 없음
스트림 시작 후 실패는 error 프레임으로만 전달.
"""

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response, StreamingResponse
from fastapi.templating import Jinja2Templates

from src.a2ui.catalog import escape_html
from src.a2ui.panel import SurfacePanel
from src.a2ui.types import StreamStatus
from src.app.providers.anthropic import ClaudeSurfaceProvider
from src.app.providers.base import ProviderUnavailableError, SurfaceProvider
from src.app.services.assistant import AssistantService, normalize_query
from src.app.services.inventory import InventoryService
from src.domain.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_SAMPLE_LIMIT,
    DEFAULT_SESSION_COOKIE,
    DEFAULT_SUPPLIER_LIMIT,
    PANEL_ENDPOINT,
    SSE_HEADERS,
    SSE_MEDIA_TYPE,
)
from src.domain.errors import ErrorCodes, ServiceError
from src.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)

# Jinja2 템플릿 설정
_templates_dir = Path(__file__).parent.parent / "templates"
jinja_templates = (
    Jinja2Templates(directory=_templates_dir) if _templates_dir.exists() else None
)

# Routers
router = APIRouter()  # HTML pages
api_router = APIRouter()  # API endpoints


# =============================================================================
# Session Check
# =============================================================================


def require_session(request: Request) -> str | None:
    """
    인증된 세션 확인.

    세션 발급/검증 방식 자체는 외부 협력자 영역:
    여기서는 쿠키 값이 app.state.sessions에 있는지만 확인.

    Returns:
        session_id (인증 비활성화 시 None)

    Raises:
        ServiceError: AUTH_REQUIRED
    """
    auth_config = _config(request).get("auth", {})
    if not auth_config.get("enabled", True):
        return None

    cookie_name = auth_config.get("session_cookie", DEFAULT_SESSION_COOKIE)
    session_id = request.cookies.get(cookie_name)
    sessions: set[str] = getattr(request.app.state, "sessions", set())

    if not session_id or session_id not in sessions:
        raise ServiceError(ErrorCodes.AUTH_REQUIRED, message="Authentication required")
    return session_id


# =============================================================================
# Service Wiring
# =============================================================================


def _config(request: Request) -> dict[str, Any]:
    config: dict[str, Any] = getattr(request.app.state, "config", None) or {}
    return config


def get_provider(request: Request) -> SurfaceProvider:
    """
    app.state에 주입된 provider, 없으면 config로 Claude provider 생성 후 캐시.

    Raises:
        ServiceError: AI_UNAVAILABLE (API 키 없음 등)
    """
    provider: SurfaceProvider | None = getattr(request.app.state, "surface_provider", None)
    if provider is not None:
        return provider

    ai_config = _config(request).get("ai", {})
    try:
        provider = ClaudeSurfaceProvider(
            model=ai_config.get("model", DEFAULT_MODEL),
            max_tokens=int(ai_config.get("max_tokens", DEFAULT_MAX_TOKENS)),
            temperature=ai_config.get("temperature"),
            retry_policy=RetryPolicy.from_config(ai_config.get("retry")),
        )
    except ProviderUnavailableError as e:
        raise ServiceError(ErrorCodes.AI_UNAVAILABLE, message=e.message, reason=e.code) from e

    request.app.state.surface_provider = provider
    return provider


def get_assistant_service(request: Request) -> AssistantService:
    inventory_config = _config(request).get("inventory", {})
    inventory = InventoryService(
        data_path=request.app.state.inventory_path,
        sample_limit=int(inventory_config.get("sample_limit", DEFAULT_SAMPLE_LIMIT)),
        supplier_limit=int(inventory_config.get("supplier_limit", DEFAULT_SUPPLIER_LIMIT)),
    )
    return AssistantService(get_provider(request), inventory)


def error_response(error: ServiceError) -> JSONResponse:
    """ServiceError → {"error": message} JSON 응답."""
    logger.warning(f"Assistant request rejected: {error.to_dict()}")
    return JSONResponse({"error": error.message}, status_code=error.status_code)


# =============================================================================
# HTML Helpers
# =============================================================================


def build_error_banner_html(message: str) -> str:
    """패널 에러 배너 HTML."""
    return (
        f'<div class="a2ui-alert a2ui-alert-error" role="alert">'
        f"{escape_html(message)}</div>"
    )


def build_panel_html(panel: SurfacePanel) -> str:
    """
    패널 결과 HTML.

    error 상태여도 그때까지 렌더링된 surface는 함께 표시.
    """
    body = panel.render()
    if panel.status == StreamStatus.ERROR and panel.error:
        body = build_error_banner_html(panel.error) + body
    if not body:
        body = '<p class="a2ui-empty">The assistant returned nothing to display.</p>'
    return f'<div class="assistant-result" data-status="{panel.status.value}">{body}</div>'


# =============================================================================
# Page Routes
# =============================================================================


@router.get("/assistant", response_class=HTMLResponse)
async def assistant_page(request: Request) -> Response:
    """
    어시스턴트 패널 화면.

    질의 폼은 HTMX로 /api/ai/panel에 전송 → 결과 조각을 #assistant-output에 교체.
    """
    if jinja_templates:
        return jinja_templates.TemplateResponse(
            request,
            "assistant.html",
            {"panel_endpoint": PANEL_ENDPOINT},
        )

    # Fallback: Jinja2 템플릿이 없는 경우 기본 HTML
    return HTMLResponse(
        content=f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>InvenTrack AI Assistant</title>
    <script src="https://unpkg.com/htmx.org@1.9.10"></script>
</head>
<body>
    <form hx-post="{PANEL_ENDPOINT}" hx-target="#assistant-output">
        <input type="text" name="query" placeholder="Ask about your inventory">
        <button type="submit">Ask</button>
    </form>
    <div id="assistant-output"></div>
</body>
</html>"""
    )


# =============================================================================
# API Routes
# =============================================================================


@api_router.post("/surface")
async def surface_stream(request: Request) -> Response:
    """
    A2UI SSE 스트림.

    Body: {"query": "Show low stock items"}
    """
    try:
        require_session(request)
        try:
            body = await request.json()
        except ValueError:
            body = None
        query = normalize_query(body.get("query") if isinstance(body, dict) else None)
        service = get_assistant_service(request)
        # snapshot은 헤더 전송 전에 구성 (데이터 오류 → JSON 에러)
        system_prompt = service.prepare()
    except ServiceError as e:
        return error_response(e)

    logger.info(f"Streaming assistant surface for query: {query[:80]!r}")
    return StreamingResponse(
        service.stream_frames(system_prompt, query),
        media_type=SSE_MEDIA_TYPE,
        headers=SSE_HEADERS,
    )


@api_router.post("/panel", response_class=HTMLResponse)
async def surface_panel(request: Request, query: str = Form("")) -> HTMLResponse:
    """
    서버 측 렌더링 패널.

    /surface와 같은 프레임 스트림을 decoder → reducer → renderer로 처리.
    """
    try:
        require_session(request)
        query = normalize_query(query)
        service = get_assistant_service(request)
        system_prompt = service.prepare()
    except ServiceError as e:
        logger.warning(f"Assistant panel request rejected: {e}")
        return HTMLResponse(build_error_banner_html(e.message), status_code=e.status_code)

    panel = SurfacePanel()
    await panel.consume(service.stream_frames(system_prompt, query))
    logger.info(
        f"Assistant panel rendered: {len(panel.store.surfaces)} surfaces, "
        f"status={panel.status.value}"
    )
    return HTMLResponse(build_panel_html(panel))
