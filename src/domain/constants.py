"""
Domain Constants: 서비스 전역 상수.

엔드포인트 경로, SSE 헤더, snapshot 상한 등.
"""

# =============================================================================
# Assistant Endpoints
# =============================================================================

PANEL_ENDPOINT = "/api/ai/panel"

# =============================================================================
# SSE Response Headers
# =============================================================================
# 프록시(nginx) 버퍼링 비활성화 → 프레임 즉시 전달

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

# =============================================================================
# Inventory Snapshot Limits
# =============================================================================

DEFAULT_SAMPLE_LIMIT = 50
DEFAULT_SUPPLIER_LIMIT = 10

INVENTORY_DATA_FILENAME = "inventory.yaml"

# =============================================================================
# Session
# =============================================================================

DEFAULT_SESSION_COOKIE = "session_id"

# =============================================================================
# AI Defaults (config에서 오버라이드)
# =============================================================================

DEFAULT_MODEL = "claude-sonnet-4-6"
DEFAULT_MAX_TOKENS = 4096
