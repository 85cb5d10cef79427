"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn src.app.main:app --reload
- 프로덕션: uv run uvicorn src.app.main:app
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

# Routes
from src.app.routes import ai
from src.domain.constants import INVENTORY_DATA_FILENAME

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent

# 세션 토큰 (쉼표 구분) - 세션 발급은 외부 인증 계층 담당
SESSION_TOKENS_ENV = "ASSISTANT_SESSION_TOKENS"

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


def load_session_tokens() -> set[str]:
    """환경변수에서 유효한 세션 토큰 목록 로드."""
    raw = os.environ.get(SESSION_TOKENS_ENV, "")
    return {token.strip() for token in raw.split(",") if token.strip()}


def resolve_inventory_path(config: dict[str, Any]) -> Path:
    """inventory.data_path (상대 경로는 프로젝트 루트 기준)."""
    configured = config.get("inventory", {}).get("data_path", INVENTORY_DATA_FILENAME)
    path = Path(configured)
    return path if path.is_absolute() else PROJECT_ROOT / path


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: .env/설정 로드, 세션 목록 초기화
    종료 시: 리소스 정리
    """
    # Startup
    load_dotenv()
    app.state.config = load_config()
    app.state.inventory_path = resolve_inventory_path(app.state.config)
    app.state.sessions = load_session_tokens()
    app.state.surface_provider = None

    if not app.state.sessions and app.state.config.get("auth", {}).get("enabled", True):
        logger.warning(
            f"No session tokens configured ({SESSION_TOKENS_ENV}); "
            "assistant endpoints will reject every request"
        )

    yield

    # Shutdown
    # (리소스 정리 필요 시 여기에 추가)


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="InvenTrack AI Assistant",
    description="재고 데이터 질의 → A2UI surface 스트리밍",
    version="0.1.0",
    lifespan=lifespan,
)

# Static files (CSS, JS)
static_dir = Path(__file__).parent / "static"
if static_dir.exists():
    app.mount("/static", StaticFiles(directory=static_dir), name="static")


# =============================================================================
# Routes
# =============================================================================

# 페이지 라우트 (HTML)
app.include_router(ai.router, prefix="", tags=["Assistant"])

# API 라우트
app.include_router(ai.api_router, prefix="/api/ai", tags=["Assistant API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/")
async def root() -> dict[str, Any]:
    """엔드포인트 안내."""
    return {
        "message": "InvenTrack AI Assistant",
        "endpoints": {
            "assistant": "/assistant",
            "surface": "/api/ai/surface",
            "panel": "/api/ai/panel",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
