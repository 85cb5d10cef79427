"""
test_ai.py - AI Assistant Routes 유닛 테스트

검증 포인트:
1. 스트림 시작 전 에러: 401 / 400 / 503 + {"error": ...}
2. /surface SSE 응답 (헤더 + 프레임 + done)
3. /panel 서버 측 렌더링 HTML
4. 업스트림 실패 → error 프레임 / 에러 배너
5. /assistant 페이지
"""

import json
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.app.routes.ai import api_router, build_error_banner_html, router

SESSION = "test-session"

SURFACE_CHUNKS = [
    '{"type":"createSurface","surfaceId":"ai-panel"}\n',
    '{"type":"updateComponents","surfaceId":"ai-panel","components":['
    '{"id":"h1","type":"Heading","data":{"text":"Low Stock Items","level":2}},'
    '{"id":"alert1","type":"AlertBanner","data":{"message":"2 items need restocking","variant":"warning"}}'
    "]}\n",
]

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def app(default_config: dict, inventory_path: Path, fake_provider_factory) -> FastAPI:
    """테스트용 FastAPI 앱 (가짜 provider 주입)."""
    app = FastAPI()
    app.include_router(router)
    app.include_router(api_router, prefix="/api/ai")

    app.state.config = default_config
    app.state.inventory_path = inventory_path
    app.state.sessions = {SESSION}
    app.state.surface_provider = fake_provider_factory(SURFACE_CHUNKS)
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """세션 쿠키가 설정된 클라이언트."""
    return TestClient(app, cookies={"session_id": SESSION})


def parse_sse(body: str) -> list[dict]:
    return [
        json.loads(block[len("data: "):])
        for block in body.split("\n\n")
        if block.startswith("data: ")
    ]


# =============================================================================
# /api/ai/surface
# =============================================================================


class TestSurfaceEndpoint:
    """SSE 엔드포인트."""

    def test_streams_frames_then_done(self, client: TestClient, app: FastAPI):
        response = client.post("/api/ai/surface", json={"query": "Show low stock items"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-accel-buffering"] == "no"

        messages = parse_sse(response.text)
        assert [m["type"] for m in messages] == ["createSurface", "updateComponents", "done"]

        # provider가 snapshot이 담긴 system prompt와 정리된 질의를 받음
        system_prompt, query = app.state.surface_provider.calls[0]
        assert query == "Show low stock items"
        assert "MN-004" in system_prompt

    def test_missing_session(self, app: FastAPI):
        response = TestClient(app).post("/api/ai/surface", json={"query": "q"})

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}
        assert app.state.surface_provider.calls == []

    def test_unknown_session(self, app: FastAPI):
        client = TestClient(app, cookies={"session_id": "forged"})
        response = client.post("/api/ai/surface", json={"query": "q"})
        assert response.status_code == 401

    def test_auth_disabled(self, app: FastAPI):
        app.state.config = {**app.state.config, "auth": {"enabled": False}}
        response = TestClient(app).post("/api/ai/surface", json={"query": "q"})
        assert response.status_code == 200

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"json": {"query": "   "}},
            {"json": {}},
            {"json": {"query": 5}},
            {"json": ["query"]},
            {"content": b"not json", "headers": {"Content-Type": "application/json"}},
        ],
    )
    def test_query_required(self, client: TestClient, kwargs):
        response = client.post("/api/ai/surface", **kwargs)

        assert response.status_code == 400
        assert response.json() == {"error": "Query is required"}

    def test_missing_api_key(self, client: TestClient, app: FastAPI, monkeypatch):
        """provider 미주입 + API 키 없음 → 503."""
        monkeypatch.delenv("MY_ANTHROPIC_KEY", raising=False)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        app.state.surface_provider = None

        response = client.post("/api/ai/surface", json={"query": "q"})

        assert response.status_code == 503
        assert response.json() == {"error": "ANTHROPIC_API_KEY not configured on server"}

    def test_inventory_missing(self, client: TestClient, app: FastAPI, tmp_path: Path):
        app.state.inventory_path = tmp_path / "gone.yaml"

        response = client.post("/api/ai/surface", json={"query": "q"})

        assert response.status_code == 500
        assert response.json() == {"error": "Inventory data file not found"}

    def test_inventory_non_finite_price(self, client: TestClient, app: FastAPI, tmp_path: Path):
        path = tmp_path / "inventory.yaml"
        path.write_text(
            "items:\n"
            "  - {id: 1, name: x, sku: X-1, category: c, quantity: 1, unit_price: .nan}\n",
            encoding="utf-8",
        )
        app.state.inventory_path = path

        response = client.post("/api/ai/surface", json={"query": "q"})

        assert response.status_code == 500
        assert response.json() == {"error": "unit_price must be a finite number"}

    def test_upstream_failure_becomes_error_frame(self, client: TestClient, app: FastAPI, fake_provider_factory):
        app.state.surface_provider = fake_provider_factory(
            SURFACE_CHUNKS[:1], fail_with="The AI service is temporarily unavailable."
        )

        response = client.post("/api/ai/surface", json={"query": "q"})

        # 헤더는 이미 나갔으므로 200 + error 프레임
        assert response.status_code == 200
        messages = parse_sse(response.text)
        assert messages[-1] == {"type": "error", "message": "The AI service is temporarily unavailable."}
        assert all(m["type"] != "done" for m in messages)


# =============================================================================
# /api/ai/panel
# =============================================================================


class TestPanelEndpoint:
    """서버 측 렌더링 패널."""

    def test_renders_surface(self, client: TestClient):
        response = client.post("/api/ai/panel", data={"query": "Show low stock items"})

        assert response.status_code == 200
        assert 'data-status="done"' in response.text
        assert "Low Stock Items" in response.text
        assert "a2ui-alert-warning" in response.text

    def test_upstream_failure_shows_banner_and_partial(self, client: TestClient, app: FastAPI, fake_provider_factory):
        app.state.surface_provider = fake_provider_factory(
            SURFACE_CHUNKS, fail_with="Rate <limited>"
        )

        response = client.post("/api/ai/panel", data={"query": "q"})

        assert 'data-status="error"' in response.text
        assert "Rate &lt;limited&gt;" in response.text
        assert "Low Stock Items" in response.text

    def test_empty_result(self, client: TestClient, app: FastAPI, fake_provider_factory):
        app.state.surface_provider = fake_provider_factory(["no json here\n"])

        response = client.post("/api/ai/panel", data={"query": "q"})

        assert "The assistant returned nothing to display." in response.text

    def test_empty_query(self, client: TestClient):
        response = client.post("/api/ai/panel", data={"query": ""})

        assert response.status_code == 400
        assert "Query is required" in response.text

    def test_missing_session(self, app: FastAPI):
        response = TestClient(app).post("/api/ai/panel", data={"query": "q"})
        assert response.status_code == 401


# =============================================================================
# Page / Helpers
# =============================================================================


class TestAssistantPage:
    def test_page_renders_form(self, client: TestClient):
        response = client.get("/assistant")

        assert response.status_code == 200
        assert 'hx-post="/api/ai/panel"' in response.text


class TestHelpers:
    def test_error_banner_escapes(self):
        html = build_error_banner_html("<script>x</script>")
        assert "<script>" not in html
        assert 'role="alert"' in html
