"""
App layer: API 서버 (FastAPI + HTMX).

역할:
- 어시스턴트 질의 수신, 세션 확인
- 재고 snapshot → LLM → A2UI SSE 스트림
- ⚠️ surface 상태 로직 없음 (src/a2ui에 위임)

주의: 폴더 구분
- src/app/templates/ → Jinja2 HTML (HTMX)
- src/a2ui/ → 프로토콜 디코딩/상태/렌더링 코드
"""
