"""
Error definitions for the assistant service.

규칙:
- 조용한 실패 금지 → ServiceError로 명시적 실패 (코드 + 컨텍스트)
- 스트림 안의 잘못된 프레임은 예외가 아님 (decoder가 흡수)
- 사용자에게 노출되는 것은 전송 에러 + 명시적 error 메시지뿐
"""

from typing import Any


class ServiceError(Exception):
    """
    서비스 정책 위반 시 발생하는 에러.

    HTTP 계층에서 {"error": message} + status_code로 변환됨.

    Usage:
        raise ServiceError("QUERY_REQUIRED", message="Query is required")
    """

    # 기본 HTTP 상태 (코드별 매핑은 HTTP_STATUS 참조)
    default_status = 400

    def __init__(self, code: str, message: str | None = None, **context: Any) -> None:
        self.code = code
        self.message = message or code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {self.message} ({ctx_str})" if ctx_str else f"[{self.code}] {self.message}"

    @property
    def status_code(self) -> int:
        return HTTP_STATUS.get(self.code, self.default_status)

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Request ===
    QUERY_REQUIRED = "QUERY_REQUIRED"
    AUTH_REQUIRED = "AUTH_REQUIRED"

    # === Upstream AI ===
    AI_UNAVAILABLE = "AI_UNAVAILABLE"  # API 키 없음, SDK 미설치

    # === Inventory ===
    INVENTORY_DATA_INVALID = "INVENTORY_DATA_INVALID"
    INVENTORY_DATA_MISSING = "INVENTORY_DATA_MISSING"


HTTP_STATUS: dict[str, int] = {
    ErrorCodes.QUERY_REQUIRED: 400,
    ErrorCodes.AUTH_REQUIRED: 401,
    ErrorCodes.AI_UNAVAILABLE: 503,
    ErrorCodes.INVENTORY_DATA_INVALID: 500,
    ErrorCodes.INVENTORY_DATA_MISSING: 500,
}
