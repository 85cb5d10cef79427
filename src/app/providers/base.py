"""
AI Provider 추상 인터페이스.

모델 교체 가능하게 설계:
- 어시스턴트는 provider가 내보내는 텍스트 청크만 소비
- 모델명/파라미터는 config만 SSOT
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any


@dataclass
class LLMCallParams:
    """
    LLM 호출 파라미터 기록.

    로그에 남겨 응답 차이를 추적할 수 있게 함.
    """
    model: str
    max_tokens: int
    temperature: float | None = None
    top_p: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """None 값은 제외 (API 기본값 사용)."""
        result: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
        }
        return {k: v for k, v in result.items() if v is not None}


# =============================================================================
# Provider Exceptions
# =============================================================================

class ProviderError(Exception):
    """Provider 관련 에러."""

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")


class ProviderUnavailableError(ProviderError):
    """자격 증명 없음 / SDK 미설치 → 서비스 사용 불가 (503)."""
    pass


class StreamError(ProviderError):
    """스트림 열기 또는 읽기 실패. message는 사용자에게 보여줄 문구."""
    pass


# =============================================================================
# Abstract Provider
# =============================================================================

class SurfaceProvider(ABC):
    """
    A2UI 메시지를 생성하는 LLM Provider 인터페이스.

    역할: system prompt + 질의 → 줄 단위 JSON 텍스트 스트림
    (줄 경계와 청크 경계는 무관, 프레이밍은 호출 측 책임)
    """

    name: str = "base"

    @abstractmethod
    def stream_text(self, system_prompt: str, query: str) -> AsyncIterator[str]:
        """
        응답 텍스트를 청크 단위로 스트리밍.

        Args:
            system_prompt: 프로토콜 규칙 + 재고 snapshot이 포함된 system prompt
            query: 사용자 질의

        Yields:
            텍스트 청크

        Raises:
            StreamError: 업스트림 실패 (사용자 친화적 메시지 포함)
        """
        ...
