"""
Anthropic (Claude) Provider.

messages.stream() 으로 응답 텍스트를 청크 단위 전달.
- 스트림 열기: 일시적 오류 시 지수 백오프 재시도
- 스트림 도중 실패: 재시도 없이 StreamError (이미 보낸 프레임 중복 방지)
"""

import logging
import os
from collections.abc import AsyncIterator
from typing import Any

from src.domain.constants import DEFAULT_MAX_TOKENS, DEFAULT_MODEL
from src.utils.retry import RetryPolicy, retry_with_exponential_backoff

from .base import (
    LLMCallParams,
    ProviderUnavailableError,
    StreamError,
    SurfaceProvider,
)

logger = logging.getLogger(__name__)


class ClaudeSurfaceProvider(SurfaceProvider):
    """
    Claude API Provider.

    Usage:
        provider = ClaudeSurfaceProvider(model="claude-sonnet-4-6")
        async for chunk in provider.stream_text(system_prompt, query):
            ...
    """

    name = "anthropic"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float | None = None,
        top_p: float | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        """
        Args:
            model: 모델 ID (config에서 주입)
            api_key: API 키 (환경변수 MY_ANTHROPIC_KEY 또는 ANTHROPIC_API_KEY 사용 가능)
            max_tokens: 최대 토큰 수
            temperature: 샘플링 온도 (None이면 API 기본값)
            top_p: top-p 샘플링 (None이면 API 기본값)
            retry_policy: 스트림 열기 재시도 정책

        Raises:
            ProviderUnavailableError: API 키가 없을 때 (fail-fast → 503)
        """
        # API 키 결정: 인자 > MY_ANTHROPIC_KEY > ANTHROPIC_API_KEY
        self.api_key = (
            api_key
            or os.environ.get("MY_ANTHROPIC_KEY")
            or os.environ.get("ANTHROPIC_API_KEY")
        )
        if not self.api_key:
            raise ProviderUnavailableError(
                "ANTHROPIC_KEY_MISSING",
                "ANTHROPIC_API_KEY not configured on server",
            )

        self.params = LLMCallParams(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            top_p=top_p,
        )
        self.retry_policy = retry_policy or RetryPolicy()
        self._client: Any = None

    @property
    def model(self) -> str:
        return self.params.model

    def _get_client(self) -> Any:
        """Anthropic 클라이언트 (lazy init)."""
        if self._client is None:
            try:
                import anthropic

                self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
            except ImportError as e:
                raise ProviderUnavailableError(
                    "ANTHROPIC_NOT_INSTALLED",
                    "anthropic package not installed. Run: pip install anthropic",
                ) from e
        return self._client

    def _build_request(self, system_prompt: str, query: str) -> dict[str, Any]:
        return {
            **self.params.to_dict(),
            "system": system_prompt,
            "messages": [{"role": "user", "content": query}],
        }

    async def stream_text(self, system_prompt: str, query: str) -> AsyncIterator[str]:
        """
        응답 텍스트 청크 스트리밍.

        Raises:
            StreamError: 열기/읽기 실패 (사용자 친화적 메시지)
        """
        logger.info(f"Opening Claude stream: {self.params.to_dict()}")

        try:
            manager, stream = await self._open_stream_with_retry(system_prompt, query)
        except ProviderUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Claude stream could not be opened: {e}", exc_info=True)
            raise StreamError(
                "STREAM_OPEN_FAILED",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        try:
            async for text in stream.text_stream:
                yield text
        except Exception as e:
            logger.error(f"Claude stream interrupted: {e}", exc_info=True)
            raise StreamError(
                "STREAM_INTERRUPTED",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e
        finally:
            await manager.__aexit__(None, None, None)

    async def _open_stream_with_retry(
        self, system_prompt: str, query: str
    ) -> tuple[Any, Any]:
        """재시도 로직이 적용된 스트림 열기. (manager, stream) 반환."""
        import anthropic

        # 재시도 가능한 예외 정의
        retryable_exceptions = (
            anthropic.RateLimitError,
            anthropic.APIConnectionError,
            anthropic.APITimeoutError,
            anthropic.InternalServerError,
        )

        async def _open() -> tuple[Any, Any]:
            client = self._get_client()
            manager = client.messages.stream(**self._build_request(system_prompt, query))
            # __aenter__에서 실제 요청이 나감 → 여기서 나는 오류만 재시도 대상
            stream = await manager.__aenter__()
            return manager, stream

        return await retry_with_exponential_backoff(
            _open,
            policy=self.retry_policy,
            exceptions=retryable_exceptions,
        )

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """사용자 친화적인 에러 메시지 생성."""
        try:
            import anthropic

            if isinstance(error, anthropic.APITimeoutError):
                return "The AI service took too long to respond. Please try again."
            elif isinstance(error, anthropic.APIConnectionError):
                return "Could not reach the AI service. Check the server's network connection."
            elif isinstance(error, anthropic.RateLimitError):
                return "The AI service is rate limited. Please wait a moment and try again."
            elif isinstance(error, anthropic.AuthenticationError):
                return "AI service authentication failed. Check ANTHROPIC_API_KEY on the server."
            elif isinstance(error, anthropic.PermissionDeniedError):
                return "The configured API key is not allowed to use this model."
            elif isinstance(error, anthropic.BadRequestError):
                return "The AI service rejected the request."
            elif isinstance(error, anthropic.InternalServerError):
                return "The AI service is temporarily unavailable."
        except ImportError:
            pass

        # 기본 메시지
        error_str = str(error)
        if "timeout" in error_str.lower():
            return "The request timed out. Please try again."
        elif "connection" in error_str.lower():
            return "A network error occurred while contacting the AI service."

        return f"AI error: {error_str}" if error_str else "AI error"
