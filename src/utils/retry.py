"""
재시도 로직 유틸리티.

업스트림 스트림 열기 실패 (rate limit, 연결 끊김 등) 시 지수 백오프 재시도.
스트림이 한 번 열린 뒤의 실패는 재시도하지 않음 (이미 보낸 프레임 중복 방지).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    재시도 정책 (config ai.retry 섹션).

    max_retries=3 → 최초 1회 + 재시도 3회 = 최대 4회 시도
    """
    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0

    @classmethod
    def from_config(cls, config: dict[str, Any] | None) -> "RetryPolicy":
        config = config or {}
        return cls(
            max_retries=int(config.get("max_retries", cls.max_retries)),
            initial_delay=float(config.get("initial_delay", cls.initial_delay)),
            max_delay=float(config.get("max_delay", cls.max_delay)),
            exponential_base=float(config.get("exponential_base", cls.exponential_base)),
        )

    def delays(self) -> list[float]:
        """각 재시도 전 대기 시간 목록."""
        result = []
        delay = self.initial_delay
        for _ in range(self.max_retries):
            result.append(delay)
            delay = min(delay * self.exponential_base, self.max_delay)
        return result


async def retry_with_exponential_backoff(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    """
    지수 백오프를 사용한 재시도.

    Args:
        func: 재시도할 비동기 함수 (인자 없음, 필요하면 closure 사용)
        policy: 재시도 정책 (None이면 기본값)
        exceptions: 재시도할 예외 타입들 (그 외 예외는 즉시 전파)

    Returns:
        func의 반환값

    Raises:
        마지막 시도에서 발생한 예외
    """
    policy = policy or RetryPolicy()
    delays = policy.delays()
    attempts = len(delays) + 1

    for attempt, delay in enumerate([*delays, None], start=1):
        try:
            result = await func()
        except exceptions as e:
            if delay is None:
                logger.error(f"All {attempts} attempts failed. Last error: {e}")
                raise
            logger.warning(
                f"Attempt {attempt}/{attempts} failed: {e}. Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)
            continue

        if attempt > 1:
            logger.info(f"Retry succeeded on attempt {attempt}/{attempts}")
        return result

    # Should never reach here
    msg = "Unexpected retry logic error"
    raise RuntimeError(msg)
