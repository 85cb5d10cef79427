"""
AI Provider Abstraction.

모델 교체 가능하게 설계.
모델명은 config만 SSOT.
"""

from .anthropic import ClaudeSurfaceProvider
from .base import (
    LLMCallParams,
    ProviderError,
    ProviderUnavailableError,
    StreamError,
    SurfaceProvider,
)

__all__ = [
    "SurfaceProvider",
    "ProviderError",
    "ProviderUnavailableError",
    "StreamError",
    "LLMCallParams",
    "ClaudeSurfaceProvider",
]
