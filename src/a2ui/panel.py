"""
SurfacePanel: 어시스턴트 패널 하나의 스트림 → store → 렌더링 연결.

새 질의 시작 시:
- store.reset() → generation 증가
- 진행 중이던 이전 스트림 task는 취소
- 이전 generation으로 태그된 콜백은 store에 반영되지 않음
"""

import asyncio
import logging
from collections.abc import AsyncIterable

import httpx

from src.a2ui.catalog import DEFAULT_CATALOG, Catalog
from src.a2ui.decoder import (
    DEFAULT_SURFACE_PATH,
    DoneCallback,
    ErrorCallback,
    MessageCallback,
    consume_stream,
    stream_surface,
)
from src.a2ui.reducer import SurfaceStore
from src.a2ui.renderer import render_surfaces
from src.a2ui.types import Done, Error, Message, StreamStatus

logger = logging.getLogger(__name__)


class SurfacePanel:
    """
    Usage:
        panel = SurfacePanel()
        async with httpx.AsyncClient(base_url=url) as client:
            await panel.ask(client, "Show low stock items")
        html = panel.render()
    """

    def __init__(
        self,
        catalog: Catalog = DEFAULT_CATALOG,
        store: SurfaceStore | None = None,
    ) -> None:
        self.catalog = catalog
        self.store = store or SurfaceStore()
        self._task: asyncio.Task[None] | None = None

    @property
    def status(self) -> StreamStatus:
        return self.store.status

    @property
    def error(self) -> str | None:
        return self.store.error

    async def ask(
        self,
        client: httpx.AsyncClient,
        query: str,
        path: str = DEFAULT_SURFACE_PATH,
    ) -> None:
        """HTTP로 질의하고 스트림이 끝날 때까지 store에 반영."""
        generation = self.store.reset()
        logger.info(f"Starting surface stream (generation {generation})")
        await stream_surface(client, query, *self._callbacks(generation), path=path)

    async def consume(self, chunks: AsyncIterable[bytes | str]) -> None:
        """이미 열린 프레임 스트림 (in-process 등)을 store에 반영."""
        generation = self.store.reset()
        await consume_stream(chunks, *self._callbacks(generation))

    def start(
        self,
        client: httpx.AsyncClient,
        query: str,
        path: str = DEFAULT_SURFACE_PATH,
    ) -> "asyncio.Task[None]":
        """
        백그라운드 task로 질의 시작.

        이전 task가 아직 돌고 있으면 취소 (stale reader 정리).
        """
        if self._task is not None and not self._task.done():
            logger.info("Cancelling in-flight surface stream")
            self._task.cancel()
        self._task = asyncio.create_task(self.ask(client, query, path=path))
        return self._task

    def reset(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.store.reset()

    def render(self) -> str:
        return render_surfaces(self.store.surfaces, self.catalog)

    def _callbacks(
        self, generation: int
    ) -> tuple[MessageCallback, DoneCallback, ErrorCallback]:
        def on_message(message: Message) -> None:
            self.store.apply(message, generation)

        def on_done() -> None:
            self.store.apply(Done(), generation)

        def on_error(message: str) -> None:
            logger.warning(f"Surface stream failed: {message}")
            self.store.apply(Error(message=message), generation)

        return on_message, on_done, on_error
