"""End-to-end orchestration: fetch, render, prepare, capture."""

from __future__ import annotations

from collections.abc import Mapping
from types import TracebackType
from typing import Any

from luogu_saver.core.capture import capture
from luogu_saver.core.client import ContentServiceClient
from luogu_saver.core.config import SaverConfig
from luogu_saver.core.diagnostics import DiagnosticEmitter, ensure_emitter
from luogu_saver.core.models import (
    CaptureArtifact,
    DocumentKind,
    DocumentRecord,
    MathMode,
    TaskKind,
    TaskRecord,
)
from luogu_saver.core.readiness import ReadinessTimeouts
from luogu_saver.core.session import RenderSession
from luogu_saver.core.snapshot import render_snapshot
from luogu_saver.core.surfaces import SurfaceBackend, SurfacePool

from .fetcher import DocumentFetcher
from .tasks import TaskPoller


# Articles get MathML at build time; pastes defer math to KaTeX in the page.
DEFAULT_MATH_MODES: Mapping[DocumentKind, MathMode] = {
    DocumentKind.ARTICLE: MathMode.BUILD,
    DocumentKind.PASTE: MathMode.CLIENT,
}


def timeouts_from_config(config: SaverConfig) -> ReadinessTimeouts:
    return ReadinessTimeouts(
        navigation=config.navigation_timeout,
        fonts=config.font_timeout,
        images=config.image_timeout,
        typeset=config.typeset_timeout,
    )


class SaverService:
    """Facade tying the fetcher, render session, capture, and task poller together.

    Use it as an async context manager so the surface pool (and the browser
    behind it) lives exactly as long as the service.
    """

    def __init__(
        self,
        config: SaverConfig | None = None,
        *,
        client: ContentServiceClient | None = None,
        backend: SurfaceBackend | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.config = config or SaverConfig()
        self.emitter = ensure_emitter(emitter)
        self.client = client or ContentServiceClient.from_config(self.config)
        self.fetcher = DocumentFetcher(self.client, emitter=self.emitter)
        self.tasks = TaskPoller(self.client, emitter=self.emitter)
        self._backend = backend
        self._pool: SurfacePool | None = None
        self._session: RenderSession | None = None

    @property
    def pool(self) -> SurfacePool:
        if self._pool is None:
            backend = self._backend
            if backend is None:
                from luogu_saver.adapters.playwright import PlaywrightBackend

                backend = PlaywrightBackend(headless=self.config.headless, emitter=self.emitter)
            self._pool = SurfacePool(
                backend,
                size=self.config.pool_size,
                acquire_timeout=self.config.acquire_timeout,
            )
        return self._pool

    @property
    def session(self) -> RenderSession:
        if self._session is None:
            self._session = RenderSession(
                self.pool,
                viewport_height=self.config.viewport_height,
                scale_factor=self.config.device_scale_factor,
                timeouts=timeouts_from_config(self.config),
                emitter=self.emitter,
            )
        return self._session

    async def fetch_document(self, kind: DocumentKind | str, identifier: str) -> DocumentRecord:
        return await self.fetcher.fetch(kind, identifier)

    async def render_document(
        self,
        document: DocumentRecord,
        viewport_width: int | None = None,
        *,
        math_mode: MathMode | None = None,
    ) -> CaptureArtifact:
        """Render an already fetched document into a PNG artifact."""
        mode = math_mode or DEFAULT_MATH_MODES[document.kind]
        snapshot = render_snapshot(
            document.display_title,
            document.byline,
            document.body,
            math_mode=mode,
        )
        ready = await self.session.prepare(
            snapshot, viewport_width or self.config.viewport_width
        )
        try:
            return await capture(ready, emitter=self.emitter)
        finally:
            await ready.release()

    async def render_and_capture(
        self,
        kind: DocumentKind | str,
        identifier: str,
        viewport_width: int | None = None,
        *,
        math_mode: MathMode | None = None,
    ) -> CaptureArtifact:
        """Fetch a document and return its full-page capture.

        :class:`NotFound` and :class:`Unavailable` propagate before any
        surface is touched; :class:`PoolExhausted` and :class:`CaptureFailure`
        propagate after the surface has been released.
        """
        document = await self.fetch_document(kind, identifier)
        return await self.render_document(document, viewport_width, math_mode=math_mode)

    async def submit_task(self, kind: TaskKind | str, payload: Mapping[str, Any]) -> str:
        return await self.tasks.submit(kind, payload)

    async def poll_task(self, task_id: str) -> TaskRecord:
        return await self.tasks.poll(task_id)

    async def close(self) -> None:
        try:
            if self._pool is not None:
                await self._pool.close()
        finally:
            self.client.close()

    async def __aenter__(self) -> SaverService:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


__all__ = ["DEFAULT_MATH_MODES", "SaverService", "timeouts_from_config"]
