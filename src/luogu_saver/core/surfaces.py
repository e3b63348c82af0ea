"""Render surface capability interface and the bounded surface pool."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any, Protocol, runtime_checkable

from .exceptions import PoolExhausted


logger = logging.getLogger(__name__)


@runtime_checkable
class RenderSurface(Protocol):
    """Isolated page-like context able to load HTML and produce a raster capture.

    ``load_content`` and ``wait_for_function`` raise the builtin
    :class:`TimeoutError` when their ceiling elapses so callers never need to
    know the automation library in use.
    """

    async def set_viewport(self, width: int, height: int, scale: float) -> None: ...

    async def load_content(self, html: str, *, timeout: float) -> None: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...

    async def wait_for_function(self, predicate: str, *, timeout: float) -> None: ...

    async def screenshot(self, *, full_page: bool = True) -> bytes: ...

    async def close(self) -> None: ...


@runtime_checkable
class SurfaceBackend(Protocol):
    """Factory for render surfaces, typically wrapping a headless browser."""

    async def start(self) -> None: ...

    async def new_surface(self) -> RenderSurface: ...

    async def close(self) -> None: ...


class SurfaceLease:
    """Exclusive hold on one surface, returned to the pool exactly once."""

    def __init__(self, pool: SurfacePool, surface: RenderSurface) -> None:
        self._pool = pool
        self.surface = surface
        self.loaded = False
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    async def load(self, html: str, *, timeout: float) -> None:
        """Load a snapshot; a surface never hosts more than one."""
        if self._released:
            raise RuntimeError("Cannot load content into a released surface.")
        if self.loaded:
            raise RuntimeError("Render surface already holds a snapshot.")
        self.loaded = True
        await self.surface.load_content(html, timeout=timeout)

    async def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            await self.surface.close()
        except Exception as exc:
            logger.warning("Failed to close render surface cleanly: %s", exc)
        finally:
            self._pool._give_back()  # noqa: SLF001

    async def __aenter__(self) -> SurfaceLease:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.release()


class SurfacePool:
    """Bounded first-come-first-served pool of render surfaces.

    The pool is an explicit resource: construct it at process start, enter it
    with ``async with`` to launch the backend, and let it close the backend on
    exit. Surfaces are created per lease and discarded on release.
    """

    def __init__(
        self,
        backend: SurfaceBackend,
        *,
        size: int = 2,
        acquire_timeout: float | None = None,
    ) -> None:
        if size < 1:
            raise ValueError("Surface pool size must be at least 1.")
        self.backend = backend
        self.size = size
        self.acquire_timeout = acquire_timeout
        self._slots = asyncio.Semaphore(size)
        self._available = size
        self._started = False

    @property
    def available(self) -> int:
        return self._available

    async def start(self) -> None:
        if not self._started:
            await self.backend.start()
            self._started = True

    async def close(self) -> None:
        if self._started:
            self._started = False
            await self.backend.close()

    async def acquire(self) -> SurfaceLease:
        """Wait for a free slot and open a fresh surface in it."""
        await self.start()
        try:
            async with asyncio.timeout(self.acquire_timeout):
                await self._slots.acquire()
        except TimeoutError as exc:
            raise PoolExhausted(
                f"No render surface became available within {self.acquire_timeout:g}s "
                f"(pool size {self.size})."
            ) from exc
        self._available -= 1
        try:
            surface = await self.backend.new_surface()
        except BaseException:
            self._give_back()
            raise
        return SurfaceLease(self, surface)

    def _give_back(self) -> None:
        self._available += 1
        self._slots.release()

    async def __aenter__(self) -> SurfacePool:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


__all__ = ["RenderSurface", "SurfaceBackend", "SurfaceLease", "SurfacePool"]
