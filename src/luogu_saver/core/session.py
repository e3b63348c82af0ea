"""Acquire a render surface, load a snapshot, and wait until it is capturable."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from types import TracebackType

from .diagnostics import DiagnosticEmitter, NullEmitter
from .exceptions import CaptureFailure
from .models import RenderSnapshot
from .readiness import (
    NAVIGATION,
    ReadinessState,
    ReadinessTimeouts,
    SignalOutcome,
    run_readiness_checks,
)
from .surfaces import RenderSurface, SurfaceLease, SurfacePool


logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT_WIDTH = 960
DEFAULT_VIEWPORT_HEIGHT = 800
DEFAULT_SCALE_FACTOR = 2.0


@dataclass(slots=True)
class ReadySurface:
    """Loaded surface whose readiness checks have all concluded."""

    lease: SurfaceLease
    state: ReadinessState

    @property
    def surface(self) -> RenderSurface:
        return self.lease.surface

    @property
    def degraded(self) -> tuple[str, ...]:
        return self.state.degraded

    async def release(self) -> None:
        await self.lease.release()

    async def __aenter__(self) -> ReadySurface:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.release()


class RenderSession:
    """Prepare snapshots on surfaces drawn from a shared pool."""

    def __init__(
        self,
        pool: SurfacePool,
        *,
        viewport_height: int = DEFAULT_VIEWPORT_HEIGHT,
        scale_factor: float = DEFAULT_SCALE_FACTOR,
        timeouts: ReadinessTimeouts | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.pool = pool
        self.viewport_height = viewport_height
        self.scale_factor = scale_factor
        self.timeouts = timeouts or ReadinessTimeouts()
        self.emitter = emitter or NullEmitter()

    async def prepare(
        self,
        snapshot: RenderSnapshot,
        viewport_width: int | None = DEFAULT_VIEWPORT_WIDTH,
    ) -> ReadySurface:
        """Return a surface holding ``snapshot`` once every readiness check concluded.

        Raises :class:`PoolExhausted` when no surface frees up in time and
        :class:`CaptureFailure` when the surface faults while loading. The
        surface is released before either error leaves this method.
        """
        width = int(viewport_width or DEFAULT_VIEWPORT_WIDTH)
        if width <= 0:
            raise ValueError(f"Viewport width must be positive, got {viewport_width!r}.")

        lease = await self.pool.acquire()
        try:
            state = ReadinessState()
            await self._load(lease, snapshot, width, state)
            await run_readiness_checks(
                lease.surface,
                snapshot,
                timeouts=self.timeouts,
                state=state,
                emitter=self.emitter,
            )
        except BaseException:
            await lease.release()
            raise
        if state.degraded:
            logger.info("Surface ready with degraded signals: %s", ", ".join(state.degraded))
        return ReadySurface(lease=lease, state=state)

    async def _load(
        self,
        lease: SurfaceLease,
        snapshot: RenderSnapshot,
        width: int,
        state: ReadinessState,
    ) -> None:
        ceiling = self.timeouts.navigation
        try:
            await lease.surface.set_viewport(width, self.viewport_height, self.scale_factor)
            await lease.load(snapshot.html, timeout=ceiling)
        except TimeoutError:
            reason = f"network still busy after {ceiling:g}s"
            state.mark(NAVIGATION, SignalOutcome.TIMED_OUT, reason)
            logger.warning("Snapshot load degraded: %s", reason)
            self.emitter.event("render_degraded", {"signal": NAVIGATION, "reason": reason})
            return
        except CaptureFailure:
            raise
        except Exception as exc:
            raise CaptureFailure(f"Render surface failed to load snapshot: {exc}") from exc
        state.mark(NAVIGATION, SignalOutcome.READY)


__all__ = [
    "DEFAULT_SCALE_FACTOR",
    "DEFAULT_VIEWPORT_HEIGHT",
    "DEFAULT_VIEWPORT_WIDTH",
    "ReadySurface",
    "RenderSession",
]
