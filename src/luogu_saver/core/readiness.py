"""Readiness checks gating the capture of a loaded snapshot.

Fonts, images, and client-side typesetting finish on unrelated schedules and
fail in unrelated ways. Each check therefore runs as its own task with its
own ceiling; a slow or broken signal is recorded as degraded and never holds
up the others for longer than its ceiling.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field
from enum import Enum
import logging
import time

from .diagnostics import DiagnosticEmitter, NullEmitter
from .exceptions import RenderDegraded
from .models import RenderSnapshot
from .snapshot import TYPESET_FLAG
from .surfaces import RenderSurface


logger = logging.getLogger(__name__)

FONTS = "fonts"
IMAGES = "images"
TYPESET = "typeset"
NAVIGATION = "navigation"

# Extra time granted to in-page waits before the host-side ceiling trips.
_HOST_GRACE = 0.5

FONTS_SCRIPT = "() => document.fonts.ready.then(() => document.fonts.status)"

IMAGES_SCRIPT = """
(ceiling) => new Promise((resolve) => {
  const images = Array.from(document.images);
  const total = images.length;
  if (!total) {
    resolve({ settled: 0, total });
    return;
  }
  let settled = 0;
  let done = false;
  const finish = () => {
    if (done) return;
    done = true;
    clearTimeout(timer);
    resolve({ settled, total });
  };
  const timer = setTimeout(finish, ceiling);
  const settle = () => {
    settled += 1;
    if (settled >= total) finish();
  };
  images.forEach((img) => {
    if (img.complete) {
      settle();
    } else {
      img.addEventListener("load", settle, { once: true });
      img.addEventListener("error", settle, { once: true });
    }
  });
})
"""

TYPESET_PREDICATE = f"() => window.{TYPESET_FLAG} === true"


class SignalOutcome(str, Enum):
    """How a readiness signal concluded."""

    PENDING = "pending"
    READY = "ready"
    SKIPPED = "skipped"
    TIMED_OUT = "timed_out"
    FAILED = "failed"

    @property
    def degraded(self) -> bool:
        return self in (SignalOutcome.TIMED_OUT, SignalOutcome.FAILED)


@dataclass(slots=True)
class ReadinessTimeouts:
    """Per-signal ceilings in seconds."""

    navigation: float = 30.0
    fonts: float = 10.0
    images: float = 5.0
    typeset: float = 20.0

    @property
    def budget(self) -> float:
        """Worst-case wall time of a prepare step."""
        return self.navigation + max(self.fonts, self.images, self.typeset) + _HOST_GRACE


@dataclass(slots=True)
class ReadinessState:
    """Transient record of which readiness signals fired for one session."""

    outcomes: dict[str, SignalOutcome] = field(default_factory=dict)
    warnings: list[RenderDegraded] = field(default_factory=list)
    started: float = field(default_factory=time.monotonic)
    finished: float | None = None

    def mark(self, signal: str, outcome: SignalOutcome, reason: str | None = None) -> None:
        self.outcomes[signal] = outcome
        if outcome.degraded:
            self.warnings.append(RenderDegraded(signal, reason or outcome.value))

    def outcome(self, signal: str) -> SignalOutcome:
        return self.outcomes.get(signal, SignalOutcome.PENDING)

    @property
    def degraded(self) -> tuple[str, ...]:
        return tuple(name for name, outcome in self.outcomes.items() if outcome.degraded)

    @property
    def ready(self) -> bool:
        return self.finished is not None and all(
            outcome is not SignalOutcome.PENDING for outcome in self.outcomes.values()
        )

    @property
    def elapsed(self) -> float:
        end = self.finished if self.finished is not None else time.monotonic()
        return end - self.started


async def _bounded(
    state: ReadinessState,
    signal: str,
    awaitable: Awaitable[object],
    ceiling: float,
    emitter: DiagnosticEmitter,
) -> None:
    try:
        await asyncio.wait_for(awaitable, ceiling)
    except TimeoutError as exc:
        reason = str(exc) or f"no signal after {ceiling:g}s"
        _degrade(state, signal, SignalOutcome.TIMED_OUT, reason, emitter)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        _degrade(state, signal, SignalOutcome.FAILED, str(exc) or type(exc).__name__, emitter)
    else:
        state.mark(signal, SignalOutcome.READY)


def _degrade(
    state: ReadinessState,
    signal: str,
    outcome: SignalOutcome,
    reason: str,
    emitter: DiagnosticEmitter,
) -> None:
    state.mark(signal, outcome, reason)
    logger.warning("%s readiness degraded: %s", signal, reason)
    emitter.event("render_degraded", {"signal": signal, "reason": reason})


async def wait_for_fonts(
    surface: RenderSurface,
    state: ReadinessState,
    ceiling: float,
    emitter: DiagnosticEmitter,
) -> None:
    await _bounded(state, FONTS, surface.evaluate(FONTS_SCRIPT), ceiling, emitter)


async def _images_settled(surface: RenderSurface, ceiling: float) -> None:
    """Wait for the in-page image race; an image still pending at the ceiling is a timeout."""
    result = await surface.evaluate(IMAGES_SCRIPT, int(ceiling * 1000))
    settled = int(result.get("settled", 0))
    total = int(result.get("total", 0))
    if settled < total:
        raise TimeoutError(f"{total - settled} of {total} images unsettled after {ceiling:g}s")


async def wait_for_images(
    surface: RenderSurface,
    snapshot: RenderSnapshot,
    state: ReadinessState,
    ceiling: float,
    emitter: DiagnosticEmitter,
) -> None:
    if not snapshot.image_urls:
        state.mark(IMAGES, SignalOutcome.SKIPPED)
        return
    await _bounded(state, IMAGES, _images_settled(surface, ceiling), ceiling + _HOST_GRACE, emitter)


async def wait_for_typeset(
    surface: RenderSurface,
    snapshot: RenderSnapshot,
    state: ReadinessState,
    ceiling: float,
    emitter: DiagnosticEmitter,
) -> None:
    if not snapshot.needs_typeset:
        state.mark(TYPESET, SignalOutcome.SKIPPED)
        return
    polled = surface.wait_for_function(TYPESET_PREDICATE, timeout=ceiling)
    await _bounded(state, TYPESET, polled, ceiling + _HOST_GRACE, emitter)


async def run_readiness_checks(
    surface: RenderSurface,
    snapshot: RenderSnapshot,
    *,
    timeouts: ReadinessTimeouts | None = None,
    state: ReadinessState | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> ReadinessState:
    """Race every readiness signal against its own ceiling and report the result.

    Cancelling the caller does not cut the checks short: the in-flight waits
    run out their ceilings before the cancellation is re-raised, so the
    surface is never torn down mid-evaluation.
    """
    timeouts = timeouts or ReadinessTimeouts()
    state = state or ReadinessState()
    emitter = emitter or NullEmitter()

    checks = asyncio.gather(
        wait_for_fonts(surface, state, timeouts.fonts, emitter),
        wait_for_images(surface, snapshot, state, timeouts.images, emitter),
        wait_for_typeset(surface, snapshot, state, timeouts.typeset, emitter),
    )
    try:
        await asyncio.shield(checks)
    except asyncio.CancelledError:
        await checks
        raise
    finally:
        state.finished = time.monotonic()
    return state


__all__ = [
    "FONTS",
    "FONTS_SCRIPT",
    "IMAGES",
    "IMAGES_SCRIPT",
    "NAVIGATION",
    "TYPESET",
    "TYPESET_PREDICATE",
    "ReadinessState",
    "ReadinessTimeouts",
    "SignalOutcome",
    "run_readiness_checks",
    "wait_for_fonts",
    "wait_for_images",
    "wait_for_typeset",
]
