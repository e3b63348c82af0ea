from __future__ import annotations

import asyncio

import pytest

from fakes import PNG_BYTES, FakeBackend, SurfaceScript
from luogu_saver.core.capture import capture
from luogu_saver.core.exceptions import CaptureFailure
from luogu_saver.core.models import MathMode, RenderSnapshot
from luogu_saver.core.readiness import NAVIGATION, ReadinessTimeouts, SignalOutcome
from luogu_saver.core.session import RenderSession
from luogu_saver.core.surfaces import SurfacePool


FAST = ReadinessTimeouts(navigation=0.3, fonts=0.2, images=0.2, typeset=0.2)
SNAPSHOT = RenderSnapshot(html="<h1>T</h1><p>Hello</p>", math_mode=MathMode.BUILD)


def _session(script: SurfaceScript) -> tuple[RenderSession, SurfacePool, FakeBackend]:
    backend = FakeBackend(script)
    pool = SurfacePool(backend, size=2)
    return RenderSession(pool, timeouts=FAST), pool, backend


def test_prepare_then_capture_returns_png() -> None:
    session, pool, backend = _session(SurfaceScript())

    async def scenario():
        ready = await session.prepare(SNAPSHOT, 1200)
        assert pool.available == 1
        return await capture(ready)

    artifact = asyncio.run(scenario())

    assert artifact.data == PNG_BYTES
    assert artifact.content_type == "image/png"
    assert artifact.degraded == ()
    assert pool.available == 2
    surface = backend.surfaces[0]
    assert surface.viewport == (1200, 800, 2.0)
    assert surface.html == SNAPSHOT.html
    assert surface.closed


def test_default_viewport_width() -> None:
    session, _, backend = _session(SurfaceScript())

    async def scenario():
        ready = await session.prepare(SNAPSHOT, None)
        await ready.release()

    asyncio.run(scenario())
    assert backend.surfaces[0].viewport == (960, 800, 2.0)


def test_invalid_width_is_rejected_before_acquiring() -> None:
    session, pool, backend = _session(SurfaceScript())

    with pytest.raises(ValueError):
        asyncio.run(session.prepare(SNAPSHOT, -5))
    assert backend.surfaces == []
    assert pool.available == 2


def test_navigation_timeout_is_degraded() -> None:
    session, pool, _ = _session(SurfaceScript(load="timeout"))

    async def scenario():
        ready = await session.prepare(SNAPSHOT)
        assert ready.state.outcome(NAVIGATION) is SignalOutcome.TIMED_OUT
        return await capture(ready)

    artifact = asyncio.run(scenario())

    assert artifact.degraded == (NAVIGATION,)
    assert pool.available == 2


def test_load_fault_raises_capture_failure_and_releases() -> None:
    session, pool, backend = _session(SurfaceScript(load="raise"))

    with pytest.raises(CaptureFailure) as excinfo:
        asyncio.run(session.prepare(SNAPSHOT))

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert pool.available == 2
    assert backend.surfaces[0].closed


def test_readiness_timeout_still_releases_on_capture() -> None:
    session, pool, _ = _session(SurfaceScript(fonts="hang"))

    async def scenario():
        ready = await session.prepare(SNAPSHOT)
        return await capture(ready)

    artifact = asyncio.run(scenario())

    assert artifact.degraded == ("fonts",)
    assert pool.available == 2


def test_stalled_image_is_reported_as_degraded() -> None:
    session, pool, _ = _session(SurfaceScript(images="stall"))
    snapshot = RenderSnapshot(
        html="<img src=\"https://cdn.invalid/never.png\">",
        image_urls=("https://cdn.invalid/never.png",),
    )

    async def scenario():
        ready = await session.prepare(snapshot)
        return await capture(ready)

    artifact = asyncio.run(scenario())

    assert "images" in artifact.degraded
    assert artifact.data == PNG_BYTES
    assert pool.available == 2


@pytest.mark.parametrize("behaviour", ["detached", "empty"])
def test_capture_fault_raises_and_releases(behaviour: str) -> None:
    session, pool, backend = _session(SurfaceScript(screenshot=behaviour))

    async def scenario():
        ready = await session.prepare(SNAPSHOT)
        return await capture(ready)

    with pytest.raises(CaptureFailure):
        asyncio.run(scenario())

    assert pool.available == 2
    assert backend.surfaces[0].closed


def test_cancelled_prepare_releases_surface() -> None:
    session, pool, _ = _session(SurfaceScript(fonts="hang"))

    async def scenario() -> None:
        task = asyncio.create_task(session.prepare(SNAPSHOT))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    assert pool.available == 2


def test_capture_emits_event() -> None:
    session, _, _ = _session(SurfaceScript())
    events: list[tuple[str, dict]] = []

    class Recorder:
        debug_enabled = False

        def warning(self, message, exc=None):
            return

        def error(self, message, exc=None):
            return

        def event(self, name, payload):
            events.append((name, dict(payload)))

    async def scenario():
        ready = await session.prepare(SNAPSHOT)
        return await capture(ready, emitter=Recorder())

    asyncio.run(scenario())

    name, payload = events[0]
    assert name == "capture_done"
    assert payload["bytes"] == len(PNG_BYTES)
