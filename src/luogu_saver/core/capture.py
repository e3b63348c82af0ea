"""Full-page raster capture of a prepared surface."""

from __future__ import annotations

import logging
import time

from .diagnostics import DiagnosticEmitter, NullEmitter
from .exceptions import CaptureFailure
from .models import CaptureArtifact
from .session import ReadySurface


logger = logging.getLogger(__name__)

PNG_CONTENT_TYPE = "image/png"


async def capture(
    ready: ReadySurface,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> CaptureArtifact:
    """Capture the whole document on ``ready`` and release its surface.

    Any surface-level fault is reported as :class:`CaptureFailure` with the
    original error as its cause. The surface goes back to the pool whatever
    the outcome.
    """
    emitter = emitter or NullEmitter()
    started = time.monotonic()
    try:
        data = await ready.surface.screenshot(full_page=True)
        if not data:
            raise CaptureFailure("Render surface returned an empty capture.")
    except CaptureFailure:
        raise
    except Exception as exc:
        logger.error("Capture failed: %s", exc)
        raise CaptureFailure(f"Render surface failed during capture: {exc}") from exc
    finally:
        await ready.release()

    artifact = CaptureArtifact(
        data=bytes(data),
        content_type=PNG_CONTENT_TYPE,
        degraded=ready.degraded,
    )
    emitter.event(
        "capture_done",
        {
            "bytes": len(artifact.data),
            "elapsed": time.monotonic() - started,
            "degraded": list(artifact.degraded),
        },
    )
    return artifact


__all__ = ["PNG_CONTENT_TYPE", "capture"]
