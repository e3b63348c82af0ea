"""Core building blocks of the fetch and render pipeline."""

from __future__ import annotations

from .capture import capture
from .client import ContentServiceClient, Envelope, build_url
from .config import SaverConfig, load_config
from .diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from .exceptions import (
    CaptureFailure,
    NotFound,
    PoolExhausted,
    RenderDegraded,
    SaverError,
    SubmitFailure,
    Unavailable,
)
from .models import (
    CaptureArtifact,
    DocumentKind,
    DocumentRecord,
    MathMode,
    RenderSnapshot,
    RevisionRecord,
    TaskKind,
    TaskRecord,
    TaskStatus,
)
from .readiness import ReadinessState, ReadinessTimeouts, SignalOutcome, run_readiness_checks
from .session import ReadySurface, RenderSession
from .snapshot import render_snapshot
from .surfaces import RenderSurface, SurfaceBackend, SurfaceLease, SurfacePool


__all__ = [
    "CaptureArtifact",
    "CaptureFailure",
    "ContentServiceClient",
    "DiagnosticEmitter",
    "DocumentKind",
    "DocumentRecord",
    "Envelope",
    "LoggingEmitter",
    "MathMode",
    "NotFound",
    "NullEmitter",
    "PoolExhausted",
    "ReadinessState",
    "ReadinessTimeouts",
    "ReadySurface",
    "RenderDegraded",
    "RenderSession",
    "RenderSnapshot",
    "RenderSurface",
    "RevisionRecord",
    "SaverConfig",
    "SaverError",
    "SignalOutcome",
    "SubmitFailure",
    "SurfaceBackend",
    "SurfaceLease",
    "SurfacePool",
    "TaskKind",
    "TaskRecord",
    "TaskStatus",
    "Unavailable",
    "build_url",
    "capture",
    "load_config",
    "render_snapshot",
    "run_readiness_checks",
]
