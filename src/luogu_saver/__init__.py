"""Fetch archived articles and pastes and capture them as images."""

from __future__ import annotations

from luogu_saver.api import DocumentFetcher, SaverService, TaskPoller
from luogu_saver.core import (
    CaptureArtifact,
    CaptureFailure,
    ContentServiceClient,
    DocumentKind,
    DocumentRecord,
    MathMode,
    NotFound,
    PoolExhausted,
    RenderDegraded,
    SaverConfig,
    SaverError,
    SubmitFailure,
    TaskKind,
    TaskRecord,
    TaskStatus,
    Unavailable,
    load_config,
)
from luogu_saver.version import get_version


__version__ = get_version()

__all__ = [
    "CaptureArtifact",
    "CaptureFailure",
    "ContentServiceClient",
    "DocumentFetcher",
    "DocumentKind",
    "DocumentRecord",
    "MathMode",
    "NotFound",
    "PoolExhausted",
    "RenderDegraded",
    "SaverConfig",
    "SaverError",
    "SaverService",
    "SubmitFailure",
    "TaskKind",
    "TaskPoller",
    "TaskRecord",
    "TaskStatus",
    "Unavailable",
    "__version__",
    "get_version",
    "load_config",
]
