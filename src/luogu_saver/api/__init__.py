"""High-level API for fetching, rendering, and task tracking."""

from __future__ import annotations

from .fetcher import DocumentFetcher
from .pipeline import SaverService
from .tasks import TaskPoller


__all__ = ["DocumentFetcher", "SaverService", "TaskPoller"]
