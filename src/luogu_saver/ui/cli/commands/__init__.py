"""CLI command implementations exposed via `luogu_saver.ui.cli`."""

from __future__ import annotations

from .documents import article, article_info, count, history, paste, recent, relevant
from .tasks import tasks_app


__all__ = [
    "article",
    "article_info",
    "count",
    "history",
    "paste",
    "recent",
    "relevant",
    "tasks_app",
]
