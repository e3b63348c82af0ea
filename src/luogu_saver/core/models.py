"""Records exchanged between the content service, the renderer, and callers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


__all__ = [
    "CaptureArtifact",
    "DocumentKind",
    "DocumentRecord",
    "MathMode",
    "RenderSnapshot",
    "RevisionRecord",
    "TaskKind",
    "TaskRecord",
    "TaskStatus",
]


class DocumentKind(str, Enum):
    """Document families stored by the content service."""

    ARTICLE = "article"
    PASTE = "paste"


class TaskKind(str, Enum):
    """Work kinds the content service accepts on task creation."""

    SAVE = "save"
    AI_PROCESS = "ai_process"


class TaskStatus(IntEnum):
    """Linear lifecycle of a background task."""

    QUEUED = 0
    RUNNING = 1
    SUCCEEDED = 2
    FAILED = 3

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED)


_STATUS_LABELS = {
    TaskStatus.QUEUED: "Queued",
    TaskStatus.RUNNING: "Running",
    TaskStatus.SUCCEEDED: "Succeeded",
    TaskStatus.FAILED: "Failed",
}


class MathMode(str, Enum):
    """Where math regions get typeset."""

    BUILD = "build"
    CLIENT = "client"


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True, slots=True)
class DocumentRecord:
    """Article or paste as returned by the content service."""

    id: str
    kind: DocumentKind
    title: str
    content: str
    author_id: int | None
    rendered_content: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    deleted: bool = False
    delete_reason: str | None = None
    author_name: str | None = None
    category: int | None = None
    upvote: int | None = None
    favor_count: int | None = None
    view_count: int | None = None
    priority: int | None = None
    solution_for_pid: str | None = None
    content_hash: str | None = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, kind: DocumentKind | str, data: Mapping[str, Any]) -> DocumentRecord:
        """Normalise an envelope payload into a record."""
        resolved_kind = DocumentKind(kind)
        author = data.get("author")
        author_name: str | None = None
        author_id = _optional_int(data.get("authorId"))
        if isinstance(author, Mapping):
            author_name = author.get("name")
            if author_id is None:
                author_id = _optional_int(author.get("id"))
        return cls(
            id=str(data.get("id", "")),
            kind=resolved_kind,
            title=str(data.get("title") or ""),
            content=data.get("content") or "",
            author_id=author_id,
            rendered_content=data.get("renderedContent"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            deleted=bool(data.get("deleted") or False),
            delete_reason=data.get("deleteReason") or None,
            author_name=author_name,
            category=_optional_int(data.get("category")),
            upvote=_optional_int(data.get("upvote")),
            favor_count=_optional_int(data.get("favorCount")),
            view_count=_optional_int(data.get("viewCount")),
            priority=_optional_int(data.get("priority")),
            solution_for_pid=data.get("solutionForPid"),
            content_hash=data.get("contentHash"),
            tags=tuple(str(tag) for tag in data.get("tags") or ()),
        )

    @property
    def body(self) -> str:
        """Markup to render, falling back to the service-rendered copy."""
        return self.content or self.rendered_content or ""

    @property
    def display_title(self) -> str:
        if self.kind is DocumentKind.PASTE:
            return f"Paste: {self.id}"
        return self.title

    @property
    def byline(self) -> str:
        if self.author_name:
            return f"Author: {self.author_name} (UID: {self.author_id})"
        return f"Author UID: {self.author_id}"


@dataclass(frozen=True, slots=True)
class RevisionRecord:
    """Single stored revision of an article."""

    id: int
    article_id: str
    version: int
    title: str
    content: str
    created_at: str | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> RevisionRecord:
        return cls(
            id=int(data.get("id", 0)),
            article_id=str(data.get("articleId", "")),
            version=int(data.get("version", 0)),
            title=str(data.get("title") or ""),
            content=data.get("content") or "",
            created_at=data.get("createdAt"),
        )


@dataclass(frozen=True, slots=True)
class TaskRecord:
    """Background task as tracked by the content service."""

    id: str
    status: TaskStatus
    created_at: str | None
    type: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    target: str | None = None
    info: str | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> TaskRecord:
        return cls(
            id=str(data.get("id", "")),
            status=TaskStatus(int(data.get("status", 0))),
            created_at=data.get("createdAt"),
            type=str(data.get("type") or ""),
            payload=dict(data.get("payload") or {}),
            target=data.get("target"),
            info=data.get("info"),
        )


@dataclass(frozen=True, slots=True)
class RenderSnapshot:
    """Self-contained HTML page plus the images it references."""

    html: str
    image_urls: tuple[str, ...] = ()
    math_mode: MathMode = MathMode.BUILD

    @property
    def needs_typeset(self) -> bool:
        return self.math_mode is MathMode.CLIENT


@dataclass(frozen=True, slots=True)
class CaptureArtifact:
    """Raster capture of a rendered document."""

    data: bytes
    content_type: str = "image/png"
    degraded: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.data)
