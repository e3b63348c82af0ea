"""Custom exception hierarchy for the fetch and render pipeline."""

from __future__ import annotations


class SaverError(RuntimeError):
    """Base exception for content-service and rendering failures."""


class NotFound(SaverError):
    """Raised when the content service reports a document or task as absent."""


class Unavailable(SaverError):
    """Raised when the content service cannot be reached or answers garbage."""


class CaptureFailure(SaverError):
    """Raised when a render surface faults while loading or capturing."""


class PoolExhausted(SaverError):
    """Raised when no render surface frees up within the acquisition wait."""


class SubmitFailure(SaverError):
    """Raised when the content service rejects a task creation request."""


class RenderDegraded(UserWarning):
    """Signals that a readiness check timed out; the capture still proceeds."""

    def __init__(self, signal: str, reason: str) -> None:
        super().__init__(f"{signal} readiness degraded: {reason}")
        self.signal = signal
        self.reason = reason


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "CaptureFailure",
    "NotFound",
    "PoolExhausted",
    "RenderDegraded",
    "SaverError",
    "SubmitFailure",
    "Unavailable",
    "exception_hint",
    "exception_messages",
]
