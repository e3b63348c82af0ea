"""Diagnostic abstractions shared across the fetch and render pipeline."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings, errors, and structured events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module."""

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.warning(message, exc_info=exc)
        else:
            self._logger.warning(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.error(message, exc_info=exc)
        else:
            self._logger.error(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message:
            self._logger.info(message)
            return
        self._logger.debug("diagnostic event %s: %s", name, dict(payload))


def ensure_emitter(emitter: DiagnosticEmitter | None) -> DiagnosticEmitter:
    """Return the given emitter or a logging-backed default."""
    return emitter if emitter is not None else LoggingEmitter()


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected diagnostic events."""
    data = dict(payload)

    if name == "document_fetch":
        kind = data.get("kind") or "document"
        identifier = data.get("id") or "<unknown>"
        return f"Fetching {kind}: {identifier}"

    if name == "render_degraded":
        signal = data.get("signal") or "<unknown>"
        reason = data.get("reason") or "timeout"
        return f"Capturing without {signal} readiness ({reason})"

    if name == "capture_done":
        size = data.get("bytes")
        elapsed = data.get("elapsed")
        details: list[str] = []
        if size is not None:
            details.append(f"{size} bytes")
        if elapsed is not None:
            details.append(f"{float(elapsed):.2f}s")
        suffix = f" ({', '.join(details)})" if details else ""
        return f"Captured page{suffix}"

    if name == "task_submit":
        task_type = data.get("type") or "<unknown>"
        task_id = data.get("task_id") or "<pending>"
        return f"Submitted {task_type} task {task_id}"

    return None


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "ensure_emitter",
    "format_event_message",
]
