"""Submit background tasks to the content service and read their state."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from luogu_saver.core.client import ContentServiceClient
from luogu_saver.core.diagnostics import DiagnosticEmitter, NullEmitter
from luogu_saver.core.exceptions import NotFound, SubmitFailure
from luogu_saver.core.models import TaskKind, TaskRecord

from .fetcher import quote_id


class TaskPoller:
    """Read-through access to the service task table; no retries, no caching."""

    def __init__(
        self,
        client: ContentServiceClient,
        *,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.client = client
        self.emitter = emitter or NullEmitter()

    async def submit(self, kind: TaskKind | str, payload: Mapping[str, Any]) -> str:
        """Create a task and return its identifier.

        The payload shape is validated by the service; only the kind is
        checked locally against the closed set it accepts.
        """
        try:
            resolved = TaskKind(kind)
        except ValueError as exc:
            allowed = ", ".join(item.value for item in TaskKind)
            raise SubmitFailure(f"Unknown task type '{kind}' (expected one of: {allowed}).") from exc

        body = {"type": resolved.value, "payload": dict(payload)}
        envelope = await asyncio.to_thread(self.client.post, "/task/create", body)
        if not envelope.ok:
            detail = f": {envelope.message}" if envelope.message else ""
            raise SubmitFailure(f"Task creation rejected (code {envelope.code}){detail}")
        data = envelope.data
        task_id = data.get("taskId") if isinstance(data, Mapping) else None
        if not task_id:
            raise SubmitFailure("Task creation succeeded without returning a task id.")
        self.emitter.event("task_submit", {"type": resolved.value, "task_id": str(task_id)})
        return str(task_id)

    async def submit_save(
        self,
        target: str,
        target_id: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> str:
        payload: dict[str, Any] = {"target": target, "targetId": target_id}
        if metadata:
            payload["metadata"] = dict(metadata)
        return await self.submit(TaskKind.SAVE, payload)

    async def submit_ai(self, target: str, metadata: Mapping[str, Any]) -> str:
        return await self.submit(TaskKind.AI_PROCESS, {"target": target, "metadata": dict(metadata)})

    async def poll(self, task_id: str) -> TaskRecord:
        """Return the current record of ``task_id`` or raise :class:`NotFound`."""
        envelope = await asyncio.to_thread(self.client.get, f"/task/query/{quote_id(task_id)}")
        if not envelope.ok or not isinstance(envelope.data, Mapping):
            raise NotFound(f"Task '{task_id}' does not exist (code {envelope.code}).")
        try:
            return TaskRecord.from_payload(envelope.data)
        except (TypeError, ValueError) as exc:
            raise NotFound(f"Task '{task_id}' returned an unreadable record: {exc}") from exc


__all__ = ["TaskPoller"]
