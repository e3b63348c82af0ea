"""Document lookups against the content service."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from luogu_saver.core.client import ContentServiceClient, Envelope
from luogu_saver.core.diagnostics import DiagnosticEmitter, NullEmitter
from luogu_saver.core.exceptions import NotFound
from luogu_saver.core.models import DocumentKind, DocumentRecord, RevisionRecord


def quote_id(identifier: str) -> str:
    """URL-encode an opaque identifier as a single path segment."""
    return quote(str(identifier), safe="")


class DocumentFetcher:
    """Retrieve articles and pastes, collapsing logical failures into NotFound.

    Every call runs the blocking HTTP request in a worker thread so other
    in-flight renders keep progressing while it waits.
    """

    def __init__(
        self,
        client: ContentServiceClient,
        *,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.client = client
        self.emitter = emitter or NullEmitter()

    async def fetch(self, kind: DocumentKind | str, identifier: str) -> DocumentRecord:
        """Return the document or raise :class:`NotFound` / :class:`Unavailable`."""
        resolved = DocumentKind(kind)
        self.emitter.event("document_fetch", {"kind": resolved.value, "id": identifier})
        envelope = await self._get(f"/{resolved.value}/query/{quote_id(identifier)}")
        data = self._require(envelope, f"{resolved.value} '{identifier}'")
        if not isinstance(data, Mapping):
            raise NotFound(f"{resolved.value} '{identifier}' returned no record.")
        return DocumentRecord.from_payload(resolved, data)

    async def article(self, identifier: str) -> DocumentRecord:
        return await self.fetch(DocumentKind.ARTICLE, identifier)

    async def paste(self, identifier: str) -> DocumentRecord:
        return await self.fetch(DocumentKind.PASTE, identifier)

    async def recent(
        self,
        *,
        count: int | None = None,
        updated_after: str | None = None,
        truncated_count: int | None = None,
    ) -> list[DocumentRecord]:
        """Return recently updated articles."""
        params: dict[str, Any] = {}
        if count is not None:
            params["count"] = str(count)
        if updated_after:
            params["updated_after"] = updated_after
        if truncated_count is not None:
            params["truncated_count"] = str(truncated_count)
        envelope = await self._get("/article/recent", params=params)
        data = self._require(envelope, "recent articles")
        return [DocumentRecord.from_payload(DocumentKind.ARTICLE, item) for item in data or ()]

    async def count(self) -> int:
        """Return how many articles the service stores."""
        envelope = await self._get("/article/count")
        data = self._require(envelope, "article count")
        if isinstance(data, Mapping):
            return int(data.get("count", 0))
        return int(data or 0)

    async def relevant(self, identifier: str) -> list[DocumentRecord]:
        """Return articles the service considers related to ``identifier``."""
        envelope = await self._get(f"/article/relevant/{quote_id(identifier)}")
        data = self._require(envelope, f"articles relevant to '{identifier}'")
        return [DocumentRecord.from_payload(DocumentKind.ARTICLE, item) for item in data or ()]

    async def history(self, identifier: str) -> list[RevisionRecord]:
        """Return the stored revisions of an article, oldest first as served."""
        envelope = await self._get(f"/article/history/{quote_id(identifier)}")
        data = self._require(envelope, f"history of article '{identifier}'")
        return [RevisionRecord.from_payload(item) for item in data or ()]

    async def _get(self, path: str, *, params: Mapping[str, Any] | None = None) -> Envelope:
        return await asyncio.to_thread(self.client.get, path, params=params)

    @staticmethod
    def _require(envelope: Envelope, subject: str) -> Any:
        if not envelope.ok:
            detail = f": {envelope.message}" if envelope.message else ""
            raise NotFound(f"No {subject} (code {envelope.code}){detail}")
        return envelope.data


__all__ = ["DocumentFetcher", "quote_id"]
