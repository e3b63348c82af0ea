"""HTTP client for the content-archival service."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from threading import Lock
from typing import TYPE_CHECKING, Any

import requests

from .config import DEFAULT_USER_AGENT, SaverConfig
from .exceptions import Unavailable


if TYPE_CHECKING:  # pragma: no cover - typing only
    from requests import Session as RequestsSession
else:
    RequestsSession = Any  # type: ignore[misc]


logger = logging.getLogger(__name__)

SUCCESS_CODE = 200


def build_url(endpoint: str, path: str) -> str:
    """Join the service endpoint and a request path with exactly one slash.

    One trailing slash is trimmed from the endpoint; an empty endpoint leaves
    the path untouched.
    """
    base = endpoint[:-1] if endpoint.endswith("/") else endpoint
    if not base:
        return path
    if path.startswith("/"):
        return f"{base}{path}"
    return f"{base}/{path}"


@dataclass(frozen=True, slots=True)
class Envelope:
    """Wrapper used by the service around every response payload."""

    code: int
    message: str
    data: Any

    @property
    def ok(self) -> bool:
        return self.code == SUCCESS_CODE

    @classmethod
    def from_json(cls, payload: Any) -> Envelope:
        if not isinstance(payload, Mapping) or "code" not in payload:
            raise ValueError("response is not a {code, message, data} envelope")
        try:
            code = int(payload["code"])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid envelope code {payload['code']!r}") from exc
        return cls(code=code, message=str(payload.get("message") or ""), data=payload.get("data"))


class ContentServiceClient:
    """Issue requests against the content service and unwrap its envelopes.

    Transport problems surface as :class:`Unavailable`; logical failures come
    back as an :class:`Envelope` whose ``ok`` flag is false so callers decide
    how to report them.
    """

    def __init__(
        self,
        endpoint: str = "",
        *,
        user_agent: str | None = None,
        timeout: float = 15.0,
        session: RequestsSession | None = None,
    ) -> None:
        self.endpoint = endpoint or ""
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self._timeout = timeout
        self._session: RequestsSession | None = session
        self._session_lock = Lock()

    @classmethod
    def from_config(
        cls, config: SaverConfig, *, session: RequestsSession | None = None
    ) -> ContentServiceClient:
        return cls(
            config.endpoint,
            user_agent=config.user_agent,
            timeout=config.request_timeout,
            session=session,
        )

    def url_for(self, path: str) -> str:
        return build_url(self.endpoint, path)

    def headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        return {"User-Agent": self.user_agent, **dict(extra or {})}

    def get(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Envelope:
        return self._request("GET", path, params=params, headers=headers)

    def post(
        self,
        path: str,
        body: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Envelope:
        return self._request("POST", path, json=dict(body), headers=headers)

    def close(self) -> None:
        with self._session_lock:
            if self._session is not None:
                self._session.close()
                self._session = None

    # ------------------------------------------------------------------ requests

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Envelope:
        url = self.url_for(path)
        client = self._ensure_session()
        logger.debug("%s %s", method, url)
        try:
            response = client.request(
                method,
                url,
                params=dict(params) if params else None,
                json=json,
                headers=self.headers(headers),
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise Unavailable(f"{method} {url} failed: {exc}") from exc

        try:
            envelope = Envelope.from_json(response.json())
        except ValueError as exc:
            if response.status_code >= 500 or response.status_code < 400:
                raise Unavailable(
                    f"{method} {url} returned an unreadable response "
                    f"(HTTP {response.status_code})"
                ) from exc
            # 4xx without an envelope still counts as a logical answer.
            return Envelope(code=response.status_code, message=response.reason or "", data=None)
        if not envelope.ok:
            logger.debug("%s %s answered code %s: %s", method, url, envelope.code, envelope.message)
        return envelope

    def _ensure_session(self) -> RequestsSession:
        if self._session is not None:
            return self._session
        with self._session_lock:
            if self._session is None:
                self._session = requests.Session()
            return self._session


__all__ = ["ContentServiceClient", "Envelope", "SUCCESS_CODE", "build_url"]
