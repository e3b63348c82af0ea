from __future__ import annotations

import pytest
import requests

from fakes import FakeSession
from luogu_saver.core.client import ContentServiceClient, Envelope, build_url
from luogu_saver.core.exceptions import Unavailable


@pytest.mark.parametrize(
    ("endpoint", "path", "expected"),
    [
        ("http://x/", "/a/b", "http://x/a/b"),
        ("", "/a/b", "/a/b"),
        ("http://x", "a/b", "http://x/a/b"),
        ("http://x", "/a/b", "http://x/a/b"),
        ("http://x/api/", "a/b", "http://x/api/a/b"),
    ],
)
def test_build_url_joins_with_single_slash(endpoint: str, path: str, expected: str) -> None:
    assert build_url(endpoint, path) == expected


def test_build_url_trims_only_one_trailing_slash() -> None:
    assert build_url("http://x//", "/a") == "http://x//a"


def test_envelope_rejects_non_envelope_payloads() -> None:
    with pytest.raises(ValueError):
        Envelope.from_json(["not", "an", "envelope"])
    with pytest.raises(ValueError):
        Envelope.from_json({"code": "abc"})


def test_requests_carry_user_agent_header() -> None:
    session = FakeSession()
    session.envelope("GET", "http://svc/article/count", {"count": 3})
    client = ContentServiceClient("http://svc/", user_agent="probe/1.0", session=session)

    envelope = client.get("/article/count")

    assert envelope.ok
    assert envelope.data == {"count": 3}
    assert session.requests[0].headers["User-Agent"] == "probe/1.0"


def test_default_user_agent_is_applied() -> None:
    session = FakeSession()
    client = ContentServiceClient(session=session)
    client.get("/article/count")
    assert session.requests[0].url == "/article/count"
    assert session.requests[0].headers["User-Agent"] == "Uptime-Kuma"


def test_transport_errors_become_unavailable() -> None:
    session = FakeSession()
    session.fail("GET", "http://svc/article/count", requests.Timeout("read timed out"))
    client = ContentServiceClient("http://svc", session=session)

    with pytest.raises(Unavailable) as excinfo:
        client.get("/article/count")

    assert isinstance(excinfo.value.__cause__, requests.Timeout)


def test_server_error_without_envelope_is_unavailable() -> None:
    session = FakeSession()
    session.add("GET", "http://svc/article/count", ValueError("not json"), status_code=502)
    client = ContentServiceClient("http://svc", session=session)

    with pytest.raises(Unavailable):
        client.get("/article/count")


def test_client_error_without_envelope_is_a_logical_answer() -> None:
    session = FakeSession()
    session.add("GET", "http://svc/article/query/x", ValueError("not json"), status_code=404)
    client = ContentServiceClient("http://svc", session=session)

    envelope = client.get("/article/query/x")

    assert not envelope.ok
    assert envelope.code == 404


def test_post_sends_json_body() -> None:
    session = FakeSession()
    session.envelope("POST", "http://svc/task/create", {"taskId": "t-1"})
    client = ContentServiceClient("http://svc", session=session)

    envelope = client.post("/task/create", {"type": "save", "payload": {}})

    assert envelope.data == {"taskId": "t-1"}
    assert session.requests[0].json == {"type": "save", "payload": {}}


def test_close_releases_session() -> None:
    session = FakeSession()
    client = ContentServiceClient(session=session)
    client.close()
    assert session.closed
