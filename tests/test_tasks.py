from __future__ import annotations

import asyncio

import pytest

from fakes import FakeSession
from luogu_saver.api.tasks import TaskPoller
from luogu_saver.core.client import ContentServiceClient
from luogu_saver.core.exceptions import NotFound, SubmitFailure
from luogu_saver.core.models import TaskKind, TaskStatus


def _poller(session: FakeSession) -> TaskPoller:
    return TaskPoller(ContentServiceClient("http://svc", session=session))


def test_submit_returns_task_id() -> None:
    session = FakeSession()
    session.envelope("POST", "http://svc/task/create", {"taskId": "t-1"})

    task_id = asyncio.run(_poller(session).submit_save("article", "abc123"))

    assert task_id == "t-1"
    sent = session.requests[0]
    assert sent.json == {"type": "save", "payload": {"target": "article", "targetId": "abc123"}}


def test_submit_ai_process_carries_metadata() -> None:
    session = FakeSession()
    session.envelope("POST", "http://svc/task/create", {"taskId": 9})

    task_id = asyncio.run(_poller(session).submit_ai("article", {"articleId": "abc"}))

    assert task_id == "9"
    assert session.requests[0].json["type"] == TaskKind.AI_PROCESS.value


def test_unknown_task_kind_is_rejected_locally() -> None:
    session = FakeSession()

    with pytest.raises(SubmitFailure, match="Unknown task type"):
        asyncio.run(_poller(session).submit("compress", {}))

    assert session.requests == []


def test_rejected_submission_raises() -> None:
    session = FakeSession()
    session.envelope("POST", "http://svc/task/create", None, code=400, message="bad payload")

    with pytest.raises(SubmitFailure, match="bad payload"):
        asyncio.run(_poller(session).submit("save", {"target": "article"}))


def test_submission_without_identifier_raises() -> None:
    session = FakeSession()
    session.envelope("POST", "http://svc/task/create", {})

    with pytest.raises(SubmitFailure):
        asyncio.run(_poller(session).submit("save", {"target": "article", "targetId": "x"}))


@pytest.mark.parametrize(
    ("status", "expected"),
    [(0, TaskStatus.QUEUED), (1, TaskStatus.RUNNING), (2, TaskStatus.SUCCEEDED), (3, TaskStatus.FAILED)],
)
def test_poll_reports_status(status: int, expected: TaskStatus) -> None:
    session = FakeSession()
    session.envelope(
        "GET",
        "http://svc/task/query/t-1",
        {"id": "t-1", "status": status, "type": "save", "createdAt": "2024-01-01"},
    )

    record = asyncio.run(_poller(session).poll("t-1"))

    assert record.status is expected
    assert record.status.is_terminal is (status >= 2)


def test_poll_unknown_task_is_not_found() -> None:
    session = FakeSession()

    with pytest.raises(NotFound):
        asyncio.run(_poller(session).poll("nope"))


def test_poll_unreadable_status_is_not_found() -> None:
    session = FakeSession()
    session.envelope("GET", "http://svc/task/query/t-2", {"id": "t-2", "status": 17})

    with pytest.raises(NotFound, match="unreadable"):
        asyncio.run(_poller(session).poll("t-2"))


def test_poll_missing_status_is_not_found() -> None:
    session = FakeSession()
    session.envelope("GET", "http://svc/task/query/t-3", {"id": "t-3", "status": None})

    with pytest.raises(NotFound, match="unreadable"):
        asyncio.run(_poller(session).poll("t-3"))


def test_status_labels() -> None:
    assert [status.label for status in TaskStatus] == ["Queued", "Running", "Succeeded", "Failed"]
