from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from fakes import PNG_BYTES, FakeBackend, FakeSession, SurfaceScript
from luogu_saver.api import SaverService
from luogu_saver.core.client import ContentServiceClient
from luogu_saver.core.config import SaverConfig
from luogu_saver.ui.cli import app
from luogu_saver.ui.cli import utils
from luogu_saver.ui.cli.state import set_cli_state


CONFIG = SaverConfig(endpoint="http://svc", font_timeout=0.3, image_timeout=0.3, typeset_timeout=0.3)

ARTICLE = {"id": "a1", "title": "T", "authorId": 42, "content": "Hello", "updatedAt": "2024-05-01"}


def _session() -> FakeSession:
    session = FakeSession()
    session.envelope("GET", "http://svc/article/query/a1", ARTICLE)
    session.envelope("GET", "http://svc/article/query/..%2Fa1", ARTICLE)
    session.envelope("GET", "http://svc/paste/query/p1", {"id": "p1", "content": "hi", "authorId": 3})
    session.envelope("GET", "http://svc/article/count", {"count": 12})
    session.envelope("GET", "http://svc/article/recent", [ARTICLE])
    session.envelope("GET", "http://svc/article/relevant/a1", [ARTICLE])
    session.envelope(
        "GET",
        "http://svc/article/history/a1",
        [{"id": 1, "articleId": "a1", "version": 3, "title": "T", "content": "", "createdAt": "2024-04-01"}],
    )
    session.envelope("POST", "http://svc/task/create", {"taskId": "t1"})
    session.envelope("GET", "http://svc/task/query/t1", {"id": "t1", "status": 1, "type": "save"})
    return session


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> FakeBackend:
    fake = FakeBackend()

    def factory() -> SaverService:
        client = ContentServiceClient.from_config(CONFIG, session=_session())
        return SaverService(CONFIG, client=client, backend=fake)

    monkeypatch.setattr(utils, "build_service", factory)
    return fake


def test_article_info(backend: FakeBackend) -> None:
    result = CliRunner().invoke(app, ["article-info", "a1"])

    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "T by 42"
    assert backend.surfaces == []


def test_article_capture_writes_png(backend: FakeBackend, tmp_path: Path) -> None:
    target = tmp_path / "shots" / "a1.png"

    result = CliRunner().invoke(app, ["article", "a1", "-w", "1024", "-o", str(target)])

    assert result.exit_code == 0, result.output
    assert target.read_bytes() == PNG_BYTES
    assert str(target) in result.stdout
    assert backend.surfaces[0].viewport == (1024, 800, 2.0)


def test_paste_capture_defaults_to_working_directory(
    backend: FakeBackend, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(app, ["paste", "p1"])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "paste-p1.png").read_bytes() == PNG_BYTES


def test_default_output_name_stays_in_working_directory(
    backend: FakeBackend, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    result = CliRunner().invoke(app, ["article", "../a1"])

    assert result.exit_code == 0, result.output
    assert (workdir / "article-..%2Fa1.png").read_bytes() == PNG_BYTES
    assert list(tmp_path.iterdir()) == [workdir]


def test_degraded_capture_is_reported(backend: FakeBackend, tmp_path: Path) -> None:
    backend.script = SurfaceScript(fonts="hang")

    result = CliRunner().invoke(app, ["article", "a1", "-o", str(tmp_path / "out.png")])

    assert result.exit_code == 0, result.output
    assert "degraded readiness: fonts" in result.output
    assert (tmp_path / "out.png").exists()


def test_missing_document_exits_with_error(backend: FakeBackend) -> None:
    result = CliRunner().invoke(app, ["article-info", "nope"])

    assert result.exit_code == 1
    assert "Not found" in result.output


def test_task_commands(backend: FakeBackend) -> None:
    runner = CliRunner()

    created = runner.invoke(app, ["task", "save", "article", "a1"])
    status = runner.invoke(app, ["task", "status", "t1"])

    assert created.exit_code == 0, created.output
    assert created.stdout.strip() == "Save task created, ID: t1"
    assert status.exit_code == 0, status.output
    assert status.stdout.strip() == "Task t1 status: Running"


def test_listing_commands(backend: FakeBackend) -> None:
    runner = CliRunner()

    count = runner.invoke(app, ["count"])
    recent = runner.invoke(app, ["recent", "--count", "1"])
    relevant = runner.invoke(app, ["relevant", "a1"])
    history = runner.invoke(app, ["history", "a1"])

    assert count.stdout.strip() == "12"
    assert recent.exit_code == 0, recent.output
    assert "a1" in recent.stdout and "2024-05-01" in recent.stdout
    assert relevant.exit_code == 0, relevant.output
    assert "a1" in relevant.stdout
    assert history.exit_code == 0, history.output
    assert "2024-04-01" in history.stdout


def test_no_arguments_prints_help() -> None:
    result = CliRunner().invoke(app, [])

    assert "article-info" in result.output


def test_build_service_honours_endpoint_flag(tmp_path: Path) -> None:
    config_file = tmp_path / "saver.yml"
    config_file.write_text("endpoint: http://from-file\npool_size: 3\n", encoding="utf-8")
    set_cli_state(config_path=config_file, endpoint="http://flag")

    service = utils.build_service()
    try:
        assert service.config.endpoint == "http://flag"
        assert service.config.pool_size == 3
    finally:
        service.client.close()
