"""Commands that query or capture articles and pastes."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from luogu_saver.api import SaverService
from luogu_saver.api.fetcher import quote_id
from luogu_saver.core.models import CaptureArtifact, DocumentKind, DocumentRecord, MathMode

from .. import utils
from .._options import (
    QUERY_PANEL,
    ClientMathOption,
    IdentifierArgument,
    OutputOption,
    WidthOption,
)
from ..state import get_cli_state


def _summary(document: DocumentRecord) -> str:
    return f"{document.title} by {document.author_id}"


def _math_mode(client_math: bool | None) -> MathMode | None:
    if client_math is None:
        return None
    return MathMode.CLIENT if client_math else MathMode.BUILD


def _capture(
    kind: DocumentKind,
    identifier: str,
    width: int | None,
    output: Path | None,
    client_math: bool | None,
) -> None:
    async def action(service: SaverService) -> CaptureArtifact:
        return await service.render_and_capture(
            kind, identifier, width, math_mode=_math_mode(client_math)
        )

    artifact = utils.run_with_service(action)
    target = output or Path.cwd() / f"{kind.value}-{quote_id(identifier)}.png"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(artifact.data)
    state = get_cli_state()
    if artifact.degraded:
        state.err_console.print(
            f"[yellow]captured with degraded readiness: {', '.join(artifact.degraded)}[/]"
        )
    typer.echo(str(target))


def article_info(identifier: IdentifierArgument) -> None:
    """Print the title and author of an article."""

    async def action(service: SaverService) -> DocumentRecord:
        return await service.fetch_document(DocumentKind.ARTICLE, identifier)

    typer.echo(_summary(utils.run_with_service(action)))


def article(
    identifier: IdentifierArgument,
    width: WidthOption = None,
    output: OutputOption = None,
    client_math: ClientMathOption = None,
) -> None:
    """Fetch an article and save a full-page capture of it."""
    _capture(DocumentKind.ARTICLE, identifier, width, output, client_math)


def paste(
    identifier: IdentifierArgument,
    width: WidthOption = None,
    output: OutputOption = None,
    client_math: ClientMathOption = None,
) -> None:
    """Fetch a paste and save a full-page capture of it."""
    _capture(DocumentKind.PASTE, identifier, width, output, client_math)


def recent(
    count: Annotated[
        int | None,
        typer.Option("--count", min=1, help="Maximum number of articles.", rich_help_panel=QUERY_PANEL),
    ] = None,
    updated_after: Annotated[
        str | None,
        typer.Option(
            "--updated-after",
            help="Only list articles updated after this timestamp.",
            rich_help_panel=QUERY_PANEL,
        ),
    ] = None,
    truncated_count: Annotated[
        int | None,
        typer.Option(
            "--truncated-count",
            min=0,
            help="Truncate article content to this many characters.",
            rich_help_panel=QUERY_PANEL,
        ),
    ] = None,
) -> None:
    """List recently updated articles."""

    async def action(service: SaverService) -> list[DocumentRecord]:
        return await service.fetcher.recent(
            count=count, updated_after=updated_after, truncated_count=truncated_count
        )

    _print_documents(utils.run_with_service(action))


def count() -> None:
    """Print how many articles are archived."""

    async def action(service: SaverService) -> int:
        return await service.fetcher.count()

    typer.echo(str(utils.run_with_service(action)))


def relevant(identifier: IdentifierArgument) -> None:
    """List articles related to an article."""

    async def action(service: SaverService) -> list[DocumentRecord]:
        return await service.fetcher.relevant(identifier)

    _print_documents(utils.run_with_service(action))


def history(identifier: IdentifierArgument) -> None:
    """List the stored revisions of an article."""
    from rich.table import Table

    async def action(service: SaverService):
        return await service.fetcher.history(identifier)

    revisions = utils.run_with_service(action)
    table = Table("Version", "Title", "Saved at")
    for revision in revisions:
        table.add_row(str(revision.version), revision.title, revision.created_at or "-")
    get_cli_state().console.print(table)


def _print_documents(documents: list[DocumentRecord]) -> None:
    from rich.table import Table

    table = Table("ID", "Title", "Author", "Updated")
    for document in documents:
        table.add_row(
            document.id,
            document.title,
            str(document.author_id) if document.author_id is not None else "-",
            document.updated_at or "-",
        )
    get_cli_state().console.print(table)


__all__ = ["article", "article_info", "count", "history", "paste", "recent", "relevant"]
