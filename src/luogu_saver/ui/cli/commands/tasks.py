"""Commands that create and inspect background tasks."""

from __future__ import annotations

from typing import Annotated

import typer

from luogu_saver.api import SaverService
from luogu_saver.core.models import TaskRecord

from .. import utils


tasks_app = typer.Typer(
    help="Create archival tasks and check on their progress.",
    context_settings={"help_option_names": ["--help"]},
    no_args_is_help=True,
)


@tasks_app.command(name="save")
def save(
    target: Annotated[str, typer.Argument(help="Kind of page to archive, e.g. 'article'.")],
    target_id: Annotated[str, typer.Argument(metavar="TARGET_ID", help="Identifier of the page.")],
) -> None:
    """Queue a save task for a page."""

    async def action(service: SaverService) -> str:
        return await service.tasks.submit_save(target, target_id)

    task_id = utils.run_with_service(action)
    typer.echo(f"Save task created, ID: {task_id}")


@tasks_app.command(name="status")
def status(
    task_id: Annotated[str, typer.Argument(metavar="ID", help="Task identifier.")],
) -> None:
    """Show the lifecycle state of a task."""

    async def action(service: SaverService) -> TaskRecord:
        return await service.poll_task(task_id)

    record = utils.run_with_service(action)
    line = f"Task {record.id} status: {record.status.label}"
    if record.info:
        line += f" ({record.info})"
    typer.echo(line)


__all__ = ["save", "status", "tasks_app"]
