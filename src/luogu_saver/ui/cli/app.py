"""Typer application wiring for the luogu-saver CLI."""

from __future__ import annotations

from pathlib import Path

from rich.traceback import Traceback
import typer

from luogu_saver.version import get_version

from .commands import article, article_info, count, history, paste, recent, relevant, tasks_app
from .state import configure_logging, debug_enabled, emit_error, get_cli_state, set_cli_state


app = typer.Typer(
    help="Query the content-archival service and capture documents as images.",
    context_settings={"help_option_names": ["--help"]},
    no_args_is_help=True,
)

app.add_typer(tasks_app, name="task")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(get_version())
        raise typer.Exit(code=0)


@app.callback()
def _app_root(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        help="YAML file with service and rendering settings.",
    ),
    endpoint: str | None = typer.Option(
        None,
        "--endpoint",
        help="Override the content service base URL.",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug/--no-debug",
        help="Show full tracebacks when an unexpected error occurs.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Print the installed version and exit.",
    ),
) -> None:
    ctx.obj = get_cli_state()
    set_cli_state(verbosity=verbose, debug=debug, config_path=config, endpoint=endpoint)
    configure_logging(verbose)


app.command(name="article-info")(article_info)
app.command(name="article")(article)
app.command(name="paste")(paste)
app.command(name="recent")(recent)
app.command(name="count")(count)
app.command(name="relevant")(relevant)
app.command(name="history")(history)


def main() -> None:
    """Entry point compatible with console scripts."""
    try:
        app()
    except typer.Exit:
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Operation cancelled by user.", exception=exc)
        raise typer.Exit(code=1) from exc
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - last-resort reporting
        state = get_cli_state()
        if state.show_tracebacks:
            tb = Traceback.from_exception(
                type(exc),
                exc,
                exc.__traceback__,
                show_locals=state.verbosity >= 2,
            )
            state.err_console.print(tb)
        else:
            emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["app", "main"]
