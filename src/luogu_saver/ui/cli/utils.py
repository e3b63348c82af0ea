"""Helpers shared by CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer

from luogu_saver.api import SaverService
from luogu_saver.core.config import load_config
from luogu_saver.core.exceptions import (
    CaptureFailure,
    NotFound,
    PoolExhausted,
    SaverError,
    SubmitFailure,
    Unavailable,
    exception_hint,
)

from .diagnostics import CliEmitter
from .state import debug_enabled, emit_error, get_cli_state


T = TypeVar("T")

_FAILURE_PREFIXES: dict[type[SaverError], str] = {
    NotFound: "Not found",
    Unavailable: "Content service unavailable",
    CaptureFailure: "Capture failed",
    PoolExhausted: "All render surfaces are busy",
    SubmitFailure: "Task creation failed",
}


def build_service() -> SaverService:
    """Create a service from the config file, environment, and CLI flags."""
    state = get_cli_state()
    config = load_config(state.config_path, endpoint=state.endpoint)
    return SaverService(config, emitter=CliEmitter(state))


def run_with_service(action: Callable[[SaverService], Awaitable[T]]) -> T:
    """Run ``action`` against a fresh service and turn pipeline errors into exit codes."""

    async def runner() -> T:
        async with build_service() as service:
            return await action(service)

    try:
        return asyncio.run(runner())
    except SaverError as exc:
        if debug_enabled():
            raise
        prefix = next(
            (label for kind, label in _FAILURE_PREFIXES.items() if isinstance(exc, kind)),
            "Request failed",
        )
        message = f"{prefix}: {exc}"
        hint = exception_hint(exc)
        if hint and hint not in message:
            message = f"{message} ({hint})"
        emit_error(message, exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["build_service", "run_with_service"]
