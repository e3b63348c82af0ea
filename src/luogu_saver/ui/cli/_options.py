"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


RENDERING_PANEL = "Rendering"
OUTPUT_PANEL = "Output"
QUERY_PANEL = "Query"

IdentifierArgument = Annotated[
    str,
    typer.Argument(metavar="ID", help="Identifier assigned by the content service."),
]

WidthOption = Annotated[
    int | None,
    typer.Option(
        "--width",
        "-w",
        min=1,
        help="Viewport width in CSS pixels (defaults to the configured width, 960).",
        rich_help_panel=RENDERING_PANEL,
    ),
]

ClientMathOption = Annotated[
    bool | None,
    typer.Option(
        "--client-math/--build-math",
        help="Typeset math with KaTeX inside the page instead of converting it to MathML.",
        show_default=False,
        rich_help_panel=RENDERING_PANEL,
    ),
]

OutputOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        dir_okay=False,
        writable=True,
        resolve_path=True,
        help="Where to write the PNG capture (defaults to '<kind>-<id>.png').",
        rich_help_panel=OUTPUT_PANEL,
    ),
]
