"""Build self-contained HTML snapshots of documents for capture."""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
import html
import logging

from bs4 import BeautifulSoup
from jinja2 import Environment, PackageLoader, select_autoescape
from pygments.formatters import HtmlFormatter

from luogu_saver.adapters.markdown import (
    MATH_CLASS,
    MarkdownConversionError,
    render_markdown,
    typeset_to_mathml,
)

from .models import MathMode, RenderSnapshot


logger = logging.getLogger(__name__)

TYPESET_FLAG = "__katex_render_done"

KATEX_VERSION = "0.16.11"
DEFAULT_STYLESHEETS: tuple[str, ...] = (
    "https://cdn.jsdelivr.net/npm/highlight.js@11.7.0/styles/github.min.css",
    f"https://cdn.jsdelivr.net/npm/katex@{KATEX_VERSION}/dist/katex.min.css",
)
KATEX_SCRIPT = f"https://cdn.jsdelivr.net/npm/katex@{KATEX_VERSION}/dist/katex.min.js"


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=PackageLoader("luogu_saver", "templates"),
        autoescape=select_autoescape(["html"]),
        keep_trailing_newline=True,
    )


@lru_cache(maxsize=1)
def _stylesheet() -> str:
    env = _environment()
    source, _, _ = env.loader.get_source(env, "snapshot.css")
    return source


@lru_cache(maxsize=1)
def _pygments_css() -> str:
    return HtmlFormatter().get_style_defs(".highlight")


def _render_body(markup: str, math_mode: MathMode) -> tuple[str, tuple[str, ...]]:
    try:
        rendered = render_markdown(markup).html
    except MarkdownConversionError as exc:
        logger.warning("Markdown rendering failed, falling back to plain text: %s", exc)
        return f"<pre>{html.escape(markup)}</pre>", ()

    soup = BeautifulSoup(rendered, "html.parser")
    if math_mode is MathMode.BUILD:
        typeset_to_mathml(soup)
    image_urls = tuple(
        str(img["src"]) for img in soup.find_all("img") if img.get("src")
    )
    return str(soup), image_urls


def render_snapshot(
    title: str,
    subtitle: str,
    markup: str,
    *,
    math_mode: MathMode = MathMode.BUILD,
    stylesheets: Sequence[str] = DEFAULT_STYLESHEETS,
) -> RenderSnapshot:
    """Render author markup into a styled, self-contained HTML page.

    Title and subtitle are always escaped. Inline HTML in the body passes
    through, so the page must only ever be loaded into an isolated surface.
    With ``MathMode.CLIENT`` the page typesets math itself and raises
    ``window.__katex_render_done`` once finished.
    """
    body, image_urls = _render_body(markup or "", MathMode(math_mode))
    client_typeset = MathMode(math_mode) is MathMode.CLIENT
    template = _environment().get_template("snapshot.html")
    page = template.render(
        title=title,
        subtitle=subtitle,
        body=body,
        css=_stylesheet(),
        pygments_css=_pygments_css(),
        stylesheets=list(stylesheets),
        client_typeset=client_typeset,
        typeset_flag=TYPESET_FLAG,
        katex_script=KATEX_SCRIPT,
        math_selector=f"span.{MATH_CLASS}, div.{MATH_CLASS}",
    )
    return RenderSnapshot(html=page, image_urls=image_urls, math_mode=MathMode(math_mode))


__all__ = ["DEFAULT_STYLESHEETS", "KATEX_SCRIPT", "TYPESET_FLAG", "render_snapshot"]
