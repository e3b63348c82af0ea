"""Markdown conversion utilities for document snapshots."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from threading import Lock
from typing import Any

from .math import MATH_CLASS, extract_tex, math_regions, typeset_to_mathml


__all__ = [
    "DEFAULT_MARKDOWN_EXTENSIONS",
    "MATH_CLASS",
    "MarkdownConversionError",
    "MarkdownDocument",
    "deduplicate_markdown_extensions",
    "extract_tex",
    "math_regions",
    "render_markdown",
    "typeset_to_mathml",
]


DEFAULT_MARKDOWN_EXTENSIONS = [
    "pymdownx.arithmatex",
    "pymdownx.highlight",
    "pymdownx.superfences",
    "pymdownx.betterem",
    "pymdownx.tilde",
    "pymdownx.tasklist",
    "pymdownx.magiclink",
    "attr_list",
    "def_list",
    "footnotes",
    "md_in_html",
    "nl2br",
    "sane_lists",
    "tables",
]


DEFAULT_EXTENSION_CONFIGS: dict[str, dict[str, object]] = {
    "pymdownx.arithmatex": {
        "generic": True,
        "smart_dollar": True,
    },
    "pymdownx.highlight": {
        "guess_lang": False,
        "pygments_lang_class": True,
        "use_pygments": True,
    },
    "pymdownx.tasklist": {
        "custom_checkbox": False,
    },
}


class MarkdownConversionError(Exception):
    """Raised when Markdown cannot be converted into HTML."""


@dataclass(slots=True)
class MarkdownDocument:
    """Result of converting Markdown into HTML."""

    html: str
    extensions: tuple[str, ...]


class _MarkdownCacheEntry:
    __slots__ = ("lock", "processor")

    def __init__(self, processor: Any) -> None:
        self.processor = processor
        self.lock = Lock()


_MARKDOWN_CACHE: dict[tuple[str, ...], _MarkdownCacheEntry] = {}
_MARKDOWN_CACHE_GUARD = Lock()


def deduplicate_markdown_extensions(values: Iterable[str]) -> list[str]:
    """Remove duplicate extensions while preserving order and case."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


def render_markdown(
    source: str,
    extensions: Sequence[str] | None = None,
) -> MarkdownDocument:
    """Convert Markdown source into HTML.

    Raw inline HTML passes through untouched, single newlines become line
    breaks, and math delimiters are wrapped in ``arithmatex`` regions.
    """
    try:
        import markdown
    except ModuleNotFoundError as exc:  # pragma: no cover - environment dependent
        raise MarkdownConversionError(
            "Python Markdown is required to render documents; install the 'markdown' package."
        ) from exc

    active = deduplicate_markdown_extensions(
        extensions if extensions is not None else DEFAULT_MARKDOWN_EXTENSIONS
    )
    extensions_key = tuple(active)
    entry = _resolve_markdown_entry(markdown, extensions_key)

    try:
        with entry.lock:
            processor = entry.processor
            processor.reset()
            html = processor.convert(source)
    except MarkdownConversionError:
        raise
    except Exception as exc:  # pragma: no cover - library-controlled
        raise MarkdownConversionError(f"Failed to convert Markdown source: {exc}") from exc

    return MarkdownDocument(html=html, extensions=extensions_key)


def _resolve_markdown_entry(markdown: Any, extensions_key: tuple[str, ...]) -> _MarkdownCacheEntry:
    entry = _MARKDOWN_CACHE.get(extensions_key)
    if entry is not None:
        return entry
    with _MARKDOWN_CACHE_GUARD:
        entry = _MARKDOWN_CACHE.get(extensions_key)
        if entry is None:
            processor = _build_markdown_processor(markdown, extensions_key)
            entry = _MarkdownCacheEntry(processor)
            _MARKDOWN_CACHE[extensions_key] = entry
    return entry


def _build_markdown_processor(markdown: Any, extensions_key: tuple[str, ...]) -> Any:
    active_extensions = list(extensions_key)
    extension_configs = {
        name: dict(DEFAULT_EXTENSION_CONFIGS[name])
        for name in active_extensions
        if name in DEFAULT_EXTENSION_CONFIGS
    }
    try:
        processor = markdown.Markdown(
            extensions=active_extensions,
            extension_configs=extension_configs,
            output_format="html",
        )
    except Exception as exc:  # pragma: no cover - library-controlled
        raise MarkdownConversionError(f"Failed to initialize Markdown processor: {exc}") from exc

    return processor
