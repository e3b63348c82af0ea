from __future__ import annotations

import pytest

from luogu_saver.adapters.markdown import MarkdownConversionError
from luogu_saver.core import snapshot as snapshot_module
from luogu_saver.core.models import MathMode
from luogu_saver.core.snapshot import TYPESET_FLAG, render_snapshot


def test_title_and_subtitle_are_escaped() -> None:
    snapshot = render_snapshot("<script>alert(1)</script>", "Author: <b>x</b>", "Hello")

    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in snapshot.html
    assert "<script>alert(1)</script>" not in snapshot.html
    assert "Author: &lt;b&gt;x&lt;/b&gt;" in snapshot.html


def test_body_markup_is_rendered_with_inline_html() -> None:
    snapshot = render_snapshot("T", "Author UID: 42", 'Hello <span class="note">world</span>')

    assert '<span class="note">world</span>' in snapshot.html
    assert "Author UID: 42" in snapshot.html
    assert "<style>" in snapshot.html


def test_image_urls_are_collected() -> None:
    snapshot = render_snapshot(
        "T",
        "s",
        "![one](https://img.example/a.png)\n\n<img src=\"https://img.example/b.gif\">",
    )

    assert snapshot.image_urls == ("https://img.example/a.png", "https://img.example/b.gif")


def test_document_without_images_reports_none() -> None:
    assert render_snapshot("T", "s", "Hello").image_urls == ()


def test_build_mode_typesets_math_to_mathml() -> None:
    snapshot = render_snapshot("T", "s", "Euler: $e^{i\\pi}+1=0$", math_mode=MathMode.BUILD)

    assert "<math" in snapshot.html
    assert 'class="math math-inline"' in snapshot.html
    assert TYPESET_FLAG not in snapshot.html
    assert not snapshot.needs_typeset


def test_client_mode_embeds_typeset_flag() -> None:
    snapshot = render_snapshot("T", "s", "Euler: $e^{i\\pi}+1=0$", math_mode=MathMode.CLIENT)

    assert f"window.{TYPESET_FLAG} = false;" in snapshot.html
    assert f"window.{TYPESET_FLAG} = true;" in snapshot.html
    assert "katex.min.js" in snapshot.html
    assert '<span class="arithmatex">' in snapshot.html
    assert snapshot.needs_typeset


def test_malformed_math_keeps_literal_source(monkeypatch: pytest.MonkeyPatch) -> None:
    import latex2mathml.converter

    def explode(*_args, **_kwargs):
        raise ValueError("missing closing brace")

    monkeypatch.setattr(latex2mathml.converter, "convert", explode)

    snapshot = render_snapshot("T", "s", "Broken $\\frac{1}{$ formula", math_mode=MathMode.BUILD)

    assert "math-error" in snapshot.html
    assert "\\frac{1}{" in snapshot.html
    assert "formula" in snapshot.html


def test_markdown_failure_falls_back_to_preformatted_text(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(_source: str):
        raise MarkdownConversionError("processor crashed")

    monkeypatch.setattr(snapshot_module, "render_markdown", fail)

    snapshot = render_snapshot("T", "s", "<b>bold</b>")

    assert "<pre>&lt;b&gt;bold&lt;/b&gt;</pre>" in snapshot.html
    assert snapshot.image_urls == ()
