from luogu_saver.adapters.markdown import (
    DEFAULT_MARKDOWN_EXTENSIONS,
    deduplicate_markdown_extensions,
    render_markdown,
)


def test_single_newlines_become_line_breaks() -> None:
    html = render_markdown("first line\nsecond line").html

    assert "<br" in html
    assert "first line" in html and "second line" in html


def test_inline_html_passes_through() -> None:
    html = render_markdown('Some <span class="hl">marked</span> text.').html

    assert '<span class="hl">marked</span>' in html


def test_math_is_wrapped_in_arithmatex_regions() -> None:
    html = render_markdown("Inline $a+b$ and\n\n$$\nx^2\n$$\n").html

    assert '<span class="arithmatex">' in html
    assert '<div class="arithmatex">' in html


def test_fenced_code_is_highlighted() -> None:
    html = render_markdown("```python\nprint(1)\n```\n").html

    assert "highlight" in html
    assert "language-python" in html


def test_tables_render() -> None:
    html = render_markdown("| a | b |\n|---|---|\n| 1 | 2 |\n").html

    assert "<table>" in html


def test_extensions_are_deduplicated_case_insensitively() -> None:
    assert deduplicate_markdown_extensions(["tables", "Tables", "nl2br"]) == ["tables", "nl2br"]
    document = render_markdown("x", extensions=[*DEFAULT_MARKDOWN_EXTENSIONS, "tables"])
    assert document.extensions == tuple(DEFAULT_MARKDOWN_EXTENSIONS)
