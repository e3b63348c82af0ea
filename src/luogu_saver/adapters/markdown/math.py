"""Math region helpers for HTML produced by ``pymdownx.arithmatex``."""

from __future__ import annotations

from collections.abc import Iterator
import logging

from bs4 import BeautifulSoup, Tag


logger = logging.getLogger(__name__)

MATH_CLASS = "arithmatex"

_DELIMITERS = (("\\(", "\\)"), ("\\[", "\\]"), ("$$", "$$"), ("$", "$"))


def math_regions(soup: BeautifulSoup) -> Iterator[Tag]:
    """Yield every arithmatex-tagged element in document order."""
    yield from soup.select(f"span.{MATH_CLASS}, div.{MATH_CLASS}")


def is_display(node: Tag) -> bool:
    return node.name == "div"


def extract_tex(node: Tag) -> str:
    """Return the TeX source of a math region without its delimiters."""
    text = node.get_text().strip()
    for opening, closing in _DELIMITERS:
        if text.startswith(opening) and text.endswith(closing) and len(text) >= len(opening) * 2:
            return text[len(opening) : len(text) - len(closing)].strip()
    return text


def typeset_to_mathml(soup: BeautifulSoup) -> int:
    """Replace math regions with MathML in place and return how many converted.

    Regions that the converter rejects keep their literal TeX so a malformed
    formula never takes the surrounding document down with it.
    """
    from latex2mathml.converter import convert

    converted = 0
    for node in list(math_regions(soup)):
        tex = extract_tex(node)
        if not tex:
            continue
        display = "block" if is_display(node) else "inline"
        try:
            markup = convert(tex, display=display)
        except Exception as exc:  # latex2mathml raises a zoo of error types
            logger.debug("Leaving math region as text (%s): %s", exc, tex)
            node["class"] = [*node.get("class", []), "math-error"]
            continue
        fragment = BeautifulSoup(markup, "html.parser")
        replacement = soup.new_tag("div" if display == "block" else "span")
        replacement["class"] = ["math", f"math-{display}"]
        replacement.extend(list(fragment.contents))
        node.replace_with(replacement)
        converted += 1
    return converted


__all__ = ["MATH_CLASS", "extract_tex", "is_display", "math_regions", "typeset_to_mathml"]
