"""Markdown + LaTeX rendering of question prompts, options and explanations.

Question text is authored as markdown and may contain ``$...$`` or ``$$...$$``
math. The server turns it into HTML per request and leaves typesetting to
MathJax in the browser. Math spans are lifted out before markdown runs, since
``_`` and ``*`` inside formulas would otherwise become emphasis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape
import re

from markdown_it import MarkdownIt

MATHJAX_SCRIPT = "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"
MATHJAX_CONFIG = (
    "window.MathJax = { tex: { inlineMath: [['$','$']], displayMath: [['$$','$$']] }, "
    "svg: { fontCache: 'global' } };"
)

_MATH_SPAN = re.compile(r"\$\$.+?\$\$|\$[^$\n]+?\$", re.DOTALL)
_PLACEHOLDER = "QDMATH{}X"
_PLACEHOLDER_PATTERN = re.compile(r"QDMATH(\d+)X")
EMPTY_FRAGMENT = "<p><em>No content provided.</em></p>"


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str | None) -> str:
        """Render a markdown block; empty input yields a placeholder paragraph."""
        source = (markdown_text or "").strip()
        if not source:
            return EMPTY_FRAGMENT
        shielded, spans = _shield_math(source)
        return _restore_math(self._markdown.render(shielded), spans)

    def render_inline(self, markdown_text: str | None) -> str:
        """Render a single line (option labels, list entries) without a wrapping <p>."""
        shielded, spans = _shield_math((markdown_text or "").strip())
        return _restore_math(self._markdown.renderInline(shielded), spans)


def _shield_math(text: str) -> tuple[str, list[str]]:
    spans: list[str] = []

    def stash(match: re.Match[str]) -> str:
        spans.append(match.group(0))
        return _PLACEHOLDER.format(len(spans) - 1)

    return _MATH_SPAN.sub(stash, text), spans


def _restore_math(html: str, spans: list[str]) -> str:
    def unstash(match: re.Match[str]) -> str:
        index = int(match.group(1))
        # Placeholder-like text typed by the author is left alone.
        return escape(spans[index], quote=False) if index < len(spans) else match.group(0)

    if not spans:
        return html
    return _PLACEHOLDER_PATTERN.sub(unstash, html)


renderer = MarkdownMathRenderer()
