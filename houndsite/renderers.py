"""Content renderers for houndsite.

Each renderer handles one source type and is picked by RendererRegistry
from the file's extension.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML with heading ids and highlighted code.
- JinjaContentRenderer: Defers Jinja pages to the TemplateEngine.
- HTMLRenderer: Passes through HTML content.

Key functions:
- code_theme_css: Pygments CSS for the configured light/dark code themes.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .html_utils import escape_html
from .utils import is_html, is_markdown, is_template

FALLBACK_CODE_STYLE = "default"


@dataclass
class Heading:
    """A heading collected while rendering, used for the page TOC.

    Attributes:
        id: Anchor id of the heading.
        text: Heading text.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly anchor id from heading text."""
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _DocsRenderer(mistune.HTMLRenderer):
    """Markdown renderer adding heading anchors and Pygments highlighting."""

    def __init__(self):
        super().__init__(escape=False)
        self.headings: list[Heading] = []
        self._id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text) or "section"
        if base_id in self._id_counts:
            self._id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._id_counts[base_id]}"
        else:
            self._id_counts[base_id] = 0
            heading_id = base_id
        self.headings.append(Heading(id=heading_id, text=text, level=level))
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        lang = (info or "").split()[0] if info else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(cssclass="highlight")
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        escaped = code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown files to HTML."""

    source_type = "markdown"

    def can_render(self, path: Path) -> bool:
        return is_markdown(path)

    def render(self, content: str) -> tuple[str, list[Heading]]:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source, without frontmatter.

        Returns:
            Tuple of (rendered HTML, headings in document order).
        """
        renderer = _DocsRenderer()
        markdown = mistune.create_markdown(
            renderer=renderer, plugins=["strikethrough", "footnotes", "table", "url"]
        )
        return markdown(content), renderer.headings


class JinjaContentRenderer:
    """Identifies Jinja pages; the TemplateEngine renders them at build time."""

    source_type = "jinja"

    def can_render(self, path: Path) -> bool:
        return is_template(path)

    def render(self, content: str) -> tuple[str, list[Heading]]:
        return content, []


class HTMLRenderer:
    """Passes plain HTML pages through unchanged."""

    source_type = "html"

    def can_render(self, path: Path) -> bool:
        return is_html(path)

    def render(self, content: str) -> tuple[str, list[Heading]]:
        return content, []


class RendererRegistry:
    """Ordered registry of content renderers; the first match wins."""

    def __init__(self):
        self._renderers: list = []
        self.register(MarkdownRenderer())
        self.register(JinjaContentRenderer())
        self.register(HTMLRenderer())

    def register(self, renderer) -> None:
        self._renderers.append(renderer)

    def get_renderer(self, path: Path):
        """Return the first renderer that can handle ``path``, or None."""
        for renderer in self._renderers:
            if renderer.can_render(path):
                return renderer
        return None


default_renderer_registry = RendererRegistry()


def _style_defs(style_name: str, selector: str) -> str:
    try:
        style = get_style_by_name(style_name)
    except ClassNotFound:
        style = get_style_by_name(FALLBACK_CODE_STYLE)
    return HtmlFormatter(style=style).get_style_defs(selector)


def code_theme_css(themes: Sequence[str]) -> str:
    """Build the stylesheet for highlighted code blocks.

    The first theme styles code by default; the second, when given, applies
    under ``prefers-color-scheme: dark``. Unknown Pygments style names fall
    back to the ``default`` style.

    Args:
        themes: Pygments style names, light first.

    Returns:
        CSS text.
    """
    light = themes[0] if themes else FALLBACK_CODE_STYLE
    css = [_style_defs(light, ".highlight")]
    if len(themes) > 1:
        css.append("@media (prefers-color-scheme: dark) {")
        css.append(_style_defs(themes[1], ".highlight"))
        css.append("}")
    return "\n".join(css) + "\n"
