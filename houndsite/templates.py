"""Template rendering engine for houndsite.

This module uses Jinja2 to render pages into the docs theme. Project layouts
in ``_layouts/`` override the packaged theme templates of the same name.

Key members:
- TemplateEngine: Renders pages with their layout and the site chrome.
- render_toc: Renders a page's table of contents.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape
from markupsafe import Markup

from .components import COMPONENTS
from .config import SiteConfig
from .content import Page
from .html_utils import escape_html, join_root_url, render_head_tags
from .navigation import render_sidebar, resolve_sidebar
from .redirects import prefix_base
from .renderers import Heading

ASSETS_DIR = "_assets"
THEME_STYLESHEET = "theme.css"
CODE_STYLESHEET = "code.css"

# Heading levels shown in the "On this page" list
TOC_MIN_LEVEL = 2
TOC_MAX_LEVEL = 3


def render_toc(headings: Sequence[Heading]) -> Markup:
    """Render headings as a nested ``<ul>`` table of contents.

    Only levels TOC_MIN_LEVEL..TOC_MAX_LEVEL are included.

    Args:
        headings: Headings in document order.

    Returns:
        Markup-safe HTML, empty when there is nothing to list.
    """
    selected = [h for h in headings if TOC_MIN_LEVEL <= h.level <= TOC_MAX_LEVEL]
    if not selected:
        return Markup("")

    html_parts: list[str] = []
    level_stack: list[int] = []
    for heading in selected:
        level = heading.level
        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")
        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        else:
            html_parts.append("<ul>")
            level_stack.append(level)
        html_parts.append(
            f'<li><a href="#{escape_html(heading.id)}">{escape_html(heading.text)}</a>'
        )
    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")
    return Markup("".join(html_parts))


class TemplateEngine:
    """Renders pages through the docs theme.

    Attributes:
        config: Site configuration.
        project_root: Project directory; ``_layouts/`` there overrides the theme.
        env: Jinja2 environment.
    """

    def __init__(self, config: SiteConfig, project_root: Path | None = None):
        self.config = config
        self.project_root = project_root
        loaders = []
        if project_root is not None:
            loaders.append(FileSystemLoader(str(project_root / "_layouts")))
        loaders.append(PackageLoader("houndsite", "theme"))
        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
        )
        self._install_globals()

    def _install_globals(self) -> None:
        self.env.globals["config"] = self.config
        self.env.globals["url_for"] = self.url_for
        self.env.globals["asset_url"] = self.asset_url
        self.env.globals["render_head_tags"] = render_head_tags
        self.env.globals["render_toc"] = render_toc
        self.env.globals.update(COMPONENTS)

    def url_for(self, path: str) -> str:
        """Return the URL for a site path, applying the base path.

        External URLs are returned unchanged.
        """
        if path.startswith(("http://", "https://", "//")):
            return path
        return prefix_base(self.config.base, path)

    def asset_url(self, path: str) -> str:
        """Return the URL for a configured asset path.

        ``./public/x.svg`` and ``public/x.svg`` are published at ``/x.svg``;
        other relative paths are treated as site paths.
        """
        if path.startswith(("http://", "https://", "//")):
            return path
        cleaned = path[2:] if path.startswith("./") else path
        if cleaned.startswith("public/"):
            cleaned = cleaned[len("public/") :]
        return self.url_for(cleaned)

    def stylesheet_urls(self) -> list[str]:
        """URLs of every stylesheet a page links, theme first."""
        urls = [
            self.url_for(f"/{ASSETS_DIR}/{THEME_STYLESHEET}"),
            self.url_for(f"/{ASSETS_DIR}/{CODE_STYLESHEET}"),
        ]
        for css in self.config.custom_css:
            urls.append(self.url_for(f"/{ASSETS_DIR}/{Path(css).name}"))
        return urls

    def page_context(self, page: Page, pages: Sequence[Page] = ()) -> dict[str, Any]:
        """Build the template context for one page."""
        canonical = join_root_url(self.config.site, page.url) if self.config.site else ""
        return {
            "current_page": page,
            "pages": list(pages),
            "frontmatter": page.frontmatter,
            "page_title": self._page_title(page),
            "description": page.description or self.config.description,
            "canonical_url": canonical,
            "sidebar": render_sidebar(resolve_sidebar(self.config, page.url)),
            "stylesheets": self.stylesheet_urls(),
        }

    def _page_title(self, page: Page) -> str:
        if page.title == self.config.title:
            return page.title
        return f"{page.title} | {self.config.title}"

    def render_page(self, page: Page, pages: Sequence[Page] = ()) -> str:
        """Render a page with its layout.

        Jinja pages are rendered first, with the same context as the layout.

        Args:
            page: Page to render.
            pages: All pages of the site.

        Returns:
            Complete HTML document.
        """
        context = self.page_context(page, pages)
        body_html = self._render_body(page, context)
        layout = self.env.get_template(f"{page.template}.html.jinja")
        return layout.render(page_content=Markup(body_html), **context)

    def _render_body(self, page: Page, context: dict[str, Any]) -> str:
        if page.source_type == "jinja":
            return self.env.from_string(page.content).render(**context)
        return page.content

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        """Render a template string with the engine's globals."""
        return self.env.from_string(template).render(**context)
