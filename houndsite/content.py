"""Content loading for houndsite.

This module discovers the documents in the docs directory, parses their YAML
frontmatter and renders their bodies into Page records.

Key members:
- Page: Dataclass representing one documentation page.
- extract_frontmatter: Split YAML frontmatter from a document.
- ContentLoader: Loads every page under a docs directory.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .navigation import slug_url
from .renderers import Heading, RendererRegistry, default_renderer_registry
from .utils import first_paragraph, is_html, is_markdown, is_template, page_slug, titleize

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)
TEMPLATES = ("doc", "splash")


class ContentError(Exception):
    """Raised when a document cannot be turned into a page."""

    def __init__(self, source_path: Path, message: str):
        self.source_path = source_path
        self.message = message
        super().__init__(f"{source_path}: {message}")


@dataclass
class Page:
    """A documentation page.

    Attributes:
        title: Page title.
        description: Short description used in meta tags.
        slug: Content slug, e.g. ``quickstart`` or ``how-to/setup``.
        url: URL path the page is published at.
        content: Rendered body (Jinja source for Jinja pages).
        source_type: "markdown", "jinja" or "html".
        template: Layout template, "doc" or "splash".
        path: Source file.
        draft: Whether the page is a draft.
        frontmatter: Raw frontmatter values.
        toc: Headings collected from Markdown bodies.
    """

    title: str
    description: str
    slug: str
    url: str
    content: str
    source_type: str
    template: str
    path: Path
    draft: bool = False
    frontmatter: dict[str, Any] = field(default_factory=dict)
    toc: list[Heading] = field(default_factory=list)


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from a document.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content). Documents without a
        frontmatter block return an empty dict and the text unchanged.

    Raises:
        yaml.YAMLError: If the frontmatter block is not valid YAML.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    data = yaml.safe_load(match.group(1)) or {}
    if not isinstance(data, dict):
        return {}, text
    return data, text[match.end() :]


def _is_draft_path(rel: Path) -> bool:
    return any(part.startswith("_") for part in rel.parts)

def _split_title(body: str) -> tuple[str | None, str]:
    """Pull a leading ``# Title`` line off a Markdown body."""
    stripped = body.lstrip()
    first_line, _, rest = stripped.partition("\n")
    if first_line.startswith("# "):
        return first_line[2:].strip(), rest.lstrip("\n")
    return None, body


class ContentLoader:
    """Loads the pages of a docs directory.

    Files and folders whose names start with an underscore are drafts or
    internal (layouts, partials) and are skipped unless drafts are requested.

    Attributes:
        docs_dir: Directory holding the documents.
        base: Base path pages are published under.
        renderer_registry: Registry used to render document bodies.
    """

    def __init__(
        self,
        docs_dir: Path,
        base: str = "/",
        renderer_registry: RendererRegistry | None = None,
    ):
        self.docs_dir = docs_dir
        self.base = base
        self.renderer_registry = renderer_registry or default_renderer_registry

    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        """List source files in a stable order.

        Args:
            include_drafts: Whether to include ``_``-prefixed files and folders.

        Returns:
            Paths of Markdown, Jinja and HTML documents.
        """
        files: list[Path] = []
        for path in sorted(self.docs_dir.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(self.docs_dir)
            if _is_draft_path(rel) and not include_drafts:
                continue
            if is_markdown(path) or is_template(path) or is_html(path):
                files.append(path)
        return files

    def load(self, include_drafts: bool = False) -> list[Page]:
        """Load every page in the docs directory.

        Args:
            include_drafts: Whether to include draft pages.

        Returns:
            Pages in path order. Pages marked ``draft: true`` in frontmatter
            are left out unless drafts are requested.
        """
        pages: list[Page] = []
        for path in self.iter_files(include_drafts):
            page = self.build(path)
            if page.draft and not include_drafts:
                continue
            pages.append(page)
        return pages

    def build(self, path: Path) -> Page:
        """Build a Page from one source file.

        Raises:
            ContentError: If the frontmatter is invalid or names an unknown template.
        """
        raw = path.read_text(encoding="utf-8")
        try:
            frontmatter, body = extract_frontmatter(raw)
        except yaml.YAMLError as exc:
            raise ContentError(path, f"Invalid frontmatter: {exc}") from exc

        renderer = self.renderer_registry.get_renderer(path)
        if renderer is None:
            raise ContentError(path, "No renderer for this file type")

        heading_title = None
        if renderer.source_type == "markdown":
            heading_title, body = _split_title(body)
        content, toc = renderer.render(body)

        title = str(frontmatter.get("title") or heading_title or titleize(path.name))
        template = str(frontmatter.get("template", "doc"))
        if template not in TEMPLATES:
            raise ContentError(
                path, f"Unknown template '{template}' (expected one of {', '.join(TEMPLATES)})"
            )

        rel = path.relative_to(self.docs_dir)
        slug = page_slug(rel)
        draft = _is_draft_path(rel) or bool(frontmatter.get("draft", False))
        description = frontmatter.get("description")
        if description is None:
            description = first_paragraph(body) if renderer.source_type == "markdown" else ""

        return Page(
            title=title,
            description=str(description),
            slug=slug,
            url=slug_url(slug, self.base),
            content=content,
            source_type=renderer.source_type,
            template=template,
            path=path,
            draft=draft,
            frontmatter=frontmatter,
            toc=toc,
        )
