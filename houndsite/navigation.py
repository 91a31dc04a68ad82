"""Sidebar navigation for houndsite.

Turns the configured sidebar entries into concrete links for a given page
and renders them as nested lists.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from markupsafe import Markup

from .config import NavEntry, SiteConfig
from .html_utils import escape_html
from .redirects import prefix_base

_EXTERNAL_PREFIXES = ("http://", "https://", "//", "mailto:")


@dataclass
class SidebarItem:
    """A resolved sidebar entry.

    Attributes:
        label: Link text or group heading.
        href: Target URL; empty for groups.
        current: Whether the entry points at the page being rendered.
        external: Whether the link leaves the site.
        items: Children of a group.
    """

    label: str
    href: str = ""
    current: bool = False
    external: bool = False
    items: list[SidebarItem] = field(default_factory=list)


def slug_url(slug: str, base: str = "/") -> str:
    """Return the URL a content slug is published at.

    Examples:
        >>> slug_url("quickstart")
        '/quickstart/'
        >>> slug_url("index", "/docs/")
        '/docs/'
    """
    cleaned = slug.strip("/")
    if cleaned in ("", "index"):
        return prefix_base(base, "/")
    return prefix_base(base, f"/{cleaned}/")


def _same_page(href: str, current_url: str) -> bool:
    return href.rstrip("/") == current_url.rstrip("/")


def _resolve(entry: NavEntry, base: str, current_url: str) -> SidebarItem:
    if entry.is_group:
        return SidebarItem(
            label=entry.label,
            items=[_resolve(child, base, current_url) for child in entry.items],
        )
    if entry.slug:
        href = slug_url(entry.slug, base)
        external = False
    else:
        link = entry.link or ""
        external = link.startswith(_EXTERNAL_PREFIXES)
        href = link if external or not link.startswith("/") else prefix_base(base, link)
    return SidebarItem(
        label=entry.label,
        href=href,
        current=not external and _same_page(href, current_url),
        external=external,
    )


def resolve_sidebar(config: SiteConfig, current_url: str = "/") -> list[SidebarItem]:
    """Resolve sidebar entries for a page.

    Args:
        config: Site configuration.
        current_url: URL of the page being rendered.

    Returns:
        Sidebar items in configured order.
    """
    return [_resolve(entry, config.base, current_url) for entry in config.sidebar]


def iter_slugs(entries: Iterable[NavEntry]) -> Iterable[str]:
    """Yield every slug referenced by the sidebar, depth first."""
    for entry in entries:
        if entry.is_group:
            yield from iter_slugs(entry.items)
        elif entry.slug:
            yield entry.slug


def unresolved_slugs(config: SiteConfig, known_slugs: Iterable[str]) -> list[str]:
    """Return sidebar slugs that have no matching page.

    Args:
        config: Site configuration.
        known_slugs: Slugs of the loaded pages.

    Returns:
        Missing slugs in sidebar order.
    """
    known = {slug.strip("/") for slug in known_slugs}
    return [slug for slug in iter_slugs(config.sidebar) if slug.strip("/") not in known]


def render_sidebar(items: list[SidebarItem]) -> Markup:
    """Render sidebar items as nested ``<ul>`` lists."""
    if not items:
        return Markup("")
    parts = ['<ul class="sidebar-list">']
    for item in items:
        label = escape_html(item.label)
        if item.items:
            parts.append(
                f'<li class="sidebar-group"><details open><summary>{label}</summary>'
                f"{render_sidebar(item.items)}</details></li>"
            )
            continue
        attrs = f' href="{escape_html(item.href)}"'
        if item.current:
            attrs += ' aria-current="page"'
        if item.external:
            attrs += ' rel="noopener" target="_blank"'
        parts.append(f"<li><a{attrs}>{label}</a></li>")
    parts.append("</ul>")
    return Markup("".join(parts))
