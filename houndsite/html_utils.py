"""HTML utility functions for houndsite.

Functions:
    escape_html: Escape special HTML characters in a string.
    join_root_url: Join a base URL with a path.
    render_attrs: Render an attribute mapping as HTML attributes.
    render_head_tags: Render configured head tags as HTML.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from markupsafe import Markup

if TYPE_CHECKING:
    from .config import HeadTag

# Elements that never take a closing tag
VOID_ELEMENTS = frozenset(
    {"base", "br", "hr", "img", "input", "link", "meta", "source", "wbr"}
)
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Args:
        text: The string to escape.

    Returns:
        The escaped string, safe for text and double-quoted attribute values.

    Examples:
        >>> escape_html('Tom & "Jerry"')
        'Tom &amp; &quot;Jerry&quot;'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Examples:
        >>> join_root_url('https://chunkhound.github.io/', 'og-image.png')
        'https://chunkhound.github.io/og-image.png'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def render_attrs(attrs: Mapping[str, str]) -> str:
    """Render attributes in insertion order, each preceded by a space."""
    return "".join(f' {name}="{escape_html(str(value))}"' for name, value in attrs.items())


def render_head_tags(tags: Iterable[HeadTag]) -> Markup:
    """Render head tags as HTML, one element per line, in the given order.

    Args:
        tags: HeadTag records from the site configuration.

    Returns:
        Markup-safe HTML.
    """
    lines: list[str] = []
    for tag in tags:
        opening = f"<{tag.tag}{render_attrs(tag.attrs)}>"
        if tag.tag.lower() in VOID_ELEMENTS:
            lines.append(opening)
        else:
            body = tag.content
            if tag.tag.lower() not in RAW_TEXT_ELEMENTS:
                body = escape_html(body)
            lines.append(f"{opening}{body}</{tag.tag}>")
    return Markup("\n".join(lines))
