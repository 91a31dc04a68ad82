"""Utility functions for houndsite.

Key functions:
    slugify: Convert a filename stem to a URL slug.
    page_slug: Derive a page slug from its path inside the docs directory.
    titleize: Convert filenames to human-readable titles.
    first_paragraph: Plain-text first paragraph, used for descriptions.
    is_markdown / is_template / is_html: Source type checks.
    ensure_clean_dir: Ensure a directory exists and is empty.
    copy_tree: Copy a directory's files into another directory.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path

_SOURCE_SUFFIXES = (".html.jinja", ".jinja", ".html", ".md")


def slugify(name: str) -> str:
    """Convert a filename stem to a lowercase slug.

    Args:
        name: Filename stem.

    Returns:
        URL-friendly slug, ``index`` when nothing usable remains.

    Examples:
        >>> slugify("Under the Hood")
        'under-the-hood'
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", name)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def strip_source_suffix(name: str) -> str:
    """Drop a known source extension (``.md``, ``.html.jinja``...) from a name."""
    lowered = name.lower()
    for suffix in _SOURCE_SUFFIXES:
        if lowered.endswith(suffix):
            return name[: -len(suffix)]
    return Path(name).stem


def page_slug(rel: Path) -> str:
    """Derive the slug of a page from its path relative to the docs directory.

    ``index`` files take the slug of their folder.

    Examples:
        >>> page_slug(Path("how-to/index.md"))
        'how-to'
        >>> page_slug(Path("Quickstart.md"))
        'quickstart'
        >>> page_slug(Path("index.html.jinja"))
        'index'
    """
    parts = [slugify(part) for part in rel.parent.parts if part not in ("", ".")]
    stem = slugify(strip_source_suffix(rel.name))
    if stem != "index" or not parts:
        parts.append(stem)
    return "/".join(parts)


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Examples:
        >>> titleize("origin-story.md")
        'Origin Story'
    """
    base = strip_source_suffix(Path(filename).name)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def first_paragraph(text: str, limit: int = 160) -> str:
    """Extract and clean the first non-heading paragraph from text.

    Strips HTML tags and Jinja syntax, collapses whitespace and truncates.

    Args:
        text: Text content to extract from.
        limit: Maximum character length of result.

    Returns:
        Cleaned first paragraph, truncated to limit characters.
    """
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    for para in paragraphs:
        if para.startswith(("#", "```", "![", "---")):
            continue
        para = re.sub(r"<[^>]+>", "", para)
        para = re.sub(r"\{[%#{].*?[%#}]\}", "", para, flags=re.DOTALL)
        collapsed = " ".join(para.split())
        if collapsed:
            return collapsed[:limit]
    return ""


def is_internal_path(path: Path) -> bool:
    """Check if any path component starts with an underscore."""
    return any(part.startswith("_") for part in path.parts)


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() == ".md"


def is_template(path: Path) -> bool:
    """Check if a path is a Jinja template (``.jinja`` or ``.html.jinja``)."""
    return path.suffix == ".jinja"


def is_html(path: Path) -> bool:
    """Check if a path is a plain HTML file (not a Jinja template)."""
    return path.suffix.lower() == ".html"


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def copy_tree(source: Path, dest: Path) -> int:
    """Copy every file under ``source`` into ``dest``, keeping relative paths.

    Args:
        source: Directory to copy from. Missing directories copy nothing.
        dest: Directory to copy into.

    Returns:
        Number of files copied.
    """
    if not source.is_dir():
        return 0
    count = 0
    for path in sorted(source.rglob("*")):
        if path.is_dir():
            continue
        target = dest / path.relative_to(source)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target)
        count += 1
    return count
