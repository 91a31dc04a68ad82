"""Redirect table handling for houndsite.

Static hosts have no server-side rewrite rules, so each redirect is emitted
as a small HTML document at the old path that forwards the browser with a
meta refresh and points search engines at the new location.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from .html_utils import escape_html, join_root_url

_REDIRECT_TEMPLATE = (
    "<!doctype html>"
    "<title>Redirecting to: {target}</title>"
    '<meta http-equiv="refresh" content="0;url={target}">'
    '<meta name="robots" content="noindex">'
    '<link rel="canonical" href="{canonical}">'
    '<body><a href="{target}">Redirecting from <code>{source}</code> '
    "to <code>{target}</code></a></body>"
)


def check_redirects(redirects: Mapping[str, str]) -> list[str]:
    """Report unsafe sources, self-redirects and chained redirects.

    Args:
        redirects: Mapping of old path to new path.

    Returns:
        List of problem descriptions; empty when the table is valid.
    """
    problems: list[str] = []
    for source, target in redirects.items():
        if _normalize(source) == "/":
            problems.append(f"redirect source '{source}' cannot be the site root")
        elif ".." in _normalize(source).split("/"):
            problems.append(f"redirect source '{source}' cannot contain '..'")
        elif _normalize(source) == _normalize(target):
            problems.append(f"redirect '{source}' points to itself")
        elif _normalize(target) in {_normalize(s) for s in redirects}:
            problems.append(
                f"redirect '{source}' -> '{target}' chains into another redirect"
            )
    return problems


def _normalize(path: str) -> str:
    return "/" + path.strip("/")


def prefix_base(base: str, path: str) -> str:
    """Put a root-relative path under the site's base path.

    Args:
        base: Base path such as ``/`` or ``/docs/``.
        path: Root-relative path.

    Returns:
        The combined path with a single slash at each joint.
    """
    path = path if path.startswith("/") else f"/{path}"
    trimmed = base.strip("/")
    return f"/{trimmed}{path}" if trimmed else path


def redirect_document(source: str, target: str, site: str = "") -> str:
    """Render the HTML document served at a redirect source.

    Args:
        source: Old path being redirected.
        target: New path (or absolute URL) to forward to.
        site: Absolute site URL, used to build the canonical link.

    Returns:
        Complete HTML document.
    """
    canonical = target
    if site and not target.startswith(("http://", "https://", "//")):
        canonical = join_root_url(site, target)
    return _REDIRECT_TEMPLATE.format(
        target=escape_html(target),
        source=escape_html(source),
        canonical=escape_html(canonical),
    )


def write_redirects(
    output_dir: Path,
    redirects: Mapping[str, str],
    site: str = "",
    base: str = "/",
) -> list[Path]:
    """Write one redirect document per table entry.

    Args:
        output_dir: Build output directory.
        redirects: Mapping of old path to new path.
        site: Absolute site URL for canonical links.
        base: Base path the site is served under.

    Returns:
        Paths of the written documents.

    Raises:
        ValueError: If a source resolves outside ``output_dir``.
    """
    root = output_dir.resolve()
    written: list[Path] = []
    for source, target in redirects.items():
        destination = target
        if not target.startswith(("http://", "https://", "//")):
            destination = prefix_base(base, target)
        html = redirect_document(prefix_base(base, source), destination, site)
        target_dir = output_dir / source.strip("/")
        if root not in target_dir.resolve().parents:
            raise ValueError(f"redirect source '{source}' escapes {output_dir}")
        target_dir.mkdir(parents=True, exist_ok=True)
        html_path = target_dir / "index.html"
        html_path.write_text(html, encoding="utf-8")
        written.append(html_path)
    return written
