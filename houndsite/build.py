"""Site building for houndsite.

This module turns a project (houndsite.yaml, docs/, public/ and the custom
stylesheets) into a deployable static site.

Key members:
- build_site: Build the entire site.
- BuildResult: What a build produced.
- BuildError: A build failure tied to the file that caused it.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from importlib import resources
from pathlib import Path

from jinja2 import TemplateSyntaxError

from .config import (
    CONFIG_FILENAME,
    SiteConfig,
    load_settings,
    load_site_config,
    validate_config,
)
from .content import ContentError, ContentLoader, Page
from .html_utils import join_root_url
from .navigation import unresolved_slugs
from .redirects import prefix_base, write_redirects
from .renderers import code_theme_css
from .templates import ASSETS_DIR, CODE_STYLESHEET, THEME_STYLESHEET, TemplateEngine
from .utils import copy_tree, ensure_clean_dir


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        pages: Pages that were rendered.
        output_dir: Directory the site was written to.
        config: Site configuration used for the build.
        redirects: Redirect documents that were written.
    """

    pages: list[Page]
    output_dir: Path
    config: SiteConfig
    redirects: list[Path] = field(default_factory=list)


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
    site_url: str | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to include draft pages.
        clean_output: Whether to wipe the output directory before building.
        output_dir_override: Write the build here instead of the configured output_dir.
        site_url: Override the configured absolute site URL.

    Returns:
        BuildResult describing the build.

    Raises:
        ConfigError: If the site configuration breaks an invariant.
        BuildError: If a page cannot be loaded or rendered, or the sidebar
            and redirects do not match the pages.
        FileNotFoundError: If the docs directory is missing.
    """
    settings = load_settings(project_root)
    config = load_site_config(project_root)
    if site_url is not None:
        config = replace(config, site=site_url)
    validate_config(config)

    docs_dir = project_root / settings["docs_dir"]
    if not docs_dir.exists():
        raise FileNotFoundError(f"Expected docs directory at {docs_dir}")

    try:
        pages = ContentLoader(docs_dir, base=config.base).load(include_drafts=include_drafts)
    except ContentError as exc:
        raise BuildError(exc.source_path, exc.message, exc) from exc
    _check_pages(project_root, config, pages)
    _check_stylesheets(project_root, config)

    output_dir = output_dir_override or (project_root / settings["output_dir"])
    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    engine = TemplateEngine(config, project_root)
    for page in pages:
        try:
            rendered = engine.render_page(page, pages)
        except TemplateSyntaxError as exc:
            raise BuildError(
                page.path,
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc
        except Exception as exc:
            raise BuildError(page.path, _format_error_message(exc), exc) from exc
        _write_page(output_dir, page, rendered)

    redirects = write_redirects(output_dir, config.redirects, config.site, config.base)
    copy_tree(project_root / settings["public_dir"], output_dir)
    _write_stylesheets(project_root, output_dir, config)
    _write_sitemap(output_dir, config, pages)
    return BuildResult(pages=pages, output_dir=output_dir, config=config, redirects=redirects)


def _check_pages(project_root: Path, config: SiteConfig, pages: Iterable[Page]) -> None:
    """Fail on duplicate slugs, or when the sidebar or redirect table disagrees with the pages."""
    config_path = project_root / CONFIG_FILENAME
    pages = list(pages)
    seen: dict[str, Path] = {}
    for page in pages:
        if page.slug in seen:
            raise BuildError(
                page.path, f"Duplicate page slug '{page.slug}' (also {seen[page.slug]})"
            )
        seen[page.slug] = page.path
    missing = unresolved_slugs(config, (p.slug for p in pages))
    if missing:
        raise BuildError(
            config_path,
            f"Sidebar references pages that do not exist: {', '.join(missing)}",
        )
    page_urls = {p.url.rstrip("/") for p in pages}
    for source in config.redirects:
        if prefix_base(config.base, source).rstrip("/") in page_urls:
            raise BuildError(
                config_path, f"Redirect source '{source}' is also a page"
            )


def _check_stylesheets(project_root: Path, config: SiteConfig) -> None:
    """Fail before the output is touched when a custom stylesheet is missing."""
    for css in config.custom_css:
        source = project_root / css
        if not source.is_file():
            raise BuildError(source, "Custom stylesheet not found")

def _format_error_message(exc: Exception) -> str:
    """Format a rendering exception into a user-friendly message."""
    error_type = type(exc).__name__
    if error_type == "UndefinedError":
        return f"Undefined variable: {exc}"
    if error_type == "TemplateNotFound":
        return f"Layout not found: {exc}"
    if error_type == "TypeError":
        return f"Type error: {exc}"
    return f"{error_type}: {exc}"


def _write_page(output_dir: Path, page: Page, rendered: str) -> None:
    """Write a rendered page to ``<output>/<slug>/index.html``."""
    target_dir = output_dir
    if page.slug != "index":
        target_dir = output_dir / page.slug
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / "index.html").write_text(rendered, encoding="utf-8")


def _write_stylesheets(project_root: Path, output_dir: Path, config: SiteConfig) -> None:
    """Write the theme, code and custom stylesheets into the assets folder."""
    assets_dir = output_dir / ASSETS_DIR
    assets_dir.mkdir(parents=True, exist_ok=True)
    theme_css = resources.files("houndsite") / "theme" / THEME_STYLESHEET
    (assets_dir / THEME_STYLESHEET).write_text(theme_css.read_text(encoding="utf-8"), encoding="utf-8")
    (assets_dir / CODE_STYLESHEET).write_text(code_theme_css(config.code_themes), encoding="utf-8")
    for css in config.custom_css:
        source = project_root / css
        shutil.copy2(source, assets_dir / source.name)


def _write_sitemap(output_dir: Path, config: SiteConfig, pages: Iterable[Page]) -> None:
    """Write sitemap.xml when the site URL is known."""
    if not config.site:
        return
    lines: list[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for page in pages:
        lines.append(f"  <url><loc>{join_root_url(config.site, page.url)}</loc></url>")
    lines.append("</urlset>")
    (output_dir / "sitemap.xml").write_text("\n".join(lines), encoding="utf-8")
