"""Command-line interface for houndsite.

Commands:
- new: Scaffold a new docs project.
- check: Validate the site configuration.
- build: Build the site into the output directory.
- serve: Run the development server with live reload.
- page: Create a new docs page interactively.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .config import CONFIG_FILENAME, ConfigError, check_config, load_settings, load_site_config
from .navigation import iter_slugs
from .utils import slugify, titleize

# Files copied into every new project
_SCAFFOLD_DIR = Path(__file__).parent / "scaffold"


@click.group()
@click.version_option(version=__version__, prog_name="houndsite")
def cli():
    """Houndsite documentation site generator."""


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new docs project."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    created = _scaffold(target)
    click.echo(f"New docs site created at {target} ({created} pages)")


@cli.command()
def check():
    """Validate the site configuration."""
    try:
        config = load_site_config(Path.cwd())
    except ConfigError as exc:
        _report_config_error(exc)
        raise SystemExit(1) from None
    problems = check_config(config)
    if problems:
        click.echo(click.style("Configuration problems:", fg="red", bold=True), err=True)
        for problem in problems:
            click.echo(click.style(f"  - {problem}", fg="yellow"), err=True)
        raise SystemExit(1)
    click.echo(
        f"{config.title}: {len(config.sidebar)} sidebar entries, "
        f"{len(config.head)} head tags, {len(config.redirects)} redirects"
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft pages")
def build(drafts: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import BuildError, build_site

    try:
        result = build_site(project_root, include_drafts=drafts)
    except ConfigError as exc:
        _report_config_error(exc)
        raise SystemExit(1) from None
    except BuildError as exc:
        try:
            rel_path = exc.source_path.relative_to(project_root)
        except ValueError:
            rel_path = exc.source_path
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(
        f"Built {len(result.pages)} pages and {len(result.redirects)} redirects "
        f"into {result.output_dir}"
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft pages")
@click.option(
    "--port",
    type=int,
    required=False,
    help=f"Port to run the dev server (overrides {CONFIG_FILENAME})",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket (defaults to port + 1)",
)
def serve(drafts: bool, port: int | None, ws_port: int | None):
    """Run the dev server with live reload."""
    project_root = Path.cwd()
    from .server import DevServer

    try:
        server = DevServer(project_root, http_port=port, ws_port=ws_port)
    except ConfigError as exc:
        _report_config_error(exc)
        raise SystemExit(1) from None
    server.start(include_drafts=drafts)


@cli.command()
def page():
    """Create a new docs page interactively."""
    project_root = Path.cwd()
    try:
        docs_dir = project_root / load_settings(project_root)["docs_dir"]
        sidebar_slugs = set(iter_slugs(load_site_config(project_root).sidebar))
    except ConfigError as exc:
        _report_config_error(exc)
        raise SystemExit(1) from None
    if not docs_dir.exists():
        raise click.ClickException(
            f"No {docs_dir.name}/ directory found. Run this command from a houndsite project root."
        )

    title = questionary.text(
        "Page title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    slug = questionary.text(
        "Slug:",
        default=slugify(title),
        style=_questionary_style(),
    ).ask()
    if slug is None:
        raise click.Abort()
    slug = "/".join(slugify(part) for part in slug.strip("/").split("/"))

    description = questionary.text("Description (optional):", style=_questionary_style()).ask()
    if description is None:
        raise click.Abort()

    target_path = docs_dir / f"{slug}.md"
    if target_path.exists() or (docs_dir / slug / "index.md").exists():
        raise click.ClickException(f"A page with slug '{slug}' already exists")

    target_path.parent.mkdir(parents=True, exist_ok=True)
    target_path.write_text(_page_source(title, description.strip()), encoding="utf-8")
    click.echo(f"Created {target_path.relative_to(project_root)}")
    if slug not in sidebar_slugs:
        click.echo(f"Add it to the sidebar with: {{label: {title}, slug: {slug}}}")


def _report_config_error(exc: ConfigError) -> None:
    click.echo(click.style("Invalid configuration:", fg="red", bold=True), err=True)
    for problem in exc.problems:
        click.echo(click.style(f"  - {problem}", fg="yellow"), err=True)


def _page_source(title: str, description: str = "") -> str:
    """Return the Markdown source of a new page."""
    frontmatter = {"title": title}
    if description:
        frontmatter["description"] = description
    dumped = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    return f"---\n{dumped}---\n\nWrite about {title} here.\n"


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> int:
    """Create a new project at ``root``.

    Copies the bundled scaffold and writes a stub page for every sidebar
    slug the scaffold does not already provide, so the new project builds
    as-is.

    Returns:
        Number of pages in the new project.
    """
    for src_path in _SCAFFOLD_DIR.rglob("*"):
        if src_path.is_dir():
            continue
        dest_path = root / src_path.relative_to(_SCAFFOLD_DIR)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)

    docs_dir = root / "docs"
    config = load_site_config(root)
    labels = _slug_labels(config.sidebar)
    for slug in iter_slugs(config.sidebar):
        target = docs_dir / f"{slug}.md"
        if target.exists() or (docs_dir / slug / "index.md").exists():
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        title = labels.get(slug) or titleize(slug)
        target.write_text(_page_source(title), encoding="utf-8")
    return sum(1 for p in docs_dir.rglob("*") if p.is_file())


def _slug_labels(entries) -> dict[str, str]:
    labels: dict[str, str] = {}
    for entry in entries:
        if entry.is_group:
            labels.update(_slug_labels(entry.items))
        elif entry.slug:
            labels[entry.slug] = entry.label
    return labels
