"""Site configuration for houndsite.

This module defines the configuration record consumed by the build: site
metadata, logo, favicon, custom stylesheets, code themes, social links, head
tags, sidebar navigation and the redirect table.

Key functions:
- build_config: Returns the compiled-in ChunkHound site configuration.
- config_from_dict: Overlays a plain mapping (YAML shape) onto a config.
- load_settings: Loads build options from houndsite.yaml.
- load_site_config: Loads the site block of houndsite.yaml over the defaults.
- check_config / validate_config: Report or raise on invariant violations.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .redirects import check_redirects

CONFIG_FILENAME = "houndsite.yaml"

DEFAULT_SETTINGS = {
    "output_dir": "output",
    "docs_dir": "docs",
    "public_dir": "public",
    "port": 4321,
    # None means the HTTP port + 1
    "ws_port": None,
}


class ConfigError(Exception):
    """Raised when a site configuration breaks one of its invariants.

    Attributes:
        problems: Human-readable description of each violation.
    """

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        summary = "; ".join(self.problems) or "invalid configuration"
        super().__init__(summary)


@dataclass(frozen=True)
class Logo:
    """Logo shown in the site header.

    Attributes:
        light: Path to the logo used on light backgrounds.
        dark: Path to the logo used on dark backgrounds.
        replaces_title: Hide the text title when the logo is shown.
    """

    light: str
    dark: str
    replaces_title: bool = False


@dataclass(frozen=True)
class NavEntry:
    """Sidebar entry.

    A leaf points at exactly one of a local content ``slug`` or an external
    ``link``. A group has ``items`` and no target of its own.
    """

    label: str
    slug: str | None = None
    link: str | None = None
    items: tuple[NavEntry, ...] = ()

    @property
    def is_group(self) -> bool:
        return bool(self.items)


@dataclass(frozen=True)
class SocialLink:
    icon: str
    label: str
    href: str


@dataclass(frozen=True)
class HeadTag:
    """HTML element inserted into every page's ``<head>``.

    Attributes:
        tag: Element name, e.g. ``meta``.
        attrs: Attribute name to value mapping, rendered in insertion order.
        content: Inner text for non-void elements.
    """

    tag: str
    attrs: Mapping[str, str] = field(default_factory=dict)
    content: str = ""


@dataclass(frozen=True)
class SiteConfig:
    """Complete configuration record for one documentation site.

    Attributes:
        site: Absolute URL the site is deployed at.
        base: Path prefix every page lives under.
        title: Site title.
        description: Default page description.
        logo: Header logo, if any.
        favicon: Favicon path.
        custom_css: Project stylesheets linked from every page.
        code_themes: Pygments style names for light and dark code blocks.
        social: Header social links.
        head: Extra head tags, in render order.
        sidebar: Navigation entries, in render order.
        redirects: Old path to new path.
    """

    title: str
    description: str = ""
    site: str = ""
    base: str = "/"
    logo: Logo | None = None
    favicon: str = "/favicon.svg"
    custom_css: tuple[str, ...] = ()
    code_themes: tuple[str, ...] = ("default",)
    social: tuple[SocialLink, ...] = ()
    head: tuple[HeadTag, ...] = ()
    sidebar: tuple[NavEntry, ...] = ()
    redirects: Mapping[str, str] = field(default_factory=dict)


def _meta(key: str, name: str, content: str) -> HeadTag:
    return HeadTag("meta", {key: name, "content": content})


def build_config() -> SiteConfig:
    """Return the compiled-in ChunkHound site configuration.

    Returns:
        A new SiteConfig; callers never share mutable state between calls.
    """
    og_image = "https://chunkhound.github.io/og-image.png"
    return SiteConfig(
        site="https://chunkhound.github.io",
        base="/",
        title="ChunkHound",
        description="Modern RAG for your codebase - semantic and regex search via MCP",
        logo=Logo(
            light="./public/wordmark.svg",
            dark="./public/wordmark-dark.svg",
            replaces_title=True,
        ),
        favicon="/favicon.svg",
        custom_css=("./src/styles/colors.css", "./src/styles/changelog.css"),
        code_themes=("github-light", "github-dark"),
        social=(
            SocialLink(
                icon="github",
                label="GitHub",
                href="https://github.com/chunkhound/chunkhound",
            ),
        ),
        head=(
            # Open Graph
            _meta("property", "og:image", og_image),
            _meta("property", "og:image:width", "1200"),
            _meta("property", "og:image:height", "630"),
            _meta("property", "og:type", "website"),
            # Twitter Card
            _meta("name", "twitter:card", "summary_large_image"),
            _meta("name", "twitter:image", og_image),
        ),
        sidebar=(
            NavEntry("Quickstart", slug="quickstart"),
            NavEntry("How-To Guides", slug="how-to"),
            NavEntry("Configuration", slug="configuration"),
            NavEntry("Code Research", slug="code-research"),
            NavEntry("Benchmark", slug="benchmark"),
            NavEntry("Under the Hood", slug="under-the-hood"),
            NavEntry("Origin Story", slug="origin-story"),
            NavEntry("Contributing", slug="contributing"),
            NavEntry("Changelog", link="/changelog"),
        ),
        redirects={"/code-expert-agent": "/code-research"},
    )


def _nav_from_dict(raw: Mapping[str, Any]) -> NavEntry:
    if not isinstance(raw, Mapping) or "label" not in raw:
        raise ConfigError([f"sidebar entry needs a label: {raw!r}"])
    items = tuple(_nav_from_dict(item) for item in raw.get("items") or ())
    return NavEntry(
        label=str(raw["label"]),
        slug=raw.get("slug"),
        link=raw.get("link"),
        items=items,
    )


def _head_from_dict(raw: Mapping[str, Any]) -> HeadTag:
    if not isinstance(raw, Mapping) or "tag" not in raw:
        raise ConfigError([f"head entry needs a tag: {raw!r}"])
    raw_attrs = raw.get("attrs") or {}
    if not isinstance(raw_attrs, Mapping):
        raise ConfigError([f"head entry attrs must be a mapping: {raw!r}"])
    attrs = {str(k): str(v) for k, v in raw_attrs.items()}
    return HeadTag(tag=str(raw["tag"]), attrs=attrs, content=str(raw.get("content", "")))


def _social_from_dict(raw: Mapping[str, Any]) -> SocialLink:
    if not isinstance(raw, Mapping) or not all(k in raw for k in ("icon", "label", "href")):
        raise ConfigError([f"social link needs an icon, label and href: {raw!r}"])
    return SocialLink(str(raw["icon"]), str(raw["label"]), str(raw["href"]))


def _logo_from_dict(raw: Any) -> Logo | None:
    if not raw:
        return None
    if not isinstance(raw, Mapping) or "light" not in raw:
        raise ConfigError([f"logo needs at least a light image: {raw!r}"])
    return Logo(
        light=str(raw["light"]),
        dark=str(raw.get("dark", raw["light"])),
        replaces_title=bool(raw.get("replaces_title", raw.get("replacesTitle", False))),
    )


def config_from_dict(
    data: Mapping[str, Any], base: SiteConfig | None = None
) -> SiteConfig:
    """Overlay a plain mapping onto a site configuration.

    Keys follow the YAML layout of the ``site:`` block. List-valued keys
    (sidebar, head, social, custom_css, code_themes) replace the base value
    entirely; redirects are merged.

    Args:
        data: Mapping of configuration values.
        base: Configuration to start from. Defaults to build_config().

    Returns:
        A new SiteConfig.

    Raises:
        ConfigError: If an entry is malformed or missing a required key.
    """
    config = base or build_config()
    changes: dict[str, Any] = {}

    for key in ("site", "base", "title", "description", "favicon"):
        if key in data:
            changes[key] = str(data[key])

    if "logo" in data:
        changes["logo"] = _logo_from_dict(data["logo"])

    if "custom_css" in data:
        changes["custom_css"] = tuple(str(p) for p in data["custom_css"] or ())
    if "code_themes" in data:
        changes["code_themes"] = tuple(str(t) for t in data["code_themes"] or ())
    if "social" in data:
        changes["social"] = tuple(_social_from_dict(s) for s in data["social"] or ())
    if "head" in data:
        changes["head"] = tuple(_head_from_dict(h) for h in data["head"] or ())
    if "sidebar" in data:
        changes["sidebar"] = tuple(_nav_from_dict(n) for n in data["sidebar"] or ())
    if "redirects" in data:
        raw_redirects = data["redirects"] or {}
        if not isinstance(raw_redirects, Mapping):
            raise ConfigError([f"redirects must be a mapping: {raw_redirects!r}"])
        merged = dict(config.redirects)
        merged.update({str(k): str(v) for k, v in raw_redirects.items()})
        changes["redirects"] = merged

    return replace(config, **changes)


def _read_yaml(project_root: Path) -> dict[str, Any]:
    config_path = project_root / CONFIG_FILENAME
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        try:
            loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError([f"{CONFIG_FILENAME}: {exc}"]) from exc
    return loaded if isinstance(loaded, dict) else {}


def load_settings(project_root: Path) -> dict[str, Any]:
    """Load build options from houndsite.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary of build options, with defaults applied.
    """
    settings = DEFAULT_SETTINGS.copy()
    loaded = _read_yaml(project_root)
    settings.update({k: v for k, v in loaded.items() if k != "site"})
    return settings


def load_site_config(project_root: Path) -> SiteConfig:
    """Load the site configuration for a project.

    The ``site:`` block of houndsite.yaml, when present, is overlaid on the
    compiled-in configuration.

    Args:
        project_root: Root directory of the project.

    Returns:
        The effective SiteConfig.
    """
    block = _read_yaml(project_root).get("site")
    if not isinstance(block, dict):
        return build_config()
    return config_from_dict(block)


def _check_nav_level(entries: Iterable[NavEntry], trail: str) -> list[str]:
    problems: list[str] = []
    seen: set[str] = set()
    for entry in entries:
        where = f"{trail}{entry.label}"
        if entry.label in seen:
            problems.append(f"duplicate sidebar label '{where}'")
        seen.add(entry.label)
        if entry.is_group:
            if entry.slug or entry.link:
                problems.append(f"sidebar group '{where}' cannot have a slug or link")
            problems.extend(_check_nav_level(entry.items, f"{where} > "))
            continue
        if entry.slug and entry.link:
            problems.append(f"sidebar entry '{where}' has both a slug and a link")
        elif not entry.slug and not entry.link:
            problems.append(f"sidebar entry '{where}' has neither a slug nor a link")
    return problems


def check_config(config: SiteConfig) -> list[str]:
    """Return every invariant violation in a configuration.

    Args:
        config: Configuration to check.

    Returns:
        List of problem descriptions; empty when the configuration is valid.
    """
    problems: list[str] = []
    if not config.title:
        problems.append("site title is empty")
    problems.extend(_check_nav_level(config.sidebar, ""))
    problems.extend(check_redirects(config.redirects))
    return problems


def validate_config(config: SiteConfig) -> SiteConfig:
    """Raise ConfigError if the configuration breaks an invariant.

    Returns:
        The configuration unchanged, for chaining.
    """
    problems = check_config(config)
    if problems:
        raise ConfigError(problems)
    return config
