"""Reusable page components for houndsite.

Components are plain functions returning Markup, exposed to Jinja pages as
template globals so a page can drop ``{{ latest_changes("home") }}`` into its
body.

Key members:
- HighlightCard: One feature summary (title, icon, summary, highlights).
- LATEST_CHANGES: The fixed cards shown on the landing page.
- latest_changes: Renders the "Latest Updates" panel.
"""

from __future__ import annotations

from dataclasses import dataclass

from jinja2 import Environment
from markupsafe import Markup


@dataclass(frozen=True)
class HighlightCard:
    """A single feature summary card.

    Attributes:
        title: Card heading.
        icon: Glyph shown next to the heading.
        summary: One-line summary.
        highlights: Bullet items, in display order.
    """

    title: str
    icon: str
    summary: str
    highlights: tuple[str, ...]


LATEST_CHANGES: tuple[HighlightCard, ...] = (
    HighlightCard(
        title="Scalable Code Analysis",
        icon="🔍",
        summary=(
            "Map-reduce synthesis breaks complex queries into parallel subtasks, "
            "preventing context collapse on multi-million LOC codebases."
        ),
        highlights=(
            "Numbered citations [1][2][3] replace verbose file.py:123 references",
            "New chunkhound research CLI command for direct code analysis",
            "Automatic query expansion with deduplication casts wider semantic nets",
        ),
    ),
    HighlightCard(
        title="Indexing Performance",
        icon="⚡",
        summary=(
            "10-100x faster indexing via native git bindings, parallel directory "
            "discovery, and ProcessPoolExecutor for CPU-bound parsing."
        ),
        highlights=(
            "RapidYAML parser handles large k8s manifests 10-100x faster than tree-sitter",
            "7 new AST-aware parsers: Swift, Objective-C, Zig, Haskell, HCL, Vue, PHP (29+ total)",
            "Provider-aware embedding batching optimizes API throughput (OpenAI: 8, VoyageAI: 40)",
        ),
    ),
    HighlightCard(
        title="Production Tooling",
        icon="🛠️",
        summary="New CLI commands and integrations for production workflows and debugging.",
        highlights=(
            "simulate (dry-run), diagnose (compare ChunkHound vs git rules), "
            "calibrate (auto-tune batch sizes)",
            "TEI reranker format support - two-stage retrieval with cross-encoder, "
            "no vendor lock-in",
            "Repo-aware gitignore engine prevents rule leakage between sibling repos",
        ),
    ),
)

LATEST_CHANGES_TITLE = "Latest Updates"
LATEST_CHANGES_SUBTITLE = (
    "Stay up to date with ChunkHound's latest features and improvements."
)
CHANGELOG_HREF = "./changelog"

_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)

_LATEST_CHANGES_TEMPLATE = _env.from_string(
    """\
<div class="latest-changes {{ class_name }}">
  <div class="latest-changes-header">
    <h2>{{ title }}</h2>
    <p>{{ subtitle }}</p>
  </div>
  <div class="latest-changes-grid">
{% for card in cards %}
    <div class="change-card">
      <div class="change-card-header">
        <h3>{{ card.title }}</h3>
        <span class="rocket-icon">{{ card.icon }}</span>
      </div>
      <div class="change-card-content">
        <div class="change-summary">{{ card.summary }}</div>
        <ul class="change-highlights">
{% for item in card.highlights %}
          <li class="highlight-item">{{ item }}</li>
{% endfor %}
        </ul>
      </div>
    </div>
{% endfor %}
  </div>
  <div class="view-all-link">
    <a href="{{ changelog_href }}" class="btn-secondary">View Full Changelog →</a>
  </div>
</div>
"""
)


def latest_changes(class_name: str = "") -> Markup:
    """Render the "Latest Updates" panel.

    The root element's class list is the base ``latest-changes`` class
    followed by ``class_name``; with the default the attribute is exactly
    ``"latest-changes "``.

    Args:
        class_name: Extra class appended to the root element.

    Returns:
        Markup-safe HTML for the panel.
    """
    return Markup(
        _LATEST_CHANGES_TEMPLATE.render(
            class_name=class_name,
            title=LATEST_CHANGES_TITLE,
            subtitle=LATEST_CHANGES_SUBTITLE,
            cards=LATEST_CHANGES,
            changelog_href=CHANGELOG_HREF,
        )
    )


# Components available to Jinja pages by name
COMPONENTS = {
    "latest_changes": latest_changes,
}
