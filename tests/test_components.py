import re

import pytest
from markupsafe import Markup

from houndsite.components import (
    COMPONENTS,
    LATEST_CHANGES,
    HighlightCard,
    latest_changes,
)

ROOT_CLASS_RE = re.compile(r'^<div class="([^"]*)">')


def root_class(html: str) -> str:
    match = ROOT_CLASS_RE.match(html)
    assert match, html[:80]
    return match.group(1)


def test_default_root_class_has_trailing_space_and_three_cards():
    html = str(latest_changes())
    assert root_class(html) == "latest-changes "
    assert html.count('class="change-card"') == 3


@pytest.mark.parametrize("class_name", ["", "home", "wide dark", "x-1", "  spaced  "])
def test_card_count_and_order_do_not_depend_on_class(class_name):
    html = str(latest_changes(class_name))
    assert html.count('class="change-card"') == 3
    positions = [html.index(f"<h3>{card.title}</h3>") for card in LATEST_CHANGES]
    assert positions == sorted(positions)


def test_class_name_appended_verbatim():
    assert root_class(str(latest_changes("home"))) == "latest-changes home"
    assert root_class(str(latest_changes("wide dark"))) == "latest-changes wide dark"


def test_class_name_is_escaped():
    html = str(latest_changes('x" onclick="boom'))
    assert 'onclick="boom"' not in html
    assert root_class(html).startswith("latest-changes x&#34;")


def test_rendering_is_idempotent():
    assert latest_changes("home") == latest_changes("home")
    assert latest_changes() == latest_changes("")


def test_returns_markup_with_header_highlights_and_link():
    html = latest_changes()
    assert isinstance(html, Markup)
    assert "<h2>Latest Updates</h2>" in html
    assert "ChunkHound&#39;s latest features" in html
    assert html.count('class="highlight-item"') == 9
    assert '<a href="./changelog" class="btn-secondary">View Full Changelog →</a>' in html
    # link comes after the grid
    assert html.index("view-all-link") > html.rindex("change-card")


def test_cards_are_complete():
    assert len(LATEST_CHANGES) == 3
    assert [card.title for card in LATEST_CHANGES] == [
        "Scalable Code Analysis",
        "Indexing Performance",
        "Production Tooling",
    ]
    for card in LATEST_CHANGES:
        assert isinstance(card, HighlightCard)
        assert card.title and card.icon and card.summary
        assert card.highlights
        assert all(item for item in card.highlights)


def test_cards_are_frozen():
    with pytest.raises(AttributeError):
        LATEST_CHANGES[0].title = "changed"


def test_component_registry():
    assert COMPONENTS["latest_changes"] is latest_changes
