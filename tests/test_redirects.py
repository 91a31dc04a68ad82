import pytest

from houndsite.config import build_config
from houndsite.redirects import (
    check_redirects,
    prefix_base,
    redirect_document,
    write_redirects,
)


def test_check_redirects():
    assert check_redirects({"/code-expert-agent": "/code-research"}) == []
    assert check_redirects({"/loop": "/loop"}) == ["redirect '/loop' points to itself"]
    problems = check_redirects({"/a": "/b", "/b": "/c"})
    assert problems == ["redirect '/a' -> '/b' chains into another redirect"]
    assert check_redirects({}) == []


def test_prefix_base():
    assert prefix_base("/", "/code-research") == "/code-research"
    assert prefix_base("/", "code-research") == "/code-research"
    assert prefix_base("/docs/", "/code-research") == "/docs/code-research"
    assert prefix_base("docs", "/") == "/docs/"


def test_redirect_document():
    html = redirect_document(
        "/code-expert-agent", "/code-research", "https://chunkhound.github.io"
    )
    assert html.startswith("<!doctype html>")
    assert '<meta http-equiv="refresh" content="0;url=/code-research">' in html
    assert '<meta name="robots" content="noindex">' in html
    assert '<link rel="canonical" href="https://chunkhound.github.io/code-research">' in html
    assert "<code>/code-expert-agent</code>" in html


def test_redirect_document_without_site_and_external_target():
    html = redirect_document("/old", "https://example.com/new?a=1&b=2")
    assert 'href="https://example.com/new?a=1&amp;b=2"' in html
    assert '<link rel="canonical" href="https://example.com/new?a=1&amp;b=2">' in html


def test_write_redirects(tmp_path):
    config = build_config()
    written = write_redirects(tmp_path, config.redirects, config.site, config.base)
    target = tmp_path / "code-expert-agent" / "index.html"
    assert written == [target]
    assert "url=/code-research" in target.read_text(encoding="utf-8")


def test_write_redirects_under_base(tmp_path):
    write_redirects(tmp_path, {"/old/page": "/new"}, base="/docs/")
    html = (tmp_path / "old" / "page" / "index.html").read_text(encoding="utf-8")
    assert "url=/docs/new" in html
    assert "<code>/docs/old/page</code>" in html


def test_check_redirects_rejects_unsafe_sources():
    assert check_redirects({"/../escaped": "/x"}) == [
        "redirect source '/../escaped' cannot contain '..'"
    ]
    assert check_redirects({"/": "/quickstart"}) == [
        "redirect source '/' cannot be the site root"
    ]
    # dots inside a segment are fine
    assert check_redirects({"/v1..2": "/v2"}) == []


def test_write_redirects_stays_inside_output(tmp_path):
    out = tmp_path / "out"
    with pytest.raises(ValueError):
        write_redirects(out, {"/../escaped": "/x"})
    assert not (tmp_path / "escaped").exists()
    with pytest.raises(ValueError):
        write_redirects(out, {"/": "/x"})
