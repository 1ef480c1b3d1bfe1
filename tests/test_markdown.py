"""Tests for markdown stripping, snippets, and heading anchors."""

from __future__ import annotations

import pytest

from content_search.markdown import (
    build_embedding_input,
    clean_for_embedding,
    find_heading_anchor,
    heading_offsets,
    make_preview,
    make_snippet,
    slugify_heading,
    strip_markdown,
    truncate_description,
)

SECTIONED = "# A\nfoo\n## B\nbar baz"


# ---------------------------------------------------------------------------
# Anchors
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("term", "anchor"),
    [("baz", "b"), ("foo", "a"), ("A", "a")],
)
def test_anchor_is_last_heading_before_match(term: str, anchor: str) -> None:
    assert make_snippet(SECTIONED, term).anchor == anchor


def test_match_before_any_heading_has_no_anchor() -> None:
    markdown = "intro text\n# Details\nmore"

    assert make_snippet(markdown, "intro").anchor is None
    assert make_snippet(markdown, "more").anchor == "details"


def test_heading_offsets_track_line_starts() -> None:
    offsets = heading_offsets(SECTIONED)

    assert [(heading.id, heading.offset) for heading in offsets] == [("a", 0), ("b", 8)]


def test_heading_that_slugifies_to_nothing_gives_no_anchor() -> None:
    assert find_heading_anchor("# !!!\nbody", 7) is None


@pytest.mark.parametrize(
    ("text", "slug"),
    [
        ("Hello, World!  Again", "hello-world-again"),
        ("--Weird -- Title--", "weird-title"),
        ("Caching 101", "caching-101"),
    ],
)
def test_slugify_heading(text: str, slug: str) -> None:
    assert slugify_heading(text) == slug


# ---------------------------------------------------------------------------
# Stripping
# ---------------------------------------------------------------------------


def test_strip_markdown_removes_decoration() -> None:
    markdown = (
        "```py\ncode()\n```\n"
        "# Title\n"
        "![img](x.png) **bold** *it* `code` [label](http://x)\n\n\n\nend"
    )

    assert strip_markdown(markdown) == "Title bold it code label end"


@pytest.mark.parametrize(
    "markdown",
    [
        SECTIONED,
        "***nested*** emphasis",
        "[**bold link**](http://x) and `[not](a link)`",
        "  ## spaced heading\n\n\n\n\ntext  ",
    ],
)
def test_strip_markdown_is_idempotent(markdown: str) -> None:
    once = strip_markdown(markdown)

    assert strip_markdown(once) == once


# ---------------------------------------------------------------------------
# Snippets
# ---------------------------------------------------------------------------


def test_snippet_is_centered_on_term_with_ellipses() -> None:
    body = "a " * 100 + "needle " + "b " * 100

    result = make_snippet(body, "needle", 150)

    assert result.snippet.startswith("...")
    assert result.snippet.endswith("...")
    assert "needle" in result.snippet
    assert len(result.snippet) == 150 + 6


def test_snippet_near_start_has_no_leading_ellipsis() -> None:
    result = make_snippet("The needle is here. " + "filler " * 50, "needle", 60)

    assert result.snippet.startswith("The needle")
    assert result.snippet.endswith("...")


def test_absent_term_returns_lead_text_without_anchor() -> None:
    result = make_snippet("# Heading\n**Bold** text", "zzz", 150)

    assert result.snippet == "Heading Bold text"
    assert result.anchor is None


def test_term_lost_by_stripping_has_no_anchor() -> None:
    result = make_snippet("# Setup\nUse `pip` to install", "`pip`", 150)

    assert result.snippet == "Setup Use pip to install"
    assert result.anchor is None


def test_make_preview_truncates_lead_text() -> None:
    assert make_preview("word " * 100, 20) == "word word word word ..."
    assert make_preview("short *text*") == "short text"


def test_truncate_description() -> None:
    assert truncate_description("x" * 130) == "x" * 120 + "..."
    assert truncate_description("short") == "short"
    assert truncate_description(None) == ""


# ---------------------------------------------------------------------------
# Embedding input
# ---------------------------------------------------------------------------


def test_clean_for_embedding_drops_code_and_images() -> None:
    markdown = "Intro\n```\ncode\n```\n![a](b)\n\n\n\nOutro"

    assert clean_for_embedding(markdown) == "Intro\n\nOutro"


def test_build_embedding_input() -> None:
    assert build_embedding_input("Title", None) == "Title"
    assert build_embedding_input("Title", "") == "Title"
    assert build_embedding_input("Title", "Body ![x](y)") == "Title\n\nBody"
