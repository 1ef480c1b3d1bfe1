"""
Markdown snippet and heading-anchor extraction.

Turns raw markdown into short plain-text previews centered on a search term
and resolves the id of the section heading that contains the match, so a UI
can link straight to it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_SNIPPET_LENGTH = 150
DEFAULT_DESCRIPTION_LENGTH = 120
ELLIPSIS = "..."

_FENCED_CODE_RE = re.compile(r"```[\s\S]*?```")
_IMAGE_RE = re.compile(r"!\[[^\]]*\]\([^)]*\)")
_HEADING_MARKER_RE = re.compile(r"(?m)^[ \t]*#{1,6}[ \t]+")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_RE = re.compile(r"\*([^*]+)\*")
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_WHITESPACE_RE = re.compile(r"\s+")

_HEADING_LINE_RE = re.compile(r"^#{1,6}\s+(.+)$")
_SLUG_INVALID_RE = re.compile(r"[^a-z0-9\s-]")
_SLUG_DASH_RUN_RE = re.compile(r"-+")


@dataclass(frozen=True)
class Snippet:
    snippet: str
    anchor: str | None


@dataclass(frozen=True)
class HeadingOffset:
    id: str
    offset: int


def slugify_heading(text: str) -> str:
    """Build the heading id a markdown renderer assigns to *text*."""
    slug = _SLUG_INVALID_RE.sub("", text.lower())
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = _SLUG_DASH_RUN_RE.sub("-", slug)
    return slug.strip("-")


def heading_offsets(markdown: str) -> list[HeadingOffset]:
    """Return every ATX heading with the character offset of its line."""
    headings: list[HeadingOffset] = []
    offset = 0
    for line in markdown.split("\n"):
        match = _HEADING_LINE_RE.match(line)
        if match:
            headings.append(HeadingOffset(id=slugify_heading(match.group(1).strip()), offset=offset))
        offset += len(line) + 1
    return headings


def find_heading_anchor(markdown: str, match_offset: int) -> str | None:
    """Return the id of the last heading at or before *match_offset*."""
    nearest: HeadingOffset | None = None
    for heading in heading_offsets(markdown):
        if heading.offset > match_offset:
            break
        nearest = heading
    if nearest is None or not nearest.id:
        return None
    return nearest.id


def _strip_once(text: str) -> str:
    text = _FENCED_CODE_RE.sub("", text)
    text = _IMAGE_RE.sub("", text)
    text = _HEADING_MARKER_RE.sub("", text)
    text = _BOLD_RE.sub(r"\1", text)
    text = _ITALIC_RE.sub(r"\1", text)
    text = _INLINE_CODE_RE.sub(r"\1", text)
    text = _LINK_RE.sub(r"\1", text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def strip_markdown(markdown: str) -> str:
    """
    Reduce markdown to a single line of readable text.

    Every pass only removes characters, so repeating until nothing changes
    terminates and makes the result a fixed point.
    """
    text = markdown
    while True:
        stripped = _strip_once(text)
        if stripped == text:
            return stripped
        text = stripped


def _lead(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def make_preview(markdown: str, max_length: int = DEFAULT_SNIPPET_LENGTH) -> str:
    """Return the lead text of *markdown*, truncated with an ellipsis."""
    return _lead(strip_markdown(markdown), max_length)


def make_snippet(
    markdown: str,
    search_term: str,
    max_length: int = DEFAULT_SNIPPET_LENGTH,
) -> Snippet:
    """
    Build a snippet centered on the first occurrence of *search_term*.

    The anchor is resolved against the raw markdown; the snippet window is
    computed on the stripped text.
    """
    term = search_term.lower()
    original_index = markdown.lower().find(term) if term else -1
    clean = strip_markdown(markdown)

    if original_index == -1:
        return Snippet(snippet=_lead(clean, max_length), anchor=None)

    index = clean.lower().find(term)
    if index == -1:
        return Snippet(snippet=_lead(clean, max_length), anchor=None)

    anchor = find_heading_anchor(markdown, original_index)

    start = max(0, index - max_length // 3)
    end = min(len(clean), start + max_length)
    snippet = clean[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(clean):
        snippet = snippet + ELLIPSIS
    return Snippet(snippet=snippet, anchor=anchor)


def truncate_description(
    text: str | None,
    limit: int = DEFAULT_DESCRIPTION_LENGTH,
) -> str:
    if not text:
        return ""
    return text[:limit] + (ELLIPSIS if len(text) > limit else "")


def clean_for_embedding(markdown: str) -> str:
    """Drop code blocks and images, which add little meaning to an embedding."""
    text = _FENCED_CODE_RE.sub("", markdown)
    text = _IMAGE_RE.sub("", text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()


def build_embedding_input(title: str, body: str | None) -> str:
    """Combine title and cleaned body; the title alone when there is no body."""
    if not body:
        return title
    return f"{title}\n\n{clean_for_embedding(body)}"
