"""Decide which spans of an article become inline links.

Resolution runs in two passes over the raw markdown:

1. Every h2/h3 heading becomes a ``heading`` link, titled from the heading
   cache (or the heading's own text when nothing is cached).
2. Whitelist keys are tried longest first. Each key links at most once, at
   its first occurrence that sits outside headings, on word boundaries and
   clear of every link accepted so far.

The resolver never calls the title generator and keeps no state between
calls.
"""

from __future__ import annotations

import logging
import re
from typing import Mapping, Optional

from . import store
from .config import Config, get_config
from .db import ensure_initialized, get_db
from .headings import HEADING_RE
from .models import (
    CustomTitleOverride,
    DisabledOverride,
    LinkOverride,
    LinkType,
    ResolvedLink,
    WhitelistCacheEntry,
)
from .whitelist import write_snapshot

logger = logging.getLogger(__name__)

# Sentence punctuation and brackets only. Hyphens, underscores, backticks and
# markdown emphasis never delimit a term.
_BOUNDARY_PUNCTUATION = frozenset(".,;:!?()[]{}'\"<>/")


def _is_boundary_char(ch: str) -> bool:
    return ch.isspace() or ch in _BOUNDARY_PUNCTUATION


def is_word_boundary(content: str, start: int, end: int) -> bool:
    """Check that ``content[start:end]`` is delimited on both sides.

    A side is delimited when it is the edge of the string or the adjacent
    character is whitespace, sentence punctuation or a bracket.
    """
    before_ok = start == 0 or _is_boundary_char(content[start - 1])
    after_ok = end >= len(content) or _is_boundary_char(content[end])
    return before_ok and after_ok


def overlaps(link: ResolvedLink, start: int, end: int) -> bool:
    """Check whether ``[start, end)`` intersects the link's range."""
    return not (end <= link.start_index or start >= link.end_index)


def resolve_heading_links(
    content: str,
    heading_titles: Mapping[str, str],
) -> list[ResolvedLink]:
    """Emit one heading link per h2/h3 line.

    Args:
        content: Article markdown.
        heading_titles: Cached titles keyed by lowercase heading text.

    Returns:
        Heading links in document order, each spanning the whole line.
    """
    links = []
    for match in HEADING_RE.finditer(content):
        heading_text = match.group(2).strip()
        if not heading_text:
            continue
        title = heading_titles.get(heading_text.lower())
        if title is None:
            logger.debug("No cached title for heading %r, using heading text", heading_text)
            title = heading_text
        links.append(
            ResolvedLink(
                term=match.group(0),
                start_index=match.start(),
                end_index=match.end(),
                standalone_title=title,
                type=LinkType.HEADING,
            )
        )
    return links


def resolve_term_links(
    content: str,
    whitelist: Mapping[str, WhitelistCacheEntry],
    overrides: Mapping[str, LinkOverride],
    accepted: list[ResolvedLink],
) -> list[ResolvedLink]:
    """Find the first qualifying occurrence of each whitelist key.

    Args:
        content: Article markdown.
        whitelist: Snapshot data, lowercase key -> entry.
        overrides: The article's overrides, keyed by lowercase term.
        accepted: Links already emitted (the headings). Matches inside any
            of them are skipped.

    Returns:
        Term links in the order they were accepted.
    """
    heading_ranges = [
        (link.start_index, link.end_index) for link in accepted if link.type is LinkType.HEADING
    ]
    links = list(accepted)
    term_links = []
    matched: set[str] = set()

    for key in sorted(whitelist, key=lambda k: (-len(k), k)):
        if key in matched:
            continue

        override = overrides.get(key)
        if isinstance(override, DisabledOverride):
            matched.add(key)
            continue

        for match in re.finditer(re.escape(key), content, re.IGNORECASE):
            start, end = match.span()

            if any(start >= hs and end <= he for hs, he in heading_ranges):
                continue
            if not is_word_boundary(content, start, end):
                continue
            if any(overlaps(link, start, end) for link in links):
                continue

            if isinstance(override, CustomTitleOverride):
                title = override.custom_standalone_title
            else:
                title = whitelist[key].standalone_title

            link = ResolvedLink(
                term=content[start:end],
                start_index=start,
                end_index=end,
                standalone_title=title,
                type=LinkType.TERM,
            )
            links.append(link)
            term_links.append(link)
            matched.add(key)
            break

    return term_links


def resolve_links_for_article(
    explanation_id: int,
    content: str,
    config: Optional[Config] = None,
) -> list[ResolvedLink]:
    """Resolve the inline links for one article.

    Reads the heading cache, the whitelist snapshot (building it if it has
    never been built) and the article's overrides from one connection.

    Args:
        explanation_id: The article ID.
        content: Article markdown.
        config: Configuration to use.

    Returns:
        Non-overlapping links sorted by ``start_index``.

    Raises:
        StoreError: If reading from the database fails. No partial result
            is returned.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        heading_titles = {
            h.heading_text_lower: h.standalone_title
            for h in store.list_heading_links(conn, explanation_id)
        }
        snapshot = store.get_snapshot(conn)
        if snapshot is None:
            snapshot = write_snapshot(conn)
            conn.commit()
        overrides = {
            o.term_lower: o for o in store.list_overrides_for_article(conn, explanation_id)
        }

    heading_links = resolve_heading_links(content, heading_titles)
    term_links = resolve_term_links(content, snapshot.data, overrides, heading_links)

    links = sorted(heading_links + term_links, key=lambda link: link.start_index)
    logger.debug(
        "Resolved %d heading and %d term links for explanation %s (snapshot v%d)",
        len(heading_links), len(term_links), explanation_id, snapshot.version,
    )
    return links
