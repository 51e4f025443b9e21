"""Per-article cache of heading standalone titles.

Titles are generated once, when an article is saved or edited, and read at
every render. Nothing in the render path calls the title generator; a
heading with no cached title is linked using its own text instead.
"""

from __future__ import annotations

import functools
import logging
import re
from typing import Callable, Mapping, Optional

from . import store
from .config import Config, get_config
from .db import ensure_initialized, get_db
from .errors import GenerationError, ValidationError
from .models import HeadingLink
from .titles import generate_titles

logger = logging.getLogger(__name__)

# h2 and h3 only: "## Title" or "### Title"
HEADING_RE = re.compile(r"^(#{2,3})\s+(.+)$", re.MULTILINE)

_WRAPPING_QUOTES_RE = re.compile(r"^[\"']|[\"']$")

TitleGenerator = Callable[[str, list[str]], list[str]]


def extract_headings(content: str) -> list[str]:
    """Extract lowercase h2/h3 heading texts in document order."""
    texts = (m.group(2).strip() for m in HEADING_RE.finditer(content))
    return [text.lower() for text in texts if text]


def headings_match(a: list[str], b: list[str]) -> bool:
    """Check two heading lists are identical, order included."""
    return a == b


def _validate_explanation_id(explanation_id: int) -> None:
    if isinstance(explanation_id, bool) or not isinstance(explanation_id, int) or explanation_id <= 0:
        raise ValidationError(f"explanation_id must be a positive integer, got {explanation_id!r}")


def get_heading_links_for_article(
    explanation_id: int,
    config: Optional[Config] = None,
) -> dict[str, str]:
    """Get cached heading titles for an article.

    Returns:
        Dict of lowercase heading text -> standalone title. Empty if none
        are cached.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        links = store.list_heading_links(conn, explanation_id)

    return {link.heading_text_lower: link.standalone_title for link in links}


def save_heading_links(
    explanation_id: int,
    headings: Mapping[str, str],
    config: Optional[Config] = None,
) -> None:
    """Save heading titles for an article.

    Upserts by (explanation_id, lowercase heading text). Headings missing
    from ``headings`` are left alone; use
    :func:`delete_heading_links_for_article` to clear the cache.

    Args:
        explanation_id: The article ID.
        headings: Mapping of heading text -> standalone title.
        config: Configuration to use.

    Raises:
        ValidationError: If the ID is not positive or a heading or title is
            empty.
    """
    if config is None:
        config = get_config()

    if not headings:
        return

    _validate_explanation_id(explanation_id)

    records: dict[str, HeadingLink] = {}
    for heading_text, standalone_title in headings.items():
        heading_text = (heading_text or "").strip()
        standalone_title = (standalone_title or "").strip()
        if not heading_text:
            raise ValidationError("heading_text must not be empty")
        if not standalone_title:
            raise ValidationError(f"standalone_title for heading '{heading_text}' must not be empty")

        records[heading_text.lower()] = HeadingLink(
            explanation_id=explanation_id,
            heading_text=heading_text,
            heading_text_lower=heading_text.lower(),
            standalone_title=standalone_title,
        )

    ensure_initialized(config)

    with get_db(config) as conn:
        store.upsert_heading_links(conn, explanation_id, list(records.values()))
        conn.commit()

    logger.debug("Saved %d heading links for explanation %s", len(records), explanation_id)


def delete_heading_links_for_article(
    explanation_id: int,
    config: Optional[Config] = None,
) -> int:
    """Delete every cached heading title for an article.

    Returns:
        Number of rows removed.
    """
    if config is None:
        config = get_config()

    ensure_initialized(config)

    with get_db(config) as conn:
        cursor = conn.execute(
            "DELETE FROM article_heading_links WHERE explanation_id = ?",
            (explanation_id,),
        )
        conn.commit()
        return cursor.rowcount


def generate_heading_standalone_titles(
    content: str,
    article_title: str,
    requester_id: str,
    generator: Optional[TitleGenerator] = None,
    config: Optional[Config] = None,
) -> dict[str, str]:
    """Generate standalone titles for the article's h2/h3 headings.

    Does not save anything; pass the result to :func:`save_heading_links`.
    Generation is best-effort: any failure is logged and an empty mapping is
    returned, so a flaky LLM never blocks saving an article.

    Args:
        content: Article markdown.
        article_title: Title of the article, used as context.
        requester_id: ID of the user the generation is done for.
        generator: Callable ``(article_title, heading_texts) -> titles``.
            Defaults to the configured LLM.
        config: Configuration to use.

    Returns:
        Dict of heading text -> standalone title.

    Raises:
        ValidationError: If ``requester_id`` is empty.
    """
    if config is None:
        config = get_config()

    if not requester_id or not str(requester_id).strip():
        raise ValidationError("requester_id is required for generate_heading_standalone_titles")

    stripped = (m.group(2).strip() for m in HEADING_RE.finditer(content))
    heading_texts = [text for text in stripped if text]
    if not heading_texts:
        logger.debug("No headings found to generate standalone titles")
        return {}

    if generator is None:
        generator = functools.partial(generate_titles, requester_id=requester_id, config=config)

    logger.debug(
        "Generating standalone titles for %d headings of %r", len(heading_texts), article_title
    )

    try:
        if not article_title or not article_title.strip():
            raise GenerationError("Article title is required")

        raw_titles = generator(article_title, heading_texts)
        if not isinstance(raw_titles, list):
            raise GenerationError(f"Generator returned {type(raw_titles).__name__}, expected list")
        if len(raw_titles) != len(heading_texts):
            raise GenerationError(
                f"Generator returned {len(raw_titles)} titles for {len(heading_texts)} headings"
            )

        result: dict[str, str] = {}
        for heading_text, raw in zip(heading_texts, raw_titles):
            if not isinstance(raw, str):
                raise GenerationError(f"Title for heading '{heading_text}' is not a string")
            title = _WRAPPING_QUOTES_RE.sub("", raw.strip())
            if title:
                result[heading_text] = title
                logger.debug("Generated heading title %r -> %r", heading_text, title)
        return result

    except Exception as e:
        logger.warning("Error generating heading standalone titles: %s", e)
        return {}
