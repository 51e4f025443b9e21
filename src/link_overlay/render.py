"""Render-time entry point: resolve links and apply them in one call."""

from __future__ import annotations

import logging
from typing import Optional

from .config import Config, get_config
from .errors import StoreError
from .resolver import resolve_links_for_article
from .rewriter import apply_links_to_content

logger = logging.getLogger(__name__)


def render_article(
    explanation_id: int,
    content: str,
    config: Optional[Config] = None,
) -> str:
    """Return the article markdown with inline links applied.

    Links are an enhancement, so a database failure renders the article
    without them instead of failing.
    """
    if config is None:
        config = get_config()

    try:
        links = resolve_links_for_article(explanation_id, content, config=config)
    except StoreError as e:
        logger.warning("Rendering explanation %s without links: %s", explanation_id, e)
        return content

    return apply_links_to_content(content, links, config=config)
