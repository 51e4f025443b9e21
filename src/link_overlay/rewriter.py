"""Turn resolved links into markdown link syntax."""

from __future__ import annotations

import re
from typing import Iterable, Optional
from urllib.parse import quote

from .config import Config, get_config
from .models import LinkType, ResolvedLink

# Same as HEADING_RE, but keeps the whitespace after the marker
_HEADING_PARTS_RE = re.compile(r"^(#{2,3})(\s+)(.+)$")

# Characters encodeURIComponent leaves alone, minus the parentheses,
# which would end a markdown link target early
_SAFE_CHARS = "-_.!~*'"


def encode_standalone_title_param(title: str) -> str:
    """Percent-encode a standalone title for use as a query value."""
    return quote(title, safe=_SAFE_CHARS)


def build_standalone_url(title: str, config: Optional[Config] = None) -> str:
    """Build the link target for a standalone title."""
    if config is None:
        config = get_config()
    return f"{config.links.route}?{config.links.query_param}={encode_standalone_title_param(title)}"


def apply_links_to_content(
    content: str,
    links: Iterable[ResolvedLink],
    config: Optional[Config] = None,
) -> str:
    """Insert markdown links for every resolved span.

    Links are applied from the end of the content backwards so earlier
    offsets stay valid. Heading links keep their ``##``/``###`` marker and
    only the heading text becomes the link label. Text outside the spans is
    left untouched.

    Args:
        content: The content the links were resolved against.
        links: Non-overlapping resolved links.
        config: Configuration to use for the link route.

    Returns:
        The content with links applied.
    """
    links = list(links)
    if not links:
        return content

    if config is None:
        config = get_config()

    result = content
    for link in sorted(links, key=lambda l: l.start_index, reverse=True):
        before = result[: link.start_index]
        after = result[link.end_index :]
        url = build_standalone_url(link.standalone_title, config)

        parts = _HEADING_PARTS_RE.match(link.term) if link.type is LinkType.HEADING else None
        if parts:
            hashes, space, text = parts.groups()
            replacement = f"{hashes}{space}[{text}]({url})"
        else:
            replacement = f"[{link.term}]({url})"

        result = f"{before}{replacement}{after}"

    return result
