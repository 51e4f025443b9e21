"""Test helper utilities.

This module provides helper functions for writing tests, including:
- Factory helpers for creating test data
- Database helpers for inspecting state
- Link helpers for checking resolver output
- A fake title generator to avoid calling an LLM
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from link_overlay.config import Config
    from link_overlay.models import ResolvedLink, WhitelistTerm


# -----------------------------------------------------------------------------
# Factory Helpers
# -----------------------------------------------------------------------------


def make_term(
    config: "Config",
    term: str = "Test Term",
    standalone_title: Optional[str] = None,
    aliases: Optional[list[str]] = None,
    **kwargs: Any,
) -> "WhitelistTerm":
    """Create a whitelist term with sensible defaults.

    Args:
        config: Test configuration
        term: Canonical term (default: "Test Term")
        standalone_title: Standalone title (default: same as term)
        aliases: Aliases to attach (default: none)
        **kwargs: Additional arguments passed to create_whitelist_term

    Returns:
        The created WhitelistTerm

    Example:
        term = make_term(config, "Machine Learning", aliases=["ML"])
    """
    from link_overlay import whitelist

    created = whitelist.create_whitelist_term(
        term,
        standalone_title or term,
        config=config,
        **kwargs,
    )
    if aliases:
        whitelist.add_aliases(created.id, aliases, config=config)
    return created


# -----------------------------------------------------------------------------
# Database Helpers
# -----------------------------------------------------------------------------


def count_rows(config: "Config", table: str) -> int:
    """Count rows in a database table.

    Example:
        assert count_rows(config, "link_whitelist") == 5
    """
    from link_overlay.db import get_db

    with get_db(config) as conn:
        cursor = conn.execute(f"SELECT COUNT(*) FROM {table}")  # noqa: S608
        return cursor.fetchone()[0]


def table_exists(config: "Config", table: str) -> bool:
    """Check if a database table exists."""
    from link_overlay.db import get_db

    with get_db(config) as conn:
        cursor = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table,),
        )
        return cursor.fetchone() is not None


def snapshot_version(config: "Config") -> int:
    """Read the stored snapshot version without building one (0 if absent)."""
    from link_overlay import store
    from link_overlay.db import get_db

    with get_db(config) as conn:
        return store.get_snapshot_version(conn)


# -----------------------------------------------------------------------------
# Link Helpers
# -----------------------------------------------------------------------------


_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)\s]*\)")


def strip_markdown_links(text: str) -> str:
    """Replace every ``[label](target)`` with its label."""
    return _MARKDOWN_LINK_RE.sub(r"\1", text)


def assert_no_overlaps(links: list["ResolvedLink"]) -> None:
    """Assert that no two resolved links share a character."""
    for i, a in enumerate(links):
        for b in links[i + 1:]:
            assert a.end_index <= b.start_index or b.end_index <= a.start_index, (
                f"Links overlap: {a} and {b}"
            )


# -----------------------------------------------------------------------------
# Fake Title Generator
# -----------------------------------------------------------------------------


class FakeTitleGenerator:
    """Title generator that returns canned titles without calling an LLM.

    By default each heading gets ``"<article title>: <heading>"``. Pass
    ``titles`` to return a fixed value, or ``error`` to raise instead.
    """

    def __init__(self, titles: Any = None, error: Optional[Exception] = None) -> None:
        self.titles = titles
        self.error = error
        self.calls: list[tuple[str, list[str]]] = []

    def __call__(self, article_title: str, heading_texts: list[str]) -> Any:
        self.calls.append((article_title, list(heading_texts)))
        if self.error is not None:
            raise self.error
        if self.titles is not None:
            return self.titles
        return [f"{article_title}: {text}" for text in heading_texts]

    @property
    def call_count(self) -> int:
        """Number of times the generator was called."""
        return len(self.calls)
